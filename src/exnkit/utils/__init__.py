"""
Utility modules for exnkit.
"""
from .logging import JsonFormatter, get_logger, setup_logging

__all__ = ["JsonFormatter", "get_logger", "setup_logging"]
