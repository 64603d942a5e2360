"""Main entry point for ``python -m exnkit``."""
from .cli import app

if __name__ == "__main__":
    app()
