"""Pytest configuration and fixtures."""
import logging
import os

import pytest

from exnkit.config import ExnConfig
from exnkit.config import loader


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep configuration files and EXNKIT_ variables of the host out of tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in list(os.environ):
        if name.startswith("EXNKIT_"):
            monkeypatch.delenv(name)
    loader.default_config.cache_clear()
    yield
    loader.default_config.cache_clear()


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo root logger changes made by setup_logging."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def config():
    """Default configuration."""
    return ExnConfig()


@pytest.fixture
def verbose_config():
    """Configuration that never elides backtraces."""
    return ExnConfig(never_elide_backtraces=True)


@pytest.fixture
def boom():
    """Function raising a structured error."""
    from exnkit import create_s

    def raise_boom():
        raise create_s("boom")
    return raise_boom
