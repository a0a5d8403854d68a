import socket

import pytest

from lifecycle.registry import LifecycleRegistry
from models.enums import LogLevel
from utils.logger import configure_logger, get_logger


@pytest.fixture(autouse=True)
def reset_lifecycle_globals():
    """Each test starts without a default lifecycle and with the stock logger settings."""
    LifecycleRegistry.reset()
    yield
    LifecycleRegistry.reset()
    configure_logger(LogLevel.INFO, use_colors=True, enabled=True, pretty=True)


@pytest.fixture
def quiet_logger():
    logger = get_logger()
    configure_logger(LogLevel.ERROR, use_colors=False, enabled=True)
    return logger


@pytest.fixture
def free_port():
    """A port on 127.0.0.1 that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
