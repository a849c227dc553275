"""Shared test fixtures."""

import logging
from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo configure_logging() calls made by CLI tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def no_config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Path to a config file that does not exist, with catlog env vars cleared."""
    for name in ("CATLOG_STATUS", "CATLOG_ALL", "CATLOG_METRICS_PORT", "DISCORD_WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    return str(tmp_path / "absent.yaml")
