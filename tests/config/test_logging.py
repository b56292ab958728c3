from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from unisync.config import ConfigurationError, configure_logging, resolve_log_level
from unisync.config.logging import LOG_FORMAT

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_resolve_log_level_accepts_names_and_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("UNISYNC_LOG_LEVEL", raising=False)

    assert resolve_log_level() == logging.INFO
    assert resolve_log_level(" debug ") == logging.DEBUG
    assert resolve_log_level(logging.ERROR) == logging.ERROR


def test_resolve_log_level_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNISYNC_LOG_LEVEL", "warning")

    assert resolve_log_level() == logging.WARNING


def test_resolve_log_level_rejects_unknown_names() -> None:
    with pytest.raises(ConfigurationError, match="verbose"):
        resolve_log_level("verbose")


def test_configure_logging_sets_root_level_and_format(
    restore_root_logger: logging.Logger,
) -> None:
    level = configure_logging(level="DEBUG", force=True)

    assert level == logging.DEBUG
    assert restore_root_logger.level == logging.DEBUG
    formats = [
        handler.formatter._fmt  # noqa: SLF001
        for handler in restore_root_logger.handlers
        if handler.formatter is not None
    ]
    assert LOG_FORMAT in formats
