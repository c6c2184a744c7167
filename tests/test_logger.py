import logging
import sys

import pytest

from doc_actions import logger as da_logger


@pytest.fixture
def restore_logger(monkeypatch):
    yield monkeypatch
    monkeypatch.delenv("DOC_ACTIONS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("DOC_ACTIONS_LOG_CATS", raising=False)
    da_logger.setup_logger()


def _stderr_handlers(base: logging.Logger) -> list[logging.Handler]:
    return [h for h in base.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr]


def test_setup_logger_idempotent_handlers(restore_logger):
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    base = da_logger.setup_logger(level=logging.DEBUG)
    _ = da_logger.setup_logger(level=logging.DEBUG)

    assert len(_stderr_handlers(base)) == 1
    assert base.propagate is False


def test_env_level_overrides_argument(restore_logger):
    restore_logger.setenv("DOC_ACTIONS_LOG_LEVEL", "error")

    base = da_logger.setup_logger(level=logging.DEBUG)

    assert base.level == logging.ERROR


def test_category_filter(restore_logger):
    restore_logger.setenv("DOC_ACTIONS_LOG_CATS", "classifier, tasks")
    base = da_logger.setup_logger()
    [handler] = _stderr_handlers(base)

    def record(name: str) -> logging.LogRecord:
        return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

    assert handler.filter(record("doc_actions.classifier"))
    assert handler.filter(record("doc_actions.tasks"))
    assert not handler.filter(record("doc_actions.storage"))


def test_get_logger_returns_child():
    assert da_logger.get_logger("roots").name == "doc_actions.roots"
    assert da_logger.get_logger().name == "doc_actions"
