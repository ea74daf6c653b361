import logging
import sys

import pytest

from gemini_mcp.core.logging import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_configure_logging_applies_after_server_import(restore_root_logger) -> None:
    import gemini_mcp.mcp.server  # noqa: F401

    root = restore_root_logger
    root.setLevel(logging.INFO)
    root.addHandler(logging.StreamHandler(sys.stderr))

    configure_logging("DEBUG")

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert handler.stream is sys.stderr
    assert handler.formatter._fmt == "%(asctime)s %(levelname)s %(message)s"


def test_unknown_level_falls_back_to_info(restore_root_logger) -> None:
    configure_logging("chatty")

    assert restore_root_logger.level == logging.INFO
