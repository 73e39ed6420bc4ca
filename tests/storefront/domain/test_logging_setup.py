import logging
import logging.handlers

import pytest
import structlog
from storefront.utils.logging import bind_request_context, setup_stdlib_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def log_context():
    yield
    structlog.contextvars.clear_contextvars()


class TestStdlibLogging:
    def test_console_only_without_log_dir(self, root_logger):
        setup_stdlib_logging()

        assert len(root_logger.handlers) == 1
        assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root_logger.handlers)

    def test_log_dir_adds_rotating_files(self, root_logger, tmp_path):
        log_dir = tmp_path / "logs"

        setup_stdlib_logging(str(log_dir))

        files = [h for h in root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert sorted(h.baseFilename.rsplit("/", 1)[-1] for h in files) == ["storefront.log", "storefront_error.log"]
        assert [h.level for h in files if h.baseFilename.endswith("error.log")] == [logging.ERROR]
        assert (log_dir / "storefront.log").exists()

    def test_errors_reach_the_error_file(self, root_logger, tmp_path):
        setup_stdlib_logging(str(tmp_path))

        logging.getLogger("storefront.test").error("order store unavailable")
        for handler in root_logger.handlers:
            handler.flush()

        assert "order store unavailable" in (tmp_path / "storefront_error.log").read_text(encoding="utf-8")


class TestRequestContext:
    def test_binds_request_keys(self, log_context):
        bind_request_context("POST", "/orders", "203.0.113.7")

        assert structlog.contextvars.get_contextvars() == {
            "method": "POST",
            "path": "/orders",
            "client_ip": "203.0.113.7",
        }

    def test_previous_request_keys_are_dropped(self, log_context):
        structlog.contextvars.bind_contextvars(order_number="2000")

        bind_request_context("GET", "/orders/eligibility", None)

        assert "order_number" not in structlog.contextvars.get_contextvars()
