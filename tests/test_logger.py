# File: tests/test_logger.py
import logging

from pdf_scout.logger import LOGGER_NAME, TqdmHandler, configure, get_logger


def test_console_output_goes_to_stderr(capsys):
    configure(level="DEBUG")
    get_logger("crawler").info("page loaded")

    captured = capsys.readouterr()
    assert "page loaded" in captured.err
    assert "PdfScout.crawler" in captured.err
    assert captured.out == ""


def test_level_filters_records(capsys):
    configure(level="WARNING")
    get_logger().info("quiet")
    get_logger().warning("loud")

    err = capsys.readouterr().err
    assert "quiet" not in err
    assert "loud" in err


def test_log_file_receives_records(tmp_path):
    log_file = tmp_path / "scout.log"
    lg = configure(level="INFO", log_file=log_file)
    get_logger("downloader").info("saved a.pdf")
    for handler in lg.handlers:
        handler.flush()

    assert "saved a.pdf" in log_file.read_text(encoding="utf-8")


def test_configure_replaces_handlers():
    configure()
    lg = configure(level=logging.DEBUG)

    assert lg.name == LOGGER_NAME
    assert len(lg.handlers) == 1
    assert isinstance(lg.handlers[0], TqdmHandler)
    assert lg.propagate is False
