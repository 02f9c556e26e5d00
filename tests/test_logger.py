import logging

from centralia.utils.logger import get_logger, setup_logging


def test_file_sink_and_library_levels(tmp_path):
    log_file = tmp_path / "logs" / "centralia.log"
    setup_logging(level="INFO", log_file=log_file)

    get_logger("centralia.tests").info("turn finished")
    get_logger("centralia.tests").debug("hidden detail")

    content = log_file.read_text(encoding="utf-8")
    assert "centralia.tests" in content
    assert "turn finished" in content
    assert "hidden detail" not in content
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging(level="DEBUG")
    assert logging.getLogger("httpx").level == logging.DEBUG
    setup_logging(level="WARNING")
