import io

from relaywatch.utils.logger import (
    LogCategory,
    LogLevel,
    Logger,
    configure_logger,
    get_category_logger,
    get_logger,
)


def test_singleton_survives_reconfiguration():
    before = get_logger()
    configure_logger(LogLevel.ERROR, use_colors=False)

    assert get_logger() is before
    assert get_logger().min_level is LogLevel.ERROR


def test_line_format_with_details():
    out = io.StringIO()
    logger = Logger(LogLevel.DEBUG, use_colors=False, stream=out)

    logger.info(LogCategory.SHUTDOWN, "Termination trigger received", trigger="SIGTERM", exit_code=0)

    lines = out.getvalue().splitlines()
    assert lines[0].endswith("SHUTDOWN  ✓ Termination trigger received")
    assert lines[0].startswith("[")
    assert lines[1].strip() == "├─ trigger: SIGTERM"
    assert lines[2].strip() == "└─ exit_code: 0"


def test_level_filtering():
    out = io.StringIO()
    logger = Logger(LogLevel.WARN, use_colors=False, stream=out)

    logger.debug(LogCategory.NODE, "hidden")
    logger.info(LogCategory.NODE, "hidden too")
    logger.warn(LogCategory.NODE, "shown")
    logger.error(LogCategory.NODE, "shown too")

    text = out.getvalue()
    assert "hidden" not in text
    assert "⚠ shown" in text
    assert "✗ shown too" in text


def test_bound_logger_uses_its_category():
    out = io.StringIO()
    log = Logger(LogLevel.DEBUG, use_colors=False, stream=out).for_category(LogCategory.BRIDGE)

    log.warn("Status delivery failed", details=["error: gone"])
    log.with_category(LogCategory.NODE).info("moved")

    lines = out.getvalue().splitlines()
    assert "BRIDGE" in lines[0]
    assert lines[1].strip() == "└─ error: gone"
    assert "NODE" in lines[2]


def test_default_stream_is_stderr(capsys):
    configure_logger(LogLevel.INFO, use_colors=False)

    get_category_logger(LogCategory.SYSTEM).info("hello")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "SYSTEM" in captured.err and "hello" in captured.err
