from utils.logger import get_logger, get_category_logger, configure_logger, Logger
from models.enums import LogLevel, LogCategory


def test_logger_is_singleton():
    assert get_logger() is get_logger()


def test_configure_logger_preserves_singleton():
    original = get_logger()
    bound = get_category_logger(LogCategory.SHUTDOWN)

    configure_logger(LogLevel.DEBUG, use_colors=False, pretty=False)

    assert get_logger() is original
    assert get_logger().min_level == LogLevel.DEBUG
    assert get_logger().pretty is False
    assert bound._base is original


def test_details_rendered_as_tree(capsys):
    logger = Logger(min_level=LogLevel.DEBUG, use_colors=False)

    logger.info(LogCategory.BEACON, "Beacon created", beacons_count=2, context={"job": 1})

    lines = capsys.readouterr().out.splitlines()
    assert "BEACON" in lines[0]
    assert lines[0].endswith("✓ Beacon created")
    assert lines[1].strip() == "├─ beacons_count: 2"
    assert lines[2].strip() == "└─ context: {'job': 1}"


def test_min_level_filters(capsys):
    logger = Logger(min_level=LogLevel.WARN, use_colors=False)

    logger.info(LogCategory.PROBE, "hidden")
    logger.warn(LogCategory.PROBE, "Ready check failed: SERVER_IS_NOT_READY")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "Ready check failed" in out


def test_disabled_logger_prints_nothing(capsys):
    logger = Logger(enabled=False)

    logger.error(LogCategory.SHUTDOWN, "boom")

    assert capsys.readouterr().out == ""


def test_no_escape_codes_without_colors(capsys):
    Logger(use_colors=False).for_category(LogCategory.LIFECYCLE).info("Ready state changed", ready=True)

    assert "\033[" not in capsys.readouterr().out


def test_exc_info_adds_exception_detail(capsys):
    logger = Logger(use_colors=False).for_category(LogCategory.SHUTDOWN)

    try:
        raise RuntimeError("disk gone")
    except RuntimeError:
        logger.error("Custom shutdown handler failed", exc_info=True)

    assert "exception: RuntimeError: disk gone" in capsys.readouterr().out


def test_compact_format_keeps_event_on_one_line(capsys):
    logger = Logger(use_colors=False, pretty=False)

    logger.info(LogCategory.SHUTDOWN, "Waiting before shutdown", delay_ms=30000)

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    assert lines[0].endswith("✓ Waiting before shutdown delay_ms=30000")


def test_bound_context_comes_first(capsys):
    log = Logger(use_colors=False, pretty=False).for_category(LogCategory.SHUTDOWN)
    hlog = log.bind(handler="APIServerShutdownHandler")

    hlog.error("Handler shutdown timeout", timeout_s=5)

    out = capsys.readouterr().out
    assert out.rstrip().endswith("Handler shutdown timeout handler=APIServerShutdownHandler timeout_s=5")


def test_timestamp_has_milliseconds(capsys):
    Logger(use_colors=False).info(LogCategory.SYSTEM, "tick")

    stamp = capsys.readouterr().out.split("]")[0]
    assert len(stamp) == len("[HH:MM:SS.mmm")
