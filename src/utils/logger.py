import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, TextIO
from models.enums import LogLevel, LogCategory

# === ANSI COLORS ===
class Colors:
    """ANSI escape codes for colored terminal output"""
    RESET = '\033[0m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'


CATEGORY_COLORS = {
    LogCategory.CONFIG: Colors.CYAN,
    LogCategory.SYSTEM: Colors.BRIGHT_WHITE,
    LogCategory.LIFECYCLE: Colors.BRIGHT_CYAN,
    LogCategory.BEACON: Colors.BRIGHT_YELLOW,
    LogCategory.SHUTDOWN: Colors.BRIGHT_MAGENTA,
    LogCategory.PROBE: Colors.BRIGHT_GREEN,
    LogCategory.API: Colors.BRIGHT_BLUE,
    LogCategory.PORT: Colors.MAGENTA,
}

# (symbol, color, priority)
LEVELS = {
    LogLevel.DEBUG: ('·', Colors.DIM, 0),
    LogLevel.INFO: ('✓', Colors.GREEN, 1),
    LogLevel.WARN: ('⚠', Colors.YELLOW, 2),
    LogLevel.ERROR: ('✗', Colors.RED, 3),
}

CATEGORY_WIDTH = 9
DETAIL_INDENT = " " * 15


# === CORE LOGGER ===
class Logger:
    """
    Console logger for the lifecycle server

    Pretty format (development):
    [14:23:45.120] BEACON    · Beacon created
                   ├─ beacons_count: 3
                   └─ context: {'request': '/jobs/42'}

    Compact format (production), one line per event:
    [14:23:45.120] BEACON    · Beacon created beacons_count=3 context={'request': '/jobs/42'}
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        use_colors: bool = True,
        enabled: bool = True,
        pretty: bool = True,
        stream: Optional[TextIO] = None,
    ):
        """
        Args:
            min_level: Minimum log level to display
            use_colors: Enable ANSI color codes
            enabled: Master switch; a disabled logger drops everything
            pretty: Tree-style detail rows; False keeps each event on one line
            stream: Output stream (default: sys.stdout at write time)
        """
        self.min_level = min_level
        self.use_colors = use_colors
        self.enabled = enabled
        self.pretty = pretty
        self.stream = stream

    def is_enabled_for(self, level: LogLevel) -> bool:
        if not self.enabled:
            return False
        return LEVELS[level][2] >= LEVELS[self.min_level][2]

    def _paint(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _write(self, line: str) -> None:
        print(line, file=self.stream or sys.stdout)

    def log(
        self,
        category: LogCategory,
        message: str,
        level: LogLevel = LogLevel.INFO,
        details: Optional[List[str]] = None,
        exc_info: bool = False,
        **kwargs
    ):
        """
        Log one event.

        Args:
            category: Log category (BEACON, SHUTDOWN, etc.)
            message: Main message text
            level: Log level (DEBUG, INFO, WARN, ERROR)
            details: Preformatted detail strings
            exc_info: Append the exception currently being handled
            **kwargs: key/value details

        Example:
            logger.log(LogCategory.SHUTDOWN, "Waiting before shutdown", delay_ms=30000)
        """
        if not self.is_enabled_for(level):
            return

        symbol, color, _ = LEVELS[level]
        head = " ".join((
            datetime.now().strftime('[%H:%M:%S.%f')[:-3] + ']',
            self._paint(category.name.ljust(CATEGORY_WIDTH), CATEGORY_COLORS.get(category, Colors.WHITE)),
            self._paint(symbol, color),
            self._paint(message, color),
        ))

        fields = [(None, d) for d in details or []]
        fields.extend(kwargs.items())
        if exc_info:
            exc = sys.exc_info()[1]
            if exc is not None:
                fields.append(("exception", f"{type(exc).__name__}: {exc}"))

        if not self.pretty:
            parts = [str(v) if k is None else f"{k}={v}" for k, v in fields]
            self._write(" ".join([head] + parts))
            return

        self._write(head)
        for i, (k, v) in enumerate(fields):
            tree = "└─" if i == len(fields) - 1 else "├─"
            text = str(v) if k is None else f"{k}: {v}"
            self._write(f"{DETAIL_INDENT}{self._paint(tree, Colors.DIM)} {text}")

    def debug(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.DEBUG, **kw)
    def info(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.INFO, **kw)
    def warn(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.WARN, **kw)
    def error(self, category: LogCategory, message: str, **kw): self.log(category, message, LogLevel.ERROR, **kw)

    def for_category(self, category: LogCategory) -> 'BoundLogger':
        """Return a logger bound to a category."""
        return BoundLogger(self, category)


class BoundLogger:
    """
    Logger bound to a category and, optionally, context fields.

    Context fields are printed with every event, before the call's own
    fields:

        hlog = log.bind(handler="APIServerShutdownHandler")
        hlog.error("Shutdown timeout", timeout_s=5)
    """

    def __init__(self, base: Logger, category: LogCategory, context: Optional[Dict[str, Any]] = None):
        self._base = base
        self._category = category
        self._context = dict(context or {})

    def log(self, message: str, level: LogLevel = LogLevel.INFO, category: Optional[LogCategory] = None, **kw):
        if self._context:
            kw = {**self._context, **kw}
        self._base.log(category or self._category, message, level, **kw)

    def debug(self, message: str, **kw): self.log(message, LogLevel.DEBUG, **kw)
    def info(self, message: str, **kw): self.log(message, LogLevel.INFO, **kw)
    def warn(self, message: str, **kw): self.log(message, LogLevel.WARN, **kw)
    def error(self, message: str, **kw): self.log(message, LogLevel.ERROR, **kw)

    def bind(self, **context) -> 'BoundLogger':
        """Child logger carrying extra context fields."""
        return BoundLogger(self._base, self._category, {**self._context, **context})


# === Global instance helpers ===
_logger = Logger()

def get_logger() -> Logger:
    return _logger

def get_category_logger(category: LogCategory) -> BoundLogger:
    """Returns a logger bound to a specific category"""
    return _logger.for_category(category)

def configure_logger(
    min_level: LogLevel = LogLevel.INFO,
    use_colors: bool = True,
    enabled: bool = True,
    pretty: bool = True,
):
    """
    Configure the logger singleton in place.

    Module-level bound loggers keep a reference to the singleton, so replacing
    it would silently detach them.
    """
    _logger.min_level = min_level
    _logger.use_colors = use_colors
    _logger.enabled = enabled
    _logger.pretty = pretty
