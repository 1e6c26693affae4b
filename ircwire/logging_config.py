"""
Root logging setup for the ircwire client.

``LoggerConfigurator`` installs a colorlog formatter on the root logger;
``log_structured_error`` writes categorised error lines and feeds the
per-category counters reported when the process exits.
"""

import atexit
import logging
import os
import sys
import threading
from collections import Counter
from typing import Any

import colorlog

ROOT_FORMAT = "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


class ErrorAggregator:
    """Counts errors per category and remembers the latest message of each."""

    def __init__(self):
        self.counts: Counter[str] = Counter()
        self.last_messages: dict[str, str] = {}
        self.last_context: dict[str, dict[str, Any]] = {}
        self.lock = threading.Lock()

    def record_error(self, error_type: str, message: str, context: dict[str, Any] = None) -> None:
        with self.lock:
            self.counts[error_type] += 1
            self.last_messages[error_type] = message
            self.last_context[error_type] = dict(context or {})

    def get_error_summary(self) -> dict[str, Any]:
        with self.lock:
            return {
                error_type: {
                    "total_count": count,
                    "last_message": self.last_messages.get(error_type),
                }
                for error_type, count in self.counts.most_common()
            }

    def reset(self) -> None:
        with self.lock:
            self.counts.clear()
            self.last_messages.clear()
            self.last_context.clear()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.debug("No errors recorded in current session")
            return
        logging.warning("Error summary for this session:")
        for error_type, stats in summary.items():
            logging.warning(
                "  %s: %d (last: %s)", error_type, stats["total_count"], stats["last_message"]
            )


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException = None,
    context: dict[str, Any] = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error line tagged with its category and count it.

    Args:
        error_type: Category of the error (e.g., 'network', 'connect', 'state')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))
    error_aggregator.record_error(error_type, message, context)


class LoggerConfigurator:
    """Configures root logging once at startup.

    The level is DEBUG when the ``DEBUG`` environment variable is truthy or
    the config mapping has ``verbose`` set, INFO otherwise.
    """

    def __init__(self, config=None):
        self.config = config or {}

    def level(self) -> int:
        debug = os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")
        return logging.DEBUG if debug or self.config.get("verbose") else logging.INFO

    def configure(self):
        formatter = colorlog.ColoredFormatter(
            ROOT_FORMAT,
            datefmt="%H:%M:%S",
            log_colors=LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.handlers[:] = [handler]
        root_logger.setLevel(self.level())
        # asyncio debug chatter is not useful at the protocol level
        logging.getLogger("asyncio").setLevel(logging.WARNING)

        atexit.register(self._log_final_error_summary)

    def _log_final_error_summary(self):
        try:
            error_aggregator.log_summary_report()
        except Exception as e:
            logging.error(f"Failed to log final error summary: {e}")
