"""
Logging setup for ircflow.

Colored console output via colorlog, plus a process-wide aggregator that
counts protocol and transport failures per category so recurring problems
(a server sending garbage, a link that keeps resetting) surface in one place.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict, deque
from typing import Any

import colorlog

from .constants import IRC_ERROR_ALERT_RATE, IRC_ERROR_HISTORY

_LOG = logging.getLogger("ircflow")

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}

# Libraries whose chatter drowns out protocol events at DEBUG.
NOISY_LOGGERS = ("asyncio",)


class ErrorAggregator:
    """Counts error occurrences per category.

    Only the most recent ``max_history`` occurrences of each category are
    kept; rates are computed against the time since the last reset.
    """

    def __init__(self, max_history: int = IRC_ERROR_HISTORY, alert_rate: float = IRC_ERROR_ALERT_RATE):
        self.max_history = max_history
        self.alert_rate = alert_rate
        self.errors: dict[str, deque[dict[str, Any]]] = defaultdict(
            lambda: deque(maxlen=self.max_history)
        )
        self.lock = threading.Lock()
        self.start_time = time.time()

    def record_error(self, error_type: str, message: str, context: dict[str, Any] | None = None) -> None:
        with self.lock:
            self.errors[error_type].append(
                {"timestamp": time.time(), "message": message, "context": context or {}}
            )

    def _category_stats(self, occurrences: deque, now: float) -> dict[str, Any]:
        runtime_hours = (now - self.start_time) / 3600
        return {
            "total_count": len(occurrences),
            "recent_count": sum(1 for e in occurrences if now - e["timestamp"] < 3600),
            "rate_per_hour": len(occurrences) / max(runtime_hours, 1),
            "last_occurrence": occurrences[-1] if occurrences else None,
        }

    def get_error_summary(self) -> dict[str, Any]:
        """Per-category counts, hourly rate and the latest occurrence."""
        with self.lock:
            now = time.time()
            return {
                error_type: self._category_stats(occurrences, now)
                for error_type, occurrences in self.errors.items()
            }

    def should_alert(self, error_type: str, threshold_rate: float | None = None) -> bool:
        threshold = self.alert_rate if threshold_rate is None else threshold_rate
        stats = self.get_error_summary().get(error_type)
        return stats is not None and stats["rate_per_hour"] > threshold

    def reset(self) -> None:
        with self.lock:
            self.errors.clear()
            self.start_time = time.time()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            _LOG.info("No errors recorded in current session")
            return

        _LOG.warning("ERROR SUMMARY REPORT")
        for error_type, stats in sorted(summary.items()):
            _LOG.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour"
            )
            if stats["last_occurrence"]:
                _LOG.warning(f"    Last: {stats['last_occurrence']['message']}")


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with its category and context, and record it for aggregation.

    Args:
        error_type: Category of the error (e.g. 'parsing', 'network', 'outbound')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional key/value data, rendered after the message
        level: Logging level (default: ERROR)
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    _LOG.log(level, " | ".join(parts))

    error_aggregator.record_error(error_type, message, context)
    if error_aggregator.should_alert(error_type):
        rate = error_aggregator.get_error_summary()[error_type]["rate_per_hour"]
        _LOG.critical(f"HIGH ERROR RATE ALERT: {error_type} occurring at {rate:.1f}/hour")


class LoggerConfigurator:
    """Installs a colorlog handler on the root logger.

    Recognised ``config`` keys: ``stream`` (defaults to stderr) and
    ``level``, which wins over the DEBUG environment variable.
    """

    def __init__(self, config=None):
        self.config = config or {}

    def _level(self) -> int:
        if "level" in self.config:
            return self.config["level"]
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    def configure(self):
        """Configure the root logger; returns the installed handler."""
        log_level = self._level()

        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        handler = logging.StreamHandler(self.config.get("stream", sys.stderr))
        handler.setFormatter(formatter)

        logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s", force=True)
        logging.getLogger().setLevel(log_level)
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(log_level, logging.INFO))

        atexit.register(self._log_final_error_summary)
        return handler

    def _log_final_error_summary(self):
        try:
            _LOG.info("Final error summary before shutdown:")
            error_aggregator.log_summary_report()
        except Exception as e:  # noqa: BLE001
            _LOG.error(f"Failed to log final error summary: {e}")
