r"""
Logging setup for the session client.

Console output goes through colorlog. Failures are logged in one structured
line (``[TYPE] message | Exception: ... | Context: k=v``) and counted per type
by an in-process aggregator so a long-running client can report patterns
such as repeated refresh failures.
"""

import logging
import os
import sys
import threading
import time
from collections import defaultdict, deque
from typing import Any

import colorlog

_DEBUG_VALUES = ("true", "1", "yes")
_RECENT_WINDOW_SECONDS = 3600
CONSOLE_HANDLER_NAME = "authsession-console"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


class ErrorAggregator:
    """Counts structured errors per type with a bounded history.

    Only the newest ``max_per_type`` occurrences of each type are retained;
    ``total_count`` keeps counting past that bound.
    """

    def __init__(self, max_per_type: int = 200):
        self.max_per_type = max_per_type
        self.lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self.lock:
            self._history: dict[str, deque[dict[str, Any]]] = defaultdict(
                lambda: deque(maxlen=self.max_per_type)
            )
            self._totals: dict[str, int] = defaultdict(int)
            self.start_time = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        with self.lock:
            self._totals[error_type] += 1
            self._history[error_type].append(
                {"timestamp": time.time(), "message": message, "context": dict(context or {})}
            )

    def get_error_summary(self) -> dict[str, Any]:
        """Per-type totals, last-hour counts, hourly rate and last occurrence."""
        now = time.time()
        hours = max((now - self.start_time) / 3600, 1.0)
        with self.lock:
            return {
                error_type: {
                    "total_count": total,
                    "recent_count": sum(
                        1
                        for e in self._history[error_type]
                        if now - e["timestamp"] < _RECENT_WINDOW_SECONDS
                    ),
                    "rate_per_hour": total / hours,
                    "last_occurrence": (
                        self._history[error_type][-1] if self._history[error_type] else None
                    ),
                }
                for error_type, total in self._totals.items()
            }

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("📊 No errors recorded in this session")
            return
        logging.warning("🚨 Error summary")
        for error_type, stats in sorted(summary.items()):
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, {stats['rate_per_hour']:.1f}/hour"
            )
            last = stats["last_occurrence"]
            if last:
                logging.warning(f"    Last: {last['message']}")


# Global error aggregator instance
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log one structured error line and count it in ``error_aggregator``.

    Args:
        error_type: Category label (``network``, ``auth``, ``revocation``...).
        message: What failed.
        exception: The exception being reported, if any.
        context: Extra ``key=value`` pairs appended to the line.
        level: Logging level (default: ERROR).
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {str(exception)}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))
    error_aggregator.record_error(error_type, message, context)


def token_fingerprint(token: str | None) -> str:
    """Return a short, non-reversible label for a token suitable for logs."""
    if not token:
        return "none"
    if len(token) <= 8:
        return "***"
    return f"{token[:3]}…{token[-4:]}"


class LoggerConfigurator:
    """Installs a colorlog console handler on the root logger.

    ``DEBUG=true|1|yes`` in the environment selects DEBUG, otherwise INFO.
    ``config`` may override ``level`` and ``stream``.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}

    def _level(self) -> int:
        if "level" in self.config:
            return self.config["level"]
        debug = os.environ.get("DEBUG", "").lower() in _DEBUG_VALUES
        return logging.DEBUG if debug else logging.INFO

    def configure(self) -> colorlog.ColoredFormatter:
        level = self._level()
        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%H:%M:%S",
            log_colors=LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        handler = colorlog.StreamHandler(self.config.get("stream", sys.stderr))
        handler.setFormatter(formatter)
        handler.set_name(CONSOLE_HANDLER_NAME)

        root = logging.getLogger()
        for existing in list(root.handlers):
            if existing.get_name() == CONSOLE_HANDLER_NAME:
                root.removeHandler(existing)
        root.addHandler(handler)
        root.setLevel(level)

        # aiohttp client chatter is noise even at DEBUG
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        return formatter
