"""
Logging and run metrics for JobMate.

Every module logs through one StructuredLogger. Messages go to stderr
and to a dated file under logs/, with keyword context rendered as JSON.
Counters for match runs and geocoder calls ride along on the same object
so the CLI can print a summary when a command finishes.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def _level_number(level: str) -> int:
    # Unknown names raise AttributeError
    return getattr(logging, level.upper())


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"jobmate_{datetime.now():%Y%m%d}.log"
    handler = logging.FileHandler(path, encoding="utf-8")
    # The file keeps DEBUG regardless of the console level
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


class StructuredLogger:
    """
    Wraps a stdlib logger with keyword context and a metrics dict.

    Args:
        name: Name of the underlying logging.Logger
        level: Console threshold, e.g. "INFO" or "debug"
        log_dir: Where the daily log file goes (logs/ when omitted)
        enable_file: Attach the file handler
        enable_console: Attach the stderr handler
    """

    def __init__(
        self,
        name: str = "jobmate",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        threshold = _level_number(level)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(threshold)
        self.logger.propagate = False
        self.logger.handlers.clear()

        if enable_console:
            self.logger.addHandler(_console_handler(threshold))
        if enable_file:
            self.logger.addHandler(_file_handler(Path(log_dir or "logs")))

        self.metrics = self._empty_metrics()

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "api_calls": 0,
            "geocode_attempts": 0,
            "geocode_successes": 0,
            "geocode_failures": 0,
            "matches_calculated": 0,
            "jobs_considered": 0,
            "jobs_out_of_range": 0,
            "errors_by_type": {},
        }

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, context)

    def critical(self, message: str, **context):
        self._log(logging.CRITICAL, message, context)

    # Counters

    def record_api_call(self):
        self.metrics["api_calls"] += 1

    def record_geocode_attempt(self):
        self.metrics["geocode_attempts"] += 1

    def record_geocode_success(self):
        self.metrics["geocode_successes"] += 1

    def record_geocode_failure(self, error_type: str):
        """Count a failed geocoding call under its error type."""
        self.metrics["geocode_failures"] += 1
        self.record_error(error_type)

    def record_match_run(self, considered: int, out_of_range: int, matched: int):
        """Add the totals of one fetch_job_matches pass."""
        self.metrics["jobs_considered"] += considered
        self.metrics["jobs_out_of_range"] += out_of_range
        self.metrics["matches_calculated"] += matched

    def record_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """
        Snapshot of the counters.

        Adds geocode_success_rate once at least one geocode was attempted.
        """
        snapshot = dict(self.metrics, errors_by_type=dict(self.metrics["errors_by_type"]))
        if snapshot["geocode_attempts"]:
            snapshot["geocode_success_rate"] = round(
                snapshot["geocode_successes"] / snapshot["geocode_attempts"], 3
            )
        return snapshot

    def log_metrics_summary(self):
        m = self.get_metrics()

        lines = [
            "=== Matching Session Metrics ===",
            f"API Calls: {m['api_calls']}",
            f"Jobs considered: {m['jobs_considered']} (out of range: {m['jobs_out_of_range']})",
            f"Matches calculated: {m['matches_calculated']}",
        ]
        if m["geocode_attempts"]:
            lines.append(
                f"Geocoding: {m['geocode_successes']}/{m['geocode_attempts']} "
                f"({m.get('geocode_success_rate', 0) * 100:.1f}% success)"
            )
        if m["errors_by_type"]:
            lines.append("Error Types:")
            lines.extend(f"  {kind}: {count}" for kind, count in m["errors_by_type"].items())

        for line in lines:
            self.info(line)


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "jobmate", level: str = "INFO", **kwargs) -> StructuredLogger:
    """
    Return the process-wide logger, creating it on first use.

    Arguments only matter on the first call; later calls get the existing
    instance unchanged. Extra keyword arguments go to StructuredLogger.
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)
    return _global_logger


def reset_logger():
    """Drop the process-wide logger so the next get_logger() builds a fresh one."""
    global _global_logger
    _global_logger = None
