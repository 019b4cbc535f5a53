"""
Structured logging for crudsql.

Provides centralized logging with console and file outputs, plus
statement metrics for monitoring repository health.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional
from datetime import datetime
import json


# Handlers attached by StructuredLogger, by logger name
_installed_handlers: Dict[str, List[logging.Handler]] = {}


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for executed statements.
    """

    def __init__(
        self,
        name: str = "crudsql",
        level: str = "WARNING",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        # Replace our own handlers from an earlier instance, leave the rest
        for handler in _installed_handlers.pop(name, []):
            self.logger.removeHandler(handler)
            handler.close()
        installed = _installed_handlers.setdefault(name, [])

        # Metrics tracking
        self.metrics = {
            "statements_executed": 0,
            "statements_failed": 0,
            "rows_affected": 0,
            "errors_by_type": {},
            "operations": {},
        }

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)
            installed.append(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"crudsql_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)
            installed.append(file_handler)

        # Nothing configured: stay quiet instead of falling back to stderr
        if not installed:
            null_handler = logging.NullHandler()
            self.logger.addHandler(null_handler)
            installed.append(null_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def _operation(self, operation: str) -> dict:
        if operation not in self.metrics["operations"]:
            self.metrics["operations"][operation] = {
                "attempts": 0,
                "successes": 0
            }
        return self.metrics["operations"][operation]

    def record_statement(self, operation: str):
        """Record a statement about to be executed for an operation."""
        self._operation(operation)["attempts"] += 1

    def record_success(self, operation: str, rows: int = 0):
        """Record a statement that completed."""
        self.metrics["statements_executed"] += 1
        self.metrics["rows_affected"] += max(rows, 0)
        self._operation(operation)["successes"] += 1

    def record_failure(self, operation: str, error_type: str):
        """Record a statement that failed."""
        self.metrics["statements_failed"] += 1
        self._operation(operation)
        self.record_error(error_type)

    def record_error(self, error_type: str):
        """Count an error by type without touching statement totals."""
        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        metrics_copy["operations"] = {
            op: dict(stats) for op, stats in self.metrics["operations"].items()
        }
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        for operation, stats in metrics_copy["operations"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        executed = metrics["statements_executed"]
        failed = metrics["statements_failed"]
        total = executed + failed
        overall_rate = 0
        if total > 0:
            overall_rate = round(executed / total * 100, 1)

        self.info("=== Repository Metrics ===")
        self.info(f"Statements: {executed}/{total} ({overall_rate}% success)")
        self.info(f"Rows affected: {metrics['rows_affected']}")

        if metrics["operations"]:
            self.info("Operation Success Rates:")
            for operation, stats in metrics["operations"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {operation}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "crudsql",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Unset options are taken from the CRUDSQL_LOG_* variables: the level
    from CRUDSQL_LOG_LEVEL (WARNING if unset or unknown), file logging only
    when CRUDSQL_LOG_DIR is set, and console output only when
    CRUDSQL_LOG_CONSOLE is truthy.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        from .config import logging_options

        options = logging_options()
        if level is None:
            level = options["level"]
        if "log_dir" not in kwargs and "enable_file" not in kwargs:
            kwargs["enable_file"] = options["log_dir"] is not None
            kwargs["log_dir"] = options["log_dir"]
        kwargs.setdefault("enable_console", options["enable_console"])
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
