"""
Console logging for GreenScore scripts.

Lines look like:
    2026-05-01 12:00:00,042 | INFO     | recompute | recompute.py:88 | Shop score [shop=s1 score=96]

GreenScoreLogger adds key=value fields to messages and keeps the warnings and
errors of a run for an end-of-run summary.
"""

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class MillisecondsFormatter(logging.Formatter):
    """Timestamps as 'YYYY-mm-dd HH:MM:SS,mmm'."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - overrides logging.Formatter
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or "%Y-%m-%d %H:%M:%S")
        return f"{stamp},{int(record.msecs):03d}"


def _stream_handler(level: int, task: Optional[str]) -> logging.Handler:
    tag = f" {task} |" if task else ""
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        MillisecondsFormatter(f"%(asctime)s | %(levelname)-8s |{tag} %(filename)s:%(lineno)d | %(message)s")
    )
    return handler


def _level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")
    return level


def _with_fields(message: str, fields: dict) -> str:
    if not fields:
        return message
    return f"{message} [{' '.join(f'{k}={v}' for k, v in fields.items())}]"


@dataclass
class LoggedIssue:
    """A warning or error kept for the run summary."""

    message: str
    fields: dict = field(default_factory=dict)
    exception: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


class GreenScoreLogger:
    """Named logger with structured fields and a record of what went wrong."""

    def __init__(self, name: str = "greenscore", log_level: str = "INFO", task: Optional[str] = None):
        """
        Args:
            name: Logger name
            log_level: DEBUG, INFO, WARNING or ERROR
            task: Tag shown on every line (e.g. "recompute")
        """
        level = _level(log_level)
        self.task = task
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        # Own handler only; root output would print every line twice
        self.logger.propagate = False
        self.logger.handlers.clear()
        self.logger.addHandler(_stream_handler(level, task))

        self.warnings: list[LoggedIssue] = []
        self.errors: list[LoggedIssue] = []
        self.started_at: Optional[datetime] = None

    def debug(self, message: str, **fields):
        self.logger.debug(_with_fields(message, fields), stacklevel=2)

    def info(self, message: str, **fields):
        self.logger.info(_with_fields(message, fields), stacklevel=2)

    def warning(self, message: str, **fields):
        line = _with_fields(message, fields)
        self.logger.warning(line, stacklevel=2)
        self.warnings.append(LoggedIssue(message=line, fields=fields))

    def error(self, message: str, exception: Optional[BaseException] = None, **fields):
        line = _with_fields(f"{message}: {exception}" if exception else message, fields)
        self.logger.error(line, exc_info=exception, stacklevel=2)
        self.errors.append(
            LoggedIssue(message=line, fields=fields, exception=str(exception) if exception else None)
        )

    def log_run_start(self, num_shops: int):
        self.started_at = datetime.now()
        self.info("=" * 60)
        self.info(f"Starting {self.task or 'run'}", shops=num_shops)
        self.info("=" * 60)

    def log_run_complete(self, succeeded: int, failed: int):
        elapsed = (datetime.now() - self.started_at).total_seconds() if self.started_at else 0.0
        self.info("=" * 60)
        self.info(f"Finished {self.task or 'run'}", succeeded=succeeded, failed=failed, duration=f"{elapsed:.2f}s")
        if self.errors:
            self.info(f"{len(self.errors)} errors logged during run")
        self.info("=" * 60)

    def get_error_summary(self) -> dict:
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "errors": self.errors,
            "warnings": self.warnings,
        }


def get_logger(name: str = "greenscore", log_level: str = "INFO", task: Optional[str] = None) -> GreenScoreLogger:
    return GreenScoreLogger(name=name, log_level=log_level, task=task)


def configure_global_logging(log_level: str = "INFO", task: Optional[str] = None):
    """Send the root logger, and so every greenscore module logger, through the same format.

    Call once at script startup.
    """
    level = _level(log_level)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(_stream_handler(level, task))

    # PyMySQL is chatty at DEBUG
    logging.getLogger("pymysql").setLevel(logging.WARNING)
