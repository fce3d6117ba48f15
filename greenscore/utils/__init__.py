"""Logging and batch-processing helpers."""

from greenscore.utils.logger import GreenScoreLogger, configure_global_logging, get_logger
from greenscore.utils.worker_pool import PoolStats, TaskResult, WorkerPool

__all__ = ["GreenScoreLogger", "PoolStats", "TaskResult", "WorkerPool", "configure_global_logging", "get_logger"]
