"""
Utility functions for lazy collections

This module provides logging and settings helpers, plus tools for observing
how often a raw source is actually pulled.
"""

import gc
import logging
import sys
import time
import tracemalloc
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from .models import LazySettings, OperationMetrics


LOGGER_NAME = "lazy_collections"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'


@lru_cache(maxsize=1)
def get_settings() -> LazySettings:
    """Settings from the environment, read once per process"""
    return LazySettings.from_env()


def setup_logging(settings: Optional[LazySettings] = None) -> logging.Logger:
    """Setup structured logging for lazy collections"""
    if settings is None:
        settings = get_settings()
    logging.basicConfig(
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(settings.log_level)
    return logger


# ---------- Source observation ----------

class CountingIterable:
    """
    Wraps an iterable and records how it is consumed: how many times it was
    iterated and how many items it produced in total.
    """

    def __init__(self, source: Iterable[Any]):
        self._source = source
        self.iterations = 0
        self.produced = 0

    def __iter__(self) -> Iterator[Any]:
        self.iterations += 1
        for item in self._source:
            self.produced += 1
            yield item


# Global operation tracking
_operation_metrics: List[OperationMetrics] = []


def measure_operation(operation_name: str, collection, func: Callable, *args, **kwargs) -> OperationMetrics:
    """Measure time, peak memory and raw pulls of one call against a collection"""

    tracemalloc.start()
    gc.collect()
    pulls_before = collection.stats().pulls
    start_time = time.perf_counter()
    success, error = False, None

    try:
        func(*args, **kwargs)
        success = True
    except Exception as e:
        error = str(e)
        raise
    finally:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        metrics = OperationMetrics(
            operation=operation_name,
            success=success,
            execution_time_ms=execution_time_ms,
            memory_usage_mb=peak / 1024 / 1024,
            pulls=collection.stats().pulls - pulls_before,
            error=error
        )
        _operation_metrics.append(metrics)

    return metrics


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all measured operations"""
    count = len(_operation_metrics)
    if count == 0:
        return {
            "total_operations": 0,
            "total_time_ms": 0.0,
            "total_pulls": 0,
            "failed_operations": 0,
            "avg_time_ms": 0.0
        }

    total_time_ms = sum(m.execution_time_ms for m in _operation_metrics)
    return {
        "total_operations": count,
        "total_time_ms": total_time_ms,
        "total_pulls": sum(m.pulls for m in _operation_metrics),
        "failed_operations": sum(1 for m in _operation_metrics if not m.success),
        "avg_time_ms": total_time_ms / count
    }


def clear_performance_metrics():
    """Clear all recorded operation metrics"""
    _operation_metrics.clear()
