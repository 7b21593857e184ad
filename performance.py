"""
Parallel processing and progress tracking for Storyblok Asset Clone
"""

import time
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Dict, Any, Optional, Callable

from config import SIMULTANEOUS_UPLOADS
from logging_config import logger


class PerformanceMonitor:
    """Monitor and track performance metrics"""

    def __init__(self):
        self.metrics = self._empty_metrics()
        self.start_time = None
        self.lock = threading.Lock()

    @staticmethod
    def _empty_metrics() -> Dict[str, Any]:
        return {
            "total_operations": 0,
            "successful_operations": 0,
            "failed_operations": 0,
            "total_time": 0,
            "operations_per_second": 0,
        }

    def start_timing(self):
        """Start timing a batch"""
        self.start_time = time.time()

    def record(self, success: bool = True):
        """Record one settled operation"""
        with self.lock:
            self.metrics["total_operations"] += 1
            if success:
                self.metrics["successful_operations"] += 1
            else:
                self.metrics["failed_operations"] += 1

    def end_timing(self):
        """End timing and update throughput"""
        if self.start_time is None:
            return

        duration = time.time() - self.start_time

        with self.lock:
            self.metrics["total_time"] = duration
            if duration > 0:
                self.metrics["operations_per_second"] = (
                    self.metrics["total_operations"] / duration
                )

    def get_metrics(self) -> Dict[str, Any]:
        """Get current performance metrics"""
        with self.lock:
            return self.metrics.copy()

    def reset_metrics(self):
        """Reset all metrics"""
        with self.lock:
            self.metrics = self._empty_metrics()
        self.start_time = None


class ProgressCounter:
    """Monotonic counter shared by concurrent completions"""

    def __init__(self, total: int = 0, callback: Optional[Callable[[int, int], None]] = None):
        self.total = total
        self.callback = callback
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> int:
        """Increment and notify the callback; returns the new value"""
        with self._lock:
            self._value += 1
            current = self._value
            # Callback runs under the lock so reported values never go backwards
            if self.callback:
                self.callback(current, self.total)
        return current


class ParallelProcessor:
    """Bounded thread pool that waits for every item to settle"""

    def __init__(self, max_workers: int = SIMULTANEOUS_UPLOADS):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.monitor = PerformanceMonitor()

    def process_all(
        self,
        items: List[Any],
        process_func: Callable[[Any], Any],
        operation: str = "parallel_processing",
        progress: Optional[ProgressCounter] = None,
        is_success: Optional[Callable[[Any], bool]] = None,
    ) -> List[Any]:
        """Run process_func over items with at most max_workers in flight.

        Returns results in input order once every item has settled. An item
        whose function raises is logged and yields None; the other items are
        unaffected.
        """
        if not items:
            return []

        results: List[Any] = [None] * len(items)

        logger.log_operation_start(
            operation, total_items=len(items), max_workers=self.max_workers
        )

        self.monitor.reset_metrics()
        self.monitor.start_timing()

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(process_func, item): index
                for index, item in enumerate(items)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    result = future.result()
                except Exception as e:
                    logger.log_error(e, {"operation": operation, "item": index})
                    result = None

                results[index] = result
                succeeded = result is not None and (is_success(result) if is_success else True)
                self.monitor.record(success=succeeded)

                current = progress.increment() if progress else None
                if current is not None:
                    logger.log_batch_progress(operation, current, len(items))

        self.monitor.end_timing()

        logger.log_operation_end(
            operation,
            True,
            total_processed=len(items),
            metrics=self.monitor.get_metrics(),
        )

        return results
