# timetable_engine/utils/performance.py

"""
Performance monitoring utilities for the timetable engine.
Times operations (wall and CPU time) and samples process memory so callers
can see how expensive an enumeration run was.
"""

import time
import psutil
import gc
import threading
from datetime import datetime
from typing import Dict, List, Any, Optional, Union
from dataclasses import dataclass, field
from collections import defaultdict, deque
from enum import Enum
import statistics
from contextlib import contextmanager


class PerformanceMetricType(Enum):
    """Types of performance metrics tracked"""

    TIMING = "timing"
    MEMORY = "memory"
    SEARCH = "search"


@dataclass
class PerformanceMetric:
    """Individual performance metric with metadata"""

    name: str
    value: Union[int, float, str]
    metric_type: PerformanceMetricType
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TimingMetrics:
    """Timing metrics for one operation"""

    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    cpu_time: Optional[float] = None

    def finalize(self):
        """Finalize timing measurements"""
        if self.end_time is None:
            self.end_time = time.time()
        self.duration = self.end_time - self.start_time


@dataclass
class MemoryMetrics:
    """Memory usage metrics"""

    rss_mb: float  # Resident Set Size in MB
    vms_mb: float  # Virtual Memory Size in MB
    percent: float
    available_mb: float
    gc_collections: int = 0


class PerformanceProfiler:
    """Collects timings, memory samples, counters and gauges."""

    def __init__(self, name: str = "timetable_performance", max_samples: int = 10000):
        self.name = name

        self._metrics: deque = deque(maxlen=max_samples)
        self._timing_data: Dict[str, List[TimingMetrics]] = defaultdict(list)
        self._counters: Dict[str, int] = defaultdict(int)
        self._gauges: Dict[str, float] = defaultdict(float)

        self._lock = threading.Lock()

    def _record_metric(
        self,
        name: str,
        value: Union[int, float, str],
        metric_type: PerformanceMetricType,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self._metrics.append(
            PerformanceMetric(
                name=name,
                value=value,
                metric_type=metric_type,
                timestamp=datetime.now(),
                metadata=metadata or {},
            )
        )

    @contextmanager
    def time_operation(self, operation_name: str):
        """Context manager for timing operations with wall and CPU time"""
        timing = TimingMetrics(start_time=time.time())

        process = psutil.Process()
        start_cpu_times = process.cpu_times()

        try:
            yield timing
        finally:
            timing.finalize()

            end_cpu_times = process.cpu_times()
            timing.cpu_time = (end_cpu_times.user - start_cpu_times.user) + (
                end_cpu_times.system - start_cpu_times.system
            )

            with self._lock:
                self._timing_data[operation_name].append(timing)
                self._record_metric(
                    f"{operation_name}_duration",
                    timing.duration,  # type: ignore
                    PerformanceMetricType.TIMING,
                    metadata={"operation": operation_name, "cpu_time": timing.cpu_time},
                )

    def snapshot_memory(self) -> MemoryMetrics:
        """Sample current process memory usage"""
        process = psutil.Process()
        memory_info = process.memory_info()
        metrics = MemoryMetrics(
            rss_mb=memory_info.rss / (1024 * 1024),
            vms_mb=memory_info.vms / (1024 * 1024),
            percent=process.memory_percent(),
            available_mb=psutil.virtual_memory().available / (1024 * 1024),
            gc_collections=sum(s["collections"] for s in gc.get_stats()),
        )
        with self._lock:
            self._record_metric(
                "memory_rss_mb",
                metrics.rss_mb,
                PerformanceMetricType.MEMORY,
                metadata={"memory_metrics": metrics.__dict__},
            )
        return metrics

    def track_search(self, nodes_visited: int, configurations_emitted: int):
        """Accumulate search counters across runs"""
        with self._lock:
            self._counters["nodes_visited"] += nodes_visited
            self._counters["configurations_emitted"] += configurations_emitted
            self._record_metric(
                "search_nodes",
                nodes_visited,
                PerformanceMetricType.SEARCH,
                metadata={"configurations_emitted": configurations_emitted},
            )

    # Counter and gauge methods
    def increment_counter(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] += value

    def set_gauge(self, name: str, value: float):
        with self._lock:
            self._gauges[name] = value

    def get_counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def get_gauge(self, name: str) -> float:
        with self._lock:
            return self._gauges.get(name, 0.0)

    def get_timing_analysis(
        self, operation_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get timing analysis per operation"""
        with self._lock:
            if operation_name:
                operations = {operation_name: list(self._timing_data.get(operation_name, []))}
            else:
                operations = {k: list(v) for k, v in self._timing_data.items()}

        analysis = {}
        for op_name, timing_list in operations.items():
            durations = [t.duration for t in timing_list if t.duration is not None]
            cpu_times = [t.cpu_time for t in timing_list if t.cpu_time is not None]
            if not durations:
                continue
            analysis[op_name] = {
                "count": len(durations),
                "total_duration": sum(durations),
                "average_duration": statistics.mean(durations),
                "median_duration": statistics.median(durations),
                "min_duration": min(durations),
                "max_duration": max(durations),
                "total_cpu_time": sum(cpu_times) if cpu_times else 0,
            }

        return analysis

    def generate_performance_report(self) -> Dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
        return {
            "profiler": self.name,
            "timing": self.get_timing_analysis(),
            "counters": counters,
            "gauges": gauges,
        }

    def reset(self):
        with self._lock:
            self._metrics.clear()
            self._timing_data.clear()
            self._counters.clear()
            self._gauges.clear()


# Global profiler instance
_default_profiler: Optional[PerformanceProfiler] = None


def get_profiler(name: str = "timetable_performance") -> PerformanceProfiler:
    """Get or create a performance profiler instance"""
    global _default_profiler

    if _default_profiler is None or _default_profiler.name != name:
        _default_profiler = PerformanceProfiler(name=name)

    return _default_profiler


def profile_performance(
    operation_name: Optional[str] = None,
    profiler: Optional[PerformanceProfiler] = None,
):
    """Decorator to automatically profile function performance"""

    def decorator(func):
        name = operation_name or func.__name__

        def wrapper(*args, **kwargs):
            prof = profiler or get_profiler()
            with prof.time_operation(name):
                return func(*args, **kwargs)

        return wrapper

    return decorator
