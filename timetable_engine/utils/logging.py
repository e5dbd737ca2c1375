# timetable_engine/utils/logging.py

"""
Structured logging utilities for the timetable engine with phase timing,
operation timers and search-specific counters.
"""

import logging
import json
import time
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple, Union
from enum import Enum
from dataclasses import dataclass, field
from contextlib import contextmanager
import threading
from collections import defaultdict, deque
import statistics


class LogLevel(Enum):
    """Log levels understood by SchedulingLogger"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def python_level(self) -> int:
        return getattr(logging, self.value)


class SchedulingPhase(Enum):
    """Phases of a generation run for context logging"""

    CATALOG_BUILDING = "catalog_building"
    ENUMERATION = "enumeration"
    VALIDATION = "validation"
    FINALIZATION = "finalization"


@dataclass
class LogEntry:
    """Structured log entry for engine operations"""

    timestamp: datetime
    level: LogLevel
    phase: Optional[SchedulingPhase]
    component: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    performance_metrics: Dict[str, Union[int, float]] = field(default_factory=dict)
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary for JSON serialization"""
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "phase": self.phase.value if self.phase else None,
            "component": self.component,
            "message": self.message,
            "context": self.context,
            "performance_metrics": self.performance_metrics,
            "correlation_id": self.correlation_id,
        }


class SchedulingLogger:
    """
    Logger for generation runs. Every entry is kept in a bounded buffer for
    later analysis and forwarded as JSON to a standard Python logger.
    """

    def __init__(
        self,
        name: str = "timetable_engine",
        level: LogLevel = LogLevel.INFO,
        correlation_id: Optional[str] = None,
        max_log_entries: int = 10000,
    ):
        self.name = name
        self.level = level
        self.correlation_id = correlation_id

        self._setup_python_logger()

        # keyed per thread so concurrent runs sharing this logger stay paired
        self._phase_timers: Dict[Tuple[SchedulingPhase, int], float] = {}
        self._operation_timers: Dict[str, List[float]] = defaultdict(list)
        self._counters: Dict[str, int] = defaultdict(int)

        self._log_entries: deque = deque(maxlen=max_log_entries)
        self._lock = threading.Lock()

    def _setup_python_logger(self):
        """Setup the underlying Python logger with a structured handler"""
        self._logger = logging.getLogger(self.name)
        self._logger.setLevel(self.level.python_level)

        # filtering happens on the logger so a later level change reaches the handler
        if not self._logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(StructuredFormatter())
            self._logger.addHandler(console_handler)

    def _log(
        self,
        level: LogLevel,
        message: str,
        phase: Optional[SchedulingPhase] = None,
        component: str = "core",
        context: Optional[Dict[str, Any]] = None,
        performance_metrics: Optional[Dict[str, Union[int, float]]] = None,
    ):
        """Core logging method with structured data"""
        if level.python_level < self.level.python_level:
            return

        with self._lock:
            entry = LogEntry(
                timestamp=datetime.now(),
                level=level,
                phase=phase,
                component=component,
                message=message,
                context=context or {},
                performance_metrics=performance_metrics or {},
                correlation_id=self.correlation_id,
            )
            self._log_entries.append(entry)

        self._logger.log(level.python_level, json.dumps(entry.to_dict(), default=str))

    def debug(self, message: str, **kwargs):
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(LogLevel.ERROR, message, **kwargs)

    # Phase-aware logging methods
    def log_phase_start(
        self, phase: SchedulingPhase, context: Optional[Dict[str, Any]] = None
    ):
        """Log the start of a generation phase"""
        with self._lock:
            self._phase_timers[(phase, threading.get_ident())] = time.time()
        self.debug(f"Starting {phase.value} phase", phase=phase, context=context or {})

    def log_phase_end(
        self, phase: SchedulingPhase, context: Optional[Dict[str, Any]] = None
    ):
        """Log the end of a generation phase"""
        with self._lock:
            started = self._phase_timers.pop((phase, threading.get_ident()), None)
        if started is not None:
            duration = time.time() - started
            self.info(
                f"Completed {phase.value} phase",
                phase=phase,
                context=context or {},
                performance_metrics={"duration_seconds": duration},
            )
        else:
            self.warning(f"Phase {phase.value} ended without corresponding start")

    @contextmanager
    def phase_context(
        self, phase: SchedulingPhase, context: Optional[Dict[str, Any]] = None
    ):
        """Context manager for automatic phase timing"""
        self.log_phase_start(phase, context)
        try:
            yield
        finally:
            self.log_phase_end(phase, context)

    @contextmanager
    def operation_timer(self, operation_name: str):
        """Context manager for timing specific operations"""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            with self._lock:
                self._operation_timers[operation_name].append(duration)

            self.debug(
                f"Operation {operation_name} completed",
                performance_metrics={"duration_seconds": duration},
            )

    def increment_counter(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] += value

    def get_counter(self, counter_name: str) -> int:
        with self._lock:
            return self._counters.get(counter_name, 0)

    def log_search_statistics(self, stats: Dict[str, Any]):
        """Log the counters of a finished enumeration run"""
        self.info(
            "Search statistics",
            phase=SchedulingPhase.ENUMERATION,
            component="backtracking",
            context=stats,
        )

    def log_constraint_violations(self, violations: List[Dict[str, Any]]):
        """Log violations found while re-checking generated configurations"""
        if violations:
            self.warning(
                f"Found {len(violations)} constraint violations",
                phase=SchedulingPhase.VALIDATION,
                component="configuration_validator",
                context={"violations": violations},
            )
        else:
            self.info(
                "No constraint violations found",
                phase=SchedulingPhase.VALIDATION,
                component="configuration_validator",
            )

    def get_operation_performance_summary(self) -> Dict[str, Any]:
        """Get performance summary for timed operations"""
        summary = {}

        with self._lock:
            for operation, durations in self._operation_timers.items():
                if durations:
                    summary[operation] = {
                        "total_time": sum(durations),
                        "average_time": statistics.mean(durations),
                        "min_time": min(durations),
                        "max_time": max(durations),
                        "count": len(durations),
                    }

        return summary

    def get_entries(self, phase: Optional[SchedulingPhase] = None) -> List[LogEntry]:
        with self._lock:
            entries = list(self._log_entries)
        if phase is None:
            return entries
        return [e for e in entries if e.phase is phase]

    def export_logs(self, filepath: str):
        """Export buffered entries to a JSON file"""
        with self._lock:
            log_data = [entry.to_dict() for entry in self._log_entries]

        with open(filepath, "w") as f:
            json.dump(log_data, f, indent=2, default=str)

    def clear_logs(self):
        with self._lock:
            self._log_entries.clear()
            self._operation_timers.clear()
            self._counters.clear()


class StructuredFormatter(logging.Formatter):
    """Render JSON log entries as a single readable line"""

    def format(self, record):
        try:
            log_data = json.loads(record.getMessage())

            parts = [
                f"[{log_data.get('timestamp', '')}]",
                f"[{log_data.get('level', 'INFO')}]",
            ]
            if log_data.get("phase"):
                parts.append(f"[{log_data['phase']}]")
            if log_data.get("component"):
                parts.append(f"[{log_data['component']}]")
            parts.append(log_data.get("message", ""))

            perf_metrics = log_data.get("performance_metrics", {})
            if perf_metrics:
                metrics_str = " | ".join(f"{k}={v}" for k, v in perf_metrics.items())
                parts.append(f"| {metrics_str}")

            return " ".join(parts)

        except (json.JSONDecodeError, AttributeError):
            return super().format(record)


# Global logger instance
_default_logger: Optional[SchedulingLogger] = None


def get_logger(
    name: str = "timetable_engine",
    correlation_id: Optional[str] = None,
    level: Optional[LogLevel] = None,
) -> SchedulingLogger:
    """
    Get or create a scheduling logger instance. A level that differs from the
    cached logger's replaces it; no level keeps whatever is cached.
    """
    global _default_logger

    if (
        _default_logger is None
        or _default_logger.name != name
        or (level is not None and _default_logger.level is not level)
    ):
        _default_logger = SchedulingLogger(
            name=name, level=level or LogLevel.INFO, correlation_id=correlation_id
        )

    return _default_logger


def setup_logging(level: LogLevel = LogLevel.INFO, name: str = "timetable_engine"):
    """Setup global logging configuration"""
    global _default_logger
    _default_logger = SchedulingLogger(name=name, level=level)
    return _default_logger


def log_operation(operation_name: str, logger: Optional[SchedulingLogger] = None):
    """Decorator to automatically log and time function operations"""

    def decorator(func):
        def wrapper(*args, **kwargs):
            log = logger or get_logger()
            with log.operation_timer(operation_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator
