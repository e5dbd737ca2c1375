# timetable_engine/utils/__init__.py

"""
Utilities package for the timetable engine.
Provides logging, performance monitoring, and validation utilities.
"""

from .logging import (
    SchedulingLogger,
    LogLevel,
    SchedulingPhase,
    LogEntry,
    StructuredFormatter,
    get_logger,
    setup_logging,
    log_operation,
)

from .performance import (
    PerformanceProfiler,
    PerformanceMetricType,
    PerformanceMetric,
    TimingMetrics,
    MemoryMetrics,
    get_profiler,
    profile_performance,
)

from .validation import (
    ConfigurationValidator,
    ConstraintValidator,
    ViolationType,
    ConstraintViolation,
    ValidationResult,
    quick_validate,
    validate_with_report,
)

__all__ = [
    # Logging utilities
    "SchedulingLogger",
    "LogLevel",
    "SchedulingPhase",
    "LogEntry",
    "StructuredFormatter",
    "get_logger",
    "setup_logging",
    "log_operation",
    # Performance monitoring
    "PerformanceProfiler",
    "PerformanceMetricType",
    "PerformanceMetric",
    "TimingMetrics",
    "MemoryMetrics",
    "get_profiler",
    "profile_performance",
    # Validation utilities
    "ConfigurationValidator",
    "ConstraintValidator",
    "ViolationType",
    "ConstraintViolation",
    "ValidationResult",
    "quick_validate",
    "validate_with_report",
]
