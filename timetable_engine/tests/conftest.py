# timetable_engine/tests/conftest.py

"""
Pytest configuration and fixtures for timetable engine tests.
"""

import logging

import pytest

from timetable_engine.config import SearchConfig, TimetableEngineConfig
from timetable_engine.utils.logging import LogLevel, SchedulingLogger
from timetable_engine.utils.performance import PerformanceProfiler

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@pytest.fixture
def quiet_config():
    """Engine configuration without structured logging or profiling"""
    return TimetableEngineConfig(
        search=SearchConfig(),
        enable_logging=False,
        enable_profiling=False,
    )


@pytest.fixture
def scheduling_logger():
    """Fresh structured logger that records DEBUG entries"""
    return SchedulingLogger(name="timetable_engine.tests", level=LogLevel.DEBUG)


@pytest.fixture
def profiler():
    """Fresh profiler, isolated from the global instance"""
    return PerformanceProfiler(name="timetable_engine_tests")
