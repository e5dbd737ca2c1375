# timetable_engine/__init__.py

"""
Timetable Engine Package Initialization

Enumerates every course timetable that satisfies a set of user constraints:
one section (and tutorial, where required) per chosen course, no overlapping
blocks, no class inside a blocked period, and per-group and global bounds on
the number of courses taken.
"""

from .config import (
    TimetableEngineConfig,
    SearchConfig,
    EngineSettings,
    config,
    load_config,
    get_logger,
)

from .core import (
    TimetableEngineError,
    DomainError,
    SearchBudgetExceededError,
    Weekday,
    BlockedKind,
    TimeSlot,
    Tutorial,
    Section,
    Course,
    Group,
    BlockedPeriod,
    GlobalConstraints,
    TimetableRequest,
    Selection,
    Skipped,
    Configuration,
    SearchStatistics,
    time_slots_conflict,
    conflicts_with_blocked,
)
from .search import TimetableGenerator, generate_timetables
from .schemas import parse_timetable_input, serialize_configurations

__version__ = "1.0.0"

# Package-level exports
__all__ = [
    # Configuration
    "TimetableEngineConfig",
    "SearchConfig",
    "EngineSettings",
    "config",
    "load_config",
    "get_logger",
    # Errors
    "TimetableEngineError",
    "DomainError",
    "SearchBudgetExceededError",
    # Domain model
    "Weekday",
    "BlockedKind",
    "TimeSlot",
    "Tutorial",
    "Section",
    "Course",
    "Group",
    "BlockedPeriod",
    "GlobalConstraints",
    "TimetableRequest",
    "time_slots_conflict",
    "conflicts_with_blocked",
    # Results
    "Selection",
    "Skipped",
    "Configuration",
    "SearchStatistics",
    # Engine
    "TimetableGenerator",
    "generate_timetables",
    # Boundary schemas
    "parse_timetable_input",
    "serialize_configurations",
]

# Initialize package-level logger
logger = get_logger("main")
logger.debug(f"Timetable Engine v{__version__} initialized")
