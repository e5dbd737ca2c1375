# timetable_engine/core/__init__.py

"""
Core module for timetable engine data structures
"""

from .exceptions import (
    TimetableEngineError,
    DomainError,
    SearchBudgetExceededError,
)
from .problem_model import (
    MINUTES_PER_DAY,
    BlockKey,
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
    time_slots_conflict,
    conflicts_with_blocked,
    section_key,
    tutorial_key,
)
from .solution import Selection, Skipped, AssignmentEntry, Configuration
from .metrics import SearchStatistics

__all__ = [
    # Errors
    "TimetableEngineError",
    "DomainError",
    "SearchBudgetExceededError",
    # Problem model
    "MINUTES_PER_DAY",
    "BlockKey",
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
    "section_key",
    "tutorial_key",
    # Solution model
    "Selection",
    "Skipped",
    "AssignmentEntry",
    "Configuration",
    # Metrics
    "SearchStatistics",
]
