# timetable_engine/schemas/__init__.py

from .timetable import (
    TimeSlotSchema,
    TutorialSchema,
    SectionSchema,
    CourseSchema,
    GroupSchema,
    BlockedTimeslotSchema,
    GlobalConstraintsSchema,
    TimetableInputSchema,
    SelectedCourseSchema,
    TimetableConfigurationSchema,
    parse_timetable_input,
    serialize_configurations,
)

__all__ = [
    "TimeSlotSchema",
    "TutorialSchema",
    "SectionSchema",
    "CourseSchema",
    "GroupSchema",
    "BlockedTimeslotSchema",
    "GlobalConstraintsSchema",
    "TimetableInputSchema",
    "SelectedCourseSchema",
    "TimetableConfigurationSchema",
    "parse_timetable_input",
    "serialize_configurations",
]
