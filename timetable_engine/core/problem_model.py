# timetable_engine/core/problem_model.py

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple

from .exceptions import DomainError

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440

# (course_id, section_id) or (course_id, section_id, tutorial_id)
BlockKey = Tuple[str, ...]


class Weekday(Enum):
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @classmethod
    def parse(cls, value: Any) -> "Weekday":
        """Accept a Weekday or its string value ("Mon", "Tue", ...)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise DomainError(f"Unknown weekday: {value!r}", cause=e) from e


class BlockedKind(Enum):
    BEFORE = "before"
    BETWEEN = "between"
    AFTER = "after"


def _parse_days(days: Iterable[Any]) -> FrozenSet[Weekday]:
    return frozenset(Weekday.parse(d) for d in days)


def _sorted_days(days: Iterable[Weekday]) -> List[str]:
    order = list(Weekday)
    return [d.value for d in sorted(days, key=order.index)]


def _check_bound(value: Optional[int], name: str, owner: str) -> None:
    if value is not None and value < 0:
        raise DomainError(f"{owner} {name} must be >= 0, got {value}")


def section_key(course_id: str, section_id: str) -> BlockKey:
    return (course_id, section_id)


def tutorial_key(course_id: str, section_id: str, tutorial_id: str) -> BlockKey:
    return (course_id, section_id, tutorial_id)


@dataclass(frozen=True)
class TimeSlot:
    """A weekly-recurring block: a set of weekdays and a minute-of-day interval."""

    days: FrozenSet[Weekday]
    start_minute: int
    end_minute: int

    def __post_init__(self):
        object.__setattr__(self, "days", _parse_days(self.days))
        if not self.days:
            raise DomainError("Timeslot must have at least one day")
        if not 0 <= self.start_minute < MINUTES_PER_DAY:
            raise DomainError(
                f"Timeslot start {self.start_minute} outside [0, {MINUTES_PER_DAY})"
            )
        if self.end_minute <= self.start_minute:
            raise DomainError(
                f"Timeslot end {self.end_minute} must be after start {self.start_minute}"
            )
        if self.end_minute > MINUTES_PER_DAY:
            raise DomainError(
                f"Timeslot end {self.end_minute} exceeds {MINUTES_PER_DAY}"
            )

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    def overlaps(self, other: "TimeSlot") -> bool:
        return time_slots_conflict(self, other)

    def to_dict(self) -> Dict[str, Any]:
        """Converts the TimeSlot object to a dictionary."""
        return {
            "days": _sorted_days(self.days),
            "start_minute": self.start_minute,
            "end_minute": self.end_minute,
        }


def _coerce_slot(value: Any, **ids: Optional[str]) -> TimeSlot:
    """Build a TimeSlot from a TimeSlot, a mapping of its fields or a
    (days, start_minute, end_minute) triple, naming ``ids`` on failure."""
    if isinstance(value, TimeSlot):
        return value
    try:
        if isinstance(value, Mapping):
            return TimeSlot(**value)
        days, start_minute, end_minute = value
        return TimeSlot(days, start_minute, end_minute)
    except DomainError as e:
        raise e.with_context(**ids)
    except (TypeError, ValueError) as e:
        raise DomainError(f"Invalid time {value!r}", cause=e, **ids) from e


def _coerce_entity(cls: type, value: Any, **ids: Optional[str]) -> Any:
    """Accept an instance of ``cls`` or a mapping of its fields. Errors raised
    while building it are extended with the ids of the enclosing entity."""
    if isinstance(value, cls):
        return value
    if not isinstance(value, Mapping):
        raise DomainError(
            f"Expected a {cls.__name__}, got {type(value).__name__}", **ids
        )
    try:
        return cls(**value)
    except DomainError as e:
        raise e.with_context(**ids)
    except TypeError as e:
        raise DomainError(f"Invalid {cls.__name__} {value!r}", cause=e, **ids) from e


@dataclass(frozen=True)
class Tutorial:
    id: str
    time: TimeSlot
    display_name: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise DomainError("Tutorial missing id")
        object.__setattr__(self, "time", _coerce_slot(self.time, tutorial_id=self.id))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "time": self.time.to_dict(),
        }


@dataclass(frozen=True)
class Section:
    id: str
    time: TimeSlot
    requires_tutorial: bool = False
    tutorials: Tuple[Tutorial, ...] = ()
    suffix: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise DomainError("Section missing id")
        object.__setattr__(
            self,
            "tutorials",
            tuple(_coerce_entity(Tutorial, t, section_id=self.id) for t in self.tutorials),
        )
        object.__setattr__(self, "time", _coerce_slot(self.time, section_id=self.id))
        if self.requires_tutorial and not self.tutorials:
            raise DomainError(
                f"Section {self.id} requires a tutorial but none provided",
                section_id=self.id,
            )
        seen = set()
        for tutorial in self.tutorials:
            if tutorial.id in seen:
                raise DomainError(
                    f"Duplicate tutorial id {tutorial.id} in section {self.id}",
                    section_id=self.id,
                    tutorial_id=tutorial.id,
                )
            seen.add(tutorial.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "suffix": self.suffix,
            "time": self.time.to_dict(),
            "requires_tutorial": self.requires_tutorial,
            "tutorials": [t.to_dict() for t in self.tutorials],
        }


@dataclass(frozen=True)
class Course:
    """A course and its interchangeable sections.

    Validated once at construction. Groups hold Course values directly; the
    request catalog deduplicates them by id.
    """

    id: str
    sections: Tuple[Section, ...] = ()
    required: bool = False
    display_name: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise DomainError("Course must have an id")
        object.__setattr__(
            self,
            "sections",
            tuple(_coerce_entity(Section, s, course_id=self.id) for s in self.sections),
        )
        seen = set()
        for section in self.sections:
            if section.id in seen:
                raise DomainError(
                    f"Duplicate section id {section.id} in course {self.id}",
                    course_id=self.id,
                    section_id=section.id,
                )
            seen.add(section.id)

    def iter_blocks(self) -> Iterator[Tuple[BlockKey, TimeSlot]]:
        """Yield every section and tutorial of this course with its key."""
        for section in self.sections:
            yield section_key(self.id, section.id), section.time
            for tutorial in section.tutorials:
                yield tutorial_key(self.id, section.id, tutorial.id), tutorial.time

    def is_selected(self, chosen_ids: FrozenSet[BlockKey]) -> bool:
        """True if a section of this course (plus a tutorial, when the section
        demands one) is among the chosen block keys."""
        for section in self.sections:
            if section_key(self.id, section.id) not in chosen_ids:
                continue
            if section.requires_tutorial and not any(
                tutorial_key(self.id, section.id, t.id) in chosen_ids
                for t in section.tutorials
            ):
                continue
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "required": self.required,
            "sections": [s.to_dict() for s in self.sections],
        }


@dataclass(frozen=True)
class Group:
    id: str
    courses: Tuple[Course, ...] = ()
    min_select: Optional[int] = None
    max_select: Optional[int] = None
    display_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "courses", tuple(self.courses))
        if not self.id:
            raise DomainError("Group must have an id")
        _check_bound(self.min_select, "min_select", f"Group {self.id}")
        _check_bound(self.max_select, "max_select", f"Group {self.id}")

    @property
    def course_ids(self) -> Tuple[str, ...]:
        """Member course ids, each listed once, in declared order."""
        return tuple(dict.fromkeys(c.id for c in self.courses))

    def admits(self, num_selected: int) -> bool:
        if self.min_select is not None and num_selected < self.min_select:
            return False
        if self.max_select is not None and num_selected > self.max_select:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "course_ids": list(self.course_ids),
            "min_select": self.min_select,
            "max_select": self.max_select,
        }


@dataclass(frozen=True)
class BlockedPeriod:
    """A user-declared forbidden period. Empty ``days`` means every day."""

    id: str
    kind: BlockedKind
    days: FrozenSet[Weekday] = frozenset()
    start_minute: Optional[int] = None
    end_minute: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "days", _parse_days(self.days))
        if not isinstance(self.kind, BlockedKind):
            try:
                object.__setattr__(self, "kind", BlockedKind(self.kind))
            except ValueError as e:
                raise DomainError(
                    f"Unknown blocked period kind {self.kind!r} for {self.id}",
                    cause=e,
                ) from e
        if self.kind is BlockedKind.BEFORE and self.end_minute is None:
            logger.warning(f"Blocked period {self.id} (before) has no end; it blocks nothing")
        if self.kind is BlockedKind.AFTER and self.start_minute is None:
            logger.warning(f"Blocked period {self.id} (after) has no start; it blocks nothing")

    def blocks(self, slot: TimeSlot) -> bool:
        return conflicts_with_blocked(slot, self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "days": _sorted_days(self.days),
            "start_minute": self.start_minute,
            "end_minute": self.end_minute,
        }


@dataclass(frozen=True)
class GlobalConstraints:
    min_courses: Optional[int] = None
    max_courses: Optional[int] = None
    blocked_periods: Tuple[BlockedPeriod, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "blocked_periods", tuple(self.blocked_periods))
        _check_bound(self.min_courses, "min_courses", "Global constraints")
        _check_bound(self.max_courses, "max_courses", "Global constraints")

    def admits(self, num_selected: int) -> bool:
        if self.min_courses is not None and num_selected < self.min_courses:
            return False
        if self.max_courses is not None and num_selected > self.max_courses:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_courses": self.min_courses,
            "max_courses": self.max_courses,
            "blocked_periods": [b.to_dict() for b in self.blocked_periods],
        }


@dataclass(frozen=True)
class TimetableRequest:
    """Everything one generation run needs: groups and global constraints."""

    groups: Tuple[Group, ...] = ()
    global_constraints: GlobalConstraints = field(default_factory=GlobalConstraints)

    def __post_init__(self):
        object.__setattr__(self, "groups", tuple(self.groups))

    @property
    def catalog(self) -> List[Course]:
        """Courses of all groups, deduplicated by id; first occurrence wins."""
        by_id: Dict[str, Course] = {}
        for group in self.groups:
            for course in group.courses:
                existing = by_id.get(course.id)
                if existing is None:
                    by_id[course.id] = course
                elif existing != course:
                    logger.warning(
                        f"Course {course.id} in group {group.id} differs from its "
                        f"first occurrence; the first occurrence is used"
                    )
        return list(by_id.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "courses": [c.to_dict() for c in self.catalog],
            "global_constraints": self.global_constraints.to_dict(),
        }


def time_slots_conflict(a: TimeSlot, b: TimeSlot) -> bool:
    """Half-open minute intervals overlapping on at least one shared day."""
    if a.days.isdisjoint(b.days):
        return False
    return a.start_minute < b.end_minute and b.start_minute < a.end_minute


def conflicts_with_blocked(slot: TimeSlot, blocked: BlockedPeriod) -> bool:
    """Whether ``slot`` falls inside the forbidden period ``blocked``.

    before:  conflict if the slot starts before the blocked end (default 0).
    after:   conflict if the slot ends after the blocked start (default 1440).
    between: conflict if the intervals overlap (defaults 0 / 1440).
    """
    effective_days = blocked.days or slot.days
    if slot.days.isdisjoint(effective_days):
        return False

    if blocked.kind is BlockedKind.BEFORE:
        end = blocked.end_minute if blocked.end_minute is not None else 0
        return slot.start_minute < end
    if blocked.kind is BlockedKind.AFTER:
        start = (
            blocked.start_minute
            if blocked.start_minute is not None
            else MINUTES_PER_DAY
        )
        return slot.end_minute > start
    if blocked.kind is BlockedKind.BETWEEN:
        start = blocked.start_minute if blocked.start_minute is not None else 0
        end = blocked.end_minute if blocked.end_minute is not None else MINUTES_PER_DAY
        return slot.start_minute < end and start < slot.end_minute
    return False
