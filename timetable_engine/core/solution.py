# timetable_engine/core/solution.py
# Engine output: one Configuration per valid combination of section/tutorial
# choices. Configurations are built from a copy of the search state at the
# moment they are emitted and are never mutated afterwards.

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from .problem_model import BlockKey, TimeSlot, section_key, tutorial_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    course_id: str
    section_id: str
    section_time: TimeSlot
    section_suffix: Optional[str] = None
    tutorial_id: Optional[str] = None
    tutorial_time: Optional[TimeSlot] = None
    course_name: Optional[str] = None

    is_selected = True

    @property
    def block_keys(self) -> Tuple[BlockKey, ...]:
        keys = [section_key(self.course_id, self.section_id)]
        if self.tutorial_id is not None:
            keys.append(tutorial_key(self.course_id, self.section_id, self.tutorial_id))
        return tuple(keys)

    @property
    def time_blocks(self) -> Tuple[TimeSlot, ...]:
        if self.tutorial_time is None:
            return (self.section_time,)
        return (self.section_time, self.tutorial_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "course_id": self.course_id,
            "course_name": self.course_name,
            "section_id": self.section_id,
            "section_suffix": self.section_suffix,
            "tutorial_id": self.tutorial_id,
            "section_time": self.section_time.to_dict(),
            "tutorial_time": (
                self.tutorial_time.to_dict() if self.tutorial_time else None
            ),
        }


@dataclass(frozen=True)
class Skipped:
    """Explicit 'course not taken' entry."""

    course_id: str

    is_selected = False


AssignmentEntry = Union[Selection, Skipped]


@dataclass(frozen=True)
class Configuration:
    """One complete, constraint-satisfying assignment across all courses.

    ``entries`` maps every catalog course id to its Selection or Skipped
    entry, in catalog order. It is a read-only view over a private copy of
    the mapping the configuration was built from.
    """

    entries: Mapping[str, AssignmentEntry] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __hash__(self):
        return hash(frozenset(self.entries.items()))

    @property
    def selections(self) -> Dict[str, Optional[Selection]]:
        """course_id -> Selection, or None when the course was skipped."""
        return {
            cid: entry if isinstance(entry, Selection) else None
            for cid, entry in self.entries.items()
        }

    def get(self, course_id: str) -> Optional[Selection]:
        entry = self.entries.get(course_id)
        return entry if isinstance(entry, Selection) else None

    @property
    def selected(self) -> List[Selection]:
        return [e for e in self.entries.values() if isinstance(e, Selection)]

    @property
    def selected_course_ids(self) -> List[str]:
        return [s.course_id for s in self.selected]

    @property
    def num_selected(self) -> int:
        return len(self.selected)

    @property
    def selected_ids(self) -> FrozenSet[str]:
        """Every chosen section and tutorial id."""
        ids = set()
        for s in self.selected:
            ids.add(s.section_id)
            if s.tutorial_id is not None:
                ids.add(s.tutorial_id)
        return frozenset(ids)

    @property
    def block_keys(self) -> FrozenSet[BlockKey]:
        return frozenset(k for s in self.selected for k in s.block_keys)

    def time_blocks(self) -> List[Tuple[str, TimeSlot]]:
        """(course_id, slot) for every chosen section and tutorial."""
        return [(s.course_id, slot) for s in self.selected for slot in s.time_blocks]

    def canonical_key(self) -> str:
        parts = sorted(
            f"{s.course_id}:{s.section_id}:{s.tutorial_id or 'none'}"
            for s in self.selected
        )
        return "|".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_ids": sorted(self.selected_ids),
            "courses": {
                cid: entry.to_dict() if isinstance(entry, Selection) else None
                for cid, entry in self.entries.items()
            },
        }
