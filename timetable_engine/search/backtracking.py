# timetable_engine/search/backtracking.py

"""
Backtracking enumeration of every valid timetable.

The search walks the course catalog one course per level. At each level the
course is either skipped or assigned one non-conflicting section (and one
tutorial when the section demands it). Complete assignments are checked
against the required-course, group and global bounds before they are
emitted. Every node owns its own state, so popping the next node off the
search stack is all the undo a branch needs.
"""

import time
from contextlib import nullcontext
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from ..config import TimetableEngineConfig, config as default_config, get_logger
from ..core.exceptions import DomainError, SearchBudgetExceededError
from ..core.metrics import SearchStatistics
from ..core.problem_model import (
    BlockKey,
    Course,
    Section,
    TimeSlot,
    TimetableRequest,
    Tutorial,
    conflicts_with_blocked,
    section_key,
    time_slots_conflict,
    tutorial_key,
)
from ..core.solution import AssignmentEntry, Configuration, Selection, Skipped
from ..utils.logging import LogLevel, SchedulingLogger, SchedulingPhase
from ..utils.logging import get_logger as get_scheduling_logger
from ..utils.performance import PerformanceProfiler, get_profiler

logger = get_logger("search.backtracking")

Assignment = Dict[str, AssignmentEntry]
# (chosen block keys, assignment so far, number of selected courses)
SearchNode = Tuple[FrozenSet[BlockKey], Assignment, int]


class TimetableGenerator:
    """
    Enumerates all configurations of a TimetableRequest.

    Results come back in depth-first discovery order: for every course the
    skip branch is explored before the select branch, and sections and
    tutorials are tried in declared order. Running the same request twice
    gives identical lists.
    """

    def __init__(
        self,
        request: TimetableRequest,
        engine_config: Optional[TimetableEngineConfig] = None,
        logger: Optional[SchedulingLogger] = None,
        profiler: Optional[PerformanceProfiler] = None,
    ):
        if not isinstance(request, TimetableRequest):
            raise DomainError(
                f"Expected a TimetableRequest, got {type(request).__name__}"
            )

        self.request = request
        self.config = engine_config or default_config

        if logger is None and self.config.enable_logging:
            logger = get_scheduling_logger(level=LogLevel(self.config.log_level.upper()))
        self.scheduling_logger = logger

        if profiler is None and self.config.enable_profiling:
            profiler = get_profiler()
        self.profiler = profiler

        with self._phase(SchedulingPhase.CATALOG_BUILDING):
            self.catalog: List[Course] = request.catalog
            self._block_index = self._build_block_index()

        self._results: List[Configuration] = []
        self.statistics = SearchStatistics(catalog_size=len(self.catalog))

    def _phase(self, phase: SchedulingPhase, context: Optional[dict] = None):
        if self.scheduling_logger is None:
            return nullcontext()
        return self.scheduling_logger.phase_context(phase, context)

    def _build_block_index(self) -> Dict[BlockKey, TimeSlot]:
        index: Dict[BlockKey, TimeSlot] = {}
        for course in self.catalog:
            for key, slot in course.iter_blocks():
                index[key] = slot
        return index

    def generate(self) -> List[Configuration]:
        """Run the search and return every valid configuration."""
        self.statistics = SearchStatistics(catalog_size=len(self.catalog))
        self._results = []

        logger.info(
            f"Enumerating timetables for {len(self.catalog)} courses in "
            f"{len(self.request.groups)} groups"
        )

        timer = (
            self.profiler.time_operation("generate_timetables")
            if self.profiler is not None
            else nullcontext()
        )
        start_time = time.time()
        start_cpu = time.process_time()
        try:
            with timer, self._phase(
                SchedulingPhase.ENUMERATION, {"catalog_size": len(self.catalog)}
            ):
                self._backtrack(frozenset(), {}, 0)
        except SearchBudgetExceededError as e:
            self._finish_statistics(start_time, start_cpu)
            e.details = self.statistics.to_dict()
            logger.warning(
                f"Search stopped after {self.statistics.nodes_visited} nodes "
                f"with {len(self._results)} configurations found"
            )
            raise
        self._finish_statistics(start_time, start_cpu)

        with self._phase(SchedulingPhase.FINALIZATION):
            if self.scheduling_logger is not None:
                self.scheduling_logger.log_search_statistics(self.statistics.to_dict())
            if self.profiler is not None:
                self.profiler.track_search(
                    self.statistics.nodes_visited,
                    self.statistics.configurations_emitted,
                )

        logger.info(f"Found {len(self._results)} valid configurations")
        return list(self._results)

    def _finish_statistics(self, start_time: float, start_cpu: float):
        self.statistics.duration_seconds = time.time() - start_time
        self.statistics.cpu_seconds = time.process_time() - start_cpu

    def _count_node(self):
        stats = self.statistics
        stats.nodes_visited += 1

        max_nodes = self.config.search.max_nodes
        if max_nodes is not None and stats.nodes_visited > max_nodes:
            raise SearchBudgetExceededError(max_nodes, details=stats.to_dict())

        interval = self.config.search.progress_log_interval
        if interval and stats.nodes_visited % interval == 0:
            logger.debug(
                f"Visited {stats.nodes_visited} nodes, "
                f"{stats.configurations_emitted} configurations so far"
            )

    def _backtrack(
        self,
        chosen_ids: FrozenSet[BlockKey],
        assignment: Assignment,
        num_selected: int,
    ):
        """Depth-first search from the given node.

        Pending nodes live on an explicit stack, so catalogs of any size run
        without growing the interpreter stack. Children are pushed in
        reverse so they are popped in skip-then-declared order.
        """
        max_courses = self.request.global_constraints.max_courses
        stack: List[SearchNode] = [(chosen_ids, assignment, num_selected)]

        while stack:
            chosen_ids, assignment, num_selected = stack.pop()
            self._count_node()
            depth = len(assignment)
            if depth > self.statistics.max_depth:
                self.statistics.max_depth = depth

            if max_courses is not None and num_selected > max_courses:
                self.statistics.branches_pruned += 1
                continue

            if depth == len(self.catalog):
                self._complete(chosen_ids, assignment)
                continue

            children = list(self._expand(chosen_ids, assignment, num_selected))
            stack.extend(reversed(children))

    def _complete(self, chosen_ids: FrozenSet[BlockKey], assignment: Assignment):
        self.statistics.complete_assignments += 1
        reason = self._rejection_reason(chosen_ids, assignment)
        if reason is None:
            self._results.append(Configuration(entries=assignment))
            self.statistics.configurations_emitted += 1
        else:
            setattr(self.statistics, reason, getattr(self.statistics, reason) + 1)

    def _expand(
        self,
        chosen_ids: FrozenSet[BlockKey],
        assignment: Assignment,
        num_selected: int,
    ) -> Iterator[SearchNode]:
        """Child nodes for the next unassigned course, skip branch first."""
        course = self.catalog[len(assignment)]

        if not course.required:
            yield chosen_ids, {**assignment, course.id: Skipped(course.id)}, num_selected

        max_courses = self.request.global_constraints.max_courses
        if max_courses is not None and num_selected >= max_courses:
            return

        for section in course.sections:
            if self.has_time_conflict(section.time, chosen_ids):
                self.statistics.sections_rejected += 1
                continue

            with_section = chosen_ids | {section_key(course.id, section.id)}

            if not section.requires_tutorial:
                yield (
                    with_section,
                    {**assignment, course.id: self._select(course, section)},
                    num_selected + 1,
                )
                continue

            for tutorial in section.tutorials:
                if self.has_time_conflict(tutorial.time, with_section):
                    self.statistics.tutorials_rejected += 1
                    continue
                yield (
                    with_section | {tutorial_key(course.id, section.id, tutorial.id)},
                    {**assignment, course.id: self._select(course, section, tutorial)},
                    num_selected + 1,
                )

    @staticmethod
    def _select(
        course: Course, section: Section, tutorial: Optional[Tutorial] = None
    ) -> Selection:
        return Selection(
            course_id=course.id,
            course_name=course.display_name,
            section_id=section.id,
            section_suffix=section.suffix,
            section_time=section.time,
            tutorial_id=tutorial.id if tutorial else None,
            tutorial_time=tutorial.time if tutorial else None,
        )

    def has_time_conflict(self, slot: TimeSlot, chosen_ids: FrozenSet[BlockKey]) -> bool:
        """True if ``slot`` overlaps a chosen block or any blocked period."""
        for key in chosen_ids:
            chosen_slot = self._block_index.get(key)
            if chosen_slot is not None and time_slots_conflict(slot, chosen_slot):
                return True
        return any(
            conflicts_with_blocked(slot, blocked)
            for blocked in self.request.global_constraints.blocked_periods
        )

    def is_valid_configuration(
        self, chosen_ids: FrozenSet[BlockKey], assignment: Assignment
    ) -> bool:
        """Check a complete assignment against the selection bounds."""
        return self._rejection_reason(chosen_ids, assignment) is None

    def _rejection_reason(
        self, chosen_ids: FrozenSet[BlockKey], assignment: Assignment
    ) -> Optional[str]:
        """Name of the statistics counter for the first failed check, if any."""
        selected = {cid for cid, entry in assignment.items() if entry.is_selected}

        if not self.request.global_constraints.admits(len(selected)):
            return "rejected_global_bounds"

        for course in self.catalog:
            if not course.required:
                continue
            entry = assignment.get(course.id)
            if not isinstance(entry, Selection) or not course.is_selected(chosen_ids):
                return "rejected_required"
            if any(key not in chosen_ids for key in entry.block_keys):
                return "rejected_required"

        for group in self.request.groups:
            count = sum(1 for cid in group.course_ids if cid in selected)
            if not group.admits(count):
                return "rejected_group_bounds"

        return None


def generate_timetables(request: TimetableRequest, **kwargs) -> List[Configuration]:
    """Enumerate every valid configuration of ``request``.

    Keyword arguments are passed through to TimetableGenerator.
    """
    return TimetableGenerator(request, **kwargs).generate()
