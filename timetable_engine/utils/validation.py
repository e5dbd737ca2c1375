# timetable_engine/utils/validation.py

"""
Validation utilities for generated timetables.
Re-checks configurations against the request that produced them, without
reusing the search code, so the engine's output can be audited by callers
and by the test suite.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Any, Dict, List, Optional, Sequence

from ..core.problem_model import (
    Course,
    TimetableRequest,
    conflicts_with_blocked,
    time_slots_conflict,
)
from ..core.solution import Configuration, Selection
from .logging import SchedulingLogger


class ViolationType(Enum):
    """Types of constraint violations"""

    TIME_OVERLAP = "time_overlap"
    BLOCKED_PERIOD = "blocked_period"
    UNKNOWN_SELECTION = "unknown_selection"
    MISSING_TUTORIAL = "missing_tutorial"
    INCOMPLETE_ASSIGNMENT = "incomplete_assignment"
    REQUIRED_COURSE = "required_course"
    GROUP_BOUNDS = "group_bounds"
    GLOBAL_BOUNDS = "global_bounds"
    DUPLICATE_CONFIGURATION = "duplicate_configuration"


@dataclass
class ConstraintViolation:
    """Individual constraint violation with details"""

    violation_type: ViolationType
    entities_involved: List[str]
    description: str
    configuration_index: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violation_type": self.violation_type.value,
            "entities_involved": self.entities_involved,
            "description": self.description,
            "configuration_index": self.configuration_index,
            "metadata": self.metadata,
        }


@dataclass
class ValidationResult:
    """Outcome of validating a list of configurations"""

    is_valid: bool
    total_violations: int
    validated_configurations: int
    violations: List[ConstraintViolation] = field(default_factory=list)
    duration_seconds: float = 0.0

    def get_violations_by_type(
        self, violation_type: ViolationType
    ) -> List[ConstraintViolation]:
        return [v for v in self.violations if v.violation_type == violation_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "total_violations": self.total_violations,
            "validated_configurations": self.validated_configurations,
            "violations": [v.to_dict() for v in self.violations],
            "duration_seconds": self.duration_seconds,
        }


class ConstraintValidator(ABC):
    """Checks one family of constraints on a single configuration"""

    def __init__(self, request: TimetableRequest):
        self.request = request
        self.courses: Dict[str, Course] = {c.id: c for c in request.catalog}

    @abstractmethod
    def validate(self, configuration: Configuration) -> List[ConstraintViolation]:
        """Return the violations found in ``configuration``"""

    @abstractmethod
    def get_violation_type(self) -> ViolationType:
        """Primary violation type reported by this validator"""


class TimeOverlapValidator(ConstraintValidator):
    """No two chosen sections/tutorials may overlap"""

    def validate(self, configuration: Configuration) -> List[ConstraintViolation]:
        violations = []
        blocks = configuration.time_blocks()
        for (course_a, slot_a), (course_b, slot_b) in combinations(blocks, 2):
            if time_slots_conflict(slot_a, slot_b):
                violations.append(
                    ConstraintViolation(
                        violation_type=ViolationType.TIME_OVERLAP,
                        entities_involved=[course_a, course_b],
                        description=(
                            f"Blocks of {course_a} and {course_b} overlap "
                            f"({slot_a.to_dict()} vs {slot_b.to_dict()})"
                        ),
                    )
                )
        return violations

    def get_violation_type(self) -> ViolationType:
        return ViolationType.TIME_OVERLAP


class BlockedPeriodValidator(ConstraintValidator):
    """No chosen block may fall inside a blocked period"""

    def validate(self, configuration: Configuration) -> List[ConstraintViolation]:
        violations = []
        blocked_periods = self.request.global_constraints.blocked_periods
        for course_id, slot in configuration.time_blocks():
            for blocked in blocked_periods:
                if conflicts_with_blocked(slot, blocked):
                    violations.append(
                        ConstraintViolation(
                            violation_type=ViolationType.BLOCKED_PERIOD,
                            entities_involved=[course_id, blocked.id],
                            description=f"{course_id} falls inside blocked period {blocked.id}",
                        )
                    )
        return violations

    def get_violation_type(self) -> ViolationType:
        return ViolationType.BLOCKED_PERIOD


class SelectionConsistencyValidator(ConstraintValidator):
    """Every catalog course has an entry; every selection exists in the catalog
    and carries a tutorial exactly when its section demands one"""

    def validate(self, configuration: Configuration) -> List[ConstraintViolation]:
        violations = []

        missing = [cid for cid in self.courses if cid not in configuration.entries]
        if missing:
            violations.append(
                ConstraintViolation(
                    violation_type=ViolationType.INCOMPLETE_ASSIGNMENT,
                    entities_involved=missing,
                    description=f"No entry for courses {missing}",
                )
            )

        for selection in configuration.selected:
            problem = self._check_selection(selection)
            if problem is not None:
                violations.append(problem)
        return violations

    def _check_selection(self, selection: Selection) -> Optional[ConstraintViolation]:
        course = self.courses.get(selection.course_id)
        section = None
        if course is not None:
            section = next(
                (s for s in course.sections if s.id == selection.section_id), None
            )
        if section is None:
            return ConstraintViolation(
                violation_type=ViolationType.UNKNOWN_SELECTION,
                entities_involved=[selection.course_id, selection.section_id],
                description=(
                    f"Section {selection.section_id} is not offered by "
                    f"course {selection.course_id}"
                ),
            )

        if selection.tutorial_id is None:
            if section.requires_tutorial:
                return ConstraintViolation(
                    violation_type=ViolationType.MISSING_TUTORIAL,
                    entities_involved=[selection.course_id, section.id],
                    description=f"Section {section.id} requires a tutorial",
                )
            return None

        if selection.tutorial_id not in {t.id for t in section.tutorials}:
            return ConstraintViolation(
                violation_type=ViolationType.UNKNOWN_SELECTION,
                entities_involved=[
                    selection.course_id,
                    section.id,
                    selection.tutorial_id,
                ],
                description=(
                    f"Tutorial {selection.tutorial_id} does not belong to "
                    f"section {section.id}"
                ),
            )
        return None

    def get_violation_type(self) -> ViolationType:
        return ViolationType.UNKNOWN_SELECTION


class SelectionBoundsValidator(ConstraintValidator):
    """Required courses, per-group bounds and global bounds"""

    def validate(self, configuration: Configuration) -> List[ConstraintViolation]:
        violations = []
        selected = set(configuration.selected_course_ids)

        for course in self.courses.values():
            if course.required and course.id not in selected:
                violations.append(
                    ConstraintViolation(
                        violation_type=ViolationType.REQUIRED_COURSE,
                        entities_involved=[course.id],
                        description=f"Required course {course.id} is not selected",
                    )
                )

        for group in self.request.groups:
            count = sum(1 for cid in group.course_ids if cid in selected)
            if not group.admits(count):
                violations.append(
                    ConstraintViolation(
                        violation_type=ViolationType.GROUP_BOUNDS,
                        entities_involved=[group.id],
                        description=(
                            f"Group {group.id} has {count} selected courses, "
                            f"expected [{group.min_select}, {group.max_select}]"
                        ),
                        metadata={"count": count},
                    )
                )

        gc = self.request.global_constraints
        if not gc.admits(configuration.num_selected):
            violations.append(
                ConstraintViolation(
                    violation_type=ViolationType.GLOBAL_BOUNDS,
                    entities_involved=[],
                    description=(
                        f"{configuration.num_selected} courses selected, expected "
                        f"[{gc.min_courses}, {gc.max_courses}]"
                    ),
                    metadata={"count": configuration.num_selected},
                )
            )
        return violations

    def get_violation_type(self) -> ViolationType:
        return ViolationType.GROUP_BOUNDS


class ConfigurationValidator:
    """
    Runs every constraint validator over a result list and checks the list
    itself for duplicate configurations.
    """

    def __init__(
        self,
        request: TimetableRequest,
        logger: Optional[SchedulingLogger] = None,
    ):
        self.request = request
        self.logger = logger
        self.validators: List[ConstraintValidator] = [
            TimeOverlapValidator(request),
            BlockedPeriodValidator(request),
            SelectionConsistencyValidator(request),
            SelectionBoundsValidator(request),
        ]

    def add_validator(self, validator: ConstraintValidator):
        self.validators.append(validator)

    def validate(self, configurations: Sequence[Configuration]) -> ValidationResult:
        start_time = time.time()
        violations: List[ConstraintViolation] = []

        seen: Dict[str, int] = {}
        for index, configuration in enumerate(configurations):
            for validator in self.validators:
                for violation in validator.validate(configuration):
                    violation.configuration_index = index
                    violations.append(violation)

            key = configuration.canonical_key()
            if key in seen:
                violations.append(
                    ConstraintViolation(
                        violation_type=ViolationType.DUPLICATE_CONFIGURATION,
                        entities_involved=configuration.selected_course_ids,
                        description=f"Configuration {index} duplicates configuration {seen[key]}",
                        configuration_index=index,
                        metadata={"canonical_key": key},
                    )
                )
            else:
                seen[key] = index

        result = ValidationResult(
            is_valid=not violations,
            total_violations=len(violations),
            validated_configurations=len(configurations),
            violations=violations,
            duration_seconds=time.time() - start_time,
        )

        if self.logger is not None:
            self.logger.log_constraint_violations([v.to_dict() for v in violations])

        return result


def quick_validate(
    request: TimetableRequest, configurations: Sequence[Configuration]
) -> bool:
    """True when every configuration satisfies every constraint"""
    return ConfigurationValidator(request).validate(configurations).is_valid


def validate_with_report(
    request: TimetableRequest,
    configurations: Sequence[Configuration],
    logger: Optional[SchedulingLogger] = None,
) -> ValidationResult:
    """Validate and return the full result with every violation"""
    return ConfigurationValidator(request, logger=logger).validate(configurations)
