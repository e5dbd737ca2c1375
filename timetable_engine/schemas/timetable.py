# timetable_engine/schemas/timetable.py
"""Pydantic v2 schemas for the catalog editor payload and generated timetables.

Input models accept the editor's camelCase keys as well as snake_case field
names. UI-only keys such as ``isCollapsed`` are ignored. Range and
consistency checks are left to the domain model, which raises DomainError.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.exceptions import DomainError
from ..core.problem_model import (
    BlockedKind,
    BlockedPeriod,
    Course,
    GlobalConstraints,
    Group,
    Section,
    TimeSlot,
    TimetableRequest,
    Tutorial,
)
from ..core.solution import Configuration, Selection

MODEL_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


@contextmanager
def _error_context(**ids: Any):
    """Attach entity ids to a DomainError raised inside the block."""
    try:
        yield
    except DomainError as e:
        raise e.with_context(**ids)


# --- Input Schemas ---


class TimeSlotSchema(BaseModel):
    model_config = MODEL_CONFIG

    days: List[str]
    start_time: int = Field(alias="startTime")
    end_time: int = Field(alias="endTime")

    def to_domain(self) -> TimeSlot:
        return TimeSlot(
            days=frozenset(self.days),
            start_minute=self.start_time,
            end_minute=self.end_time,
        )

    @classmethod
    def from_domain(cls, slot: TimeSlot) -> "TimeSlotSchema":
        data = slot.to_dict()
        return cls(
            days=data["days"],
            start_time=slot.start_minute,
            end_time=slot.end_minute,
        )


class TutorialSchema(BaseModel):
    model_config = MODEL_CONFIG

    id: str
    name: Optional[str] = None
    times: TimeSlotSchema

    def to_domain(self) -> Tutorial:
        with _error_context(tutorial_id=self.id):
            return Tutorial(id=self.id, time=self.times.to_domain(), display_name=self.name)

    @classmethod
    def from_domain(cls, tutorial: Tutorial) -> "TutorialSchema":
        return cls(
            id=tutorial.id,
            name=tutorial.display_name,
            times=TimeSlotSchema.from_domain(tutorial.time),
        )


class SectionSchema(BaseModel):
    model_config = MODEL_CONFIG

    id: str
    suffix: Optional[str] = None
    times: TimeSlotSchema
    has_tutorial: bool = Field(default=False, alias="hasTutorial")
    tutorials: List[TutorialSchema] = Field(default_factory=list)

    def to_domain(self) -> Section:
        with _error_context(section_id=self.id):
            return Section(
                id=self.id,
                time=self.times.to_domain(),
                requires_tutorial=self.has_tutorial,
                tutorials=tuple(t.to_domain() for t in self.tutorials),
                suffix=self.suffix,
            )

    @classmethod
    def from_domain(cls, section: Section) -> "SectionSchema":
        return cls(
            id=section.id,
            suffix=section.suffix,
            times=TimeSlotSchema.from_domain(section.time),
            has_tutorial=section.requires_tutorial,
            tutorials=[TutorialSchema.from_domain(t) for t in section.tutorials],
        )


class CourseSchema(BaseModel):
    model_config = MODEL_CONFIG

    id: str
    name: Optional[str] = None
    required: bool = False
    sections: List[SectionSchema] = Field(default_factory=list)

    def to_domain(self) -> Course:
        with _error_context(course_id=self.id):
            return Course(
                id=self.id,
                sections=tuple(s.to_domain() for s in self.sections),
                required=self.required,
                display_name=self.name,
            )

    @classmethod
    def from_domain(cls, course: Course) -> "CourseSchema":
        return cls(
            id=course.id,
            name=course.display_name,
            required=course.required,
            sections=[SectionSchema.from_domain(s) for s in course.sections],
        )


class GroupSchema(BaseModel):
    model_config = MODEL_CONFIG

    id: str
    name: Optional[str] = None
    courses: List[CourseSchema] = Field(default_factory=list)
    min_select: Optional[int] = Field(default=None, alias="minSelect")
    max_select: Optional[int] = Field(default=None, alias="maxSelect")

    def to_domain(self) -> Group:
        with _error_context(group_id=self.id):
            return Group(
                id=self.id,
                courses=tuple(c.to_domain() for c in self.courses),
                min_select=self.min_select,
                max_select=self.max_select,
                display_name=self.name,
            )

    @classmethod
    def from_domain(cls, group: Group) -> "GroupSchema":
        return cls(
            id=group.id,
            name=group.display_name,
            courses=[CourseSchema.from_domain(c) for c in group.courses],
            min_select=group.min_select,
            max_select=group.max_select,
        )


class BlockedTimeslotSchema(BaseModel):
    model_config = MODEL_CONFIG

    id: str
    type: BlockedKind
    # empty means every day
    days: List[str] = Field(default_factory=list)
    start_time: Optional[int] = Field(default=None, alias="startTime")
    end_time: Optional[int] = Field(default=None, alias="endTime")

    def to_domain(self) -> BlockedPeriod:
        with _error_context(blocked_id=self.id):
            return BlockedPeriod(
                id=self.id,
                kind=self.type,
                days=frozenset(self.days),
                start_minute=self.start_time,
                end_minute=self.end_time,
            )

    @classmethod
    def from_domain(cls, blocked: BlockedPeriod) -> "BlockedTimeslotSchema":
        return cls(
            id=blocked.id,
            type=blocked.kind,
            days=blocked.to_dict()["days"],
            start_time=blocked.start_minute,
            end_time=blocked.end_minute,
        )


class GlobalConstraintsSchema(BaseModel):
    model_config = MODEL_CONFIG

    min_courses: Optional[int] = Field(default=None, alias="minCourses")
    max_courses: Optional[int] = Field(default=None, alias="maxCourses")
    blocked_timeslots: List[BlockedTimeslotSchema] = Field(
        default_factory=list, alias="blockedTimeslots"
    )

    def to_domain(self) -> GlobalConstraints:
        return GlobalConstraints(
            min_courses=self.min_courses,
            max_courses=self.max_courses,
            blocked_periods=tuple(b.to_domain() for b in self.blocked_timeslots),
        )

    @classmethod
    def from_domain(cls, constraints: GlobalConstraints) -> "GlobalConstraintsSchema":
        return cls(
            min_courses=constraints.min_courses,
            max_courses=constraints.max_courses,
            blocked_timeslots=[
                BlockedTimeslotSchema.from_domain(b)
                for b in constraints.blocked_periods
            ],
        )


class TimetableInputSchema(BaseModel):
    """Complete generation input as produced by the catalog editor."""

    model_config = MODEL_CONFIG

    groups: List[GroupSchema] = Field(default_factory=list)
    global_constraints: GlobalConstraintsSchema = Field(
        default_factory=GlobalConstraintsSchema, alias="globalConstraints"
    )

    def to_request(self) -> TimetableRequest:
        return TimetableRequest(
            groups=tuple(g.to_domain() for g in self.groups),
            global_constraints=self.global_constraints.to_domain(),
        )

    @classmethod
    def from_request(cls, request: TimetableRequest) -> "TimetableInputSchema":
        return cls(
            groups=[GroupSchema.from_domain(g) for g in request.groups],
            global_constraints=GlobalConstraintsSchema.from_domain(
                request.global_constraints
            ),
        )


def parse_timetable_input(payload: Union[Dict[str, Any], str, bytes]) -> TimetableRequest:
    """Validate an editor payload (dict or JSON text) into a TimetableRequest.

    Shape errors are reported as DomainError with the pydantic error list in
    ``validation_errors``.
    """
    try:
        if isinstance(payload, (str, bytes)):
            schema = TimetableInputSchema.model_validate_json(payload)
        else:
            schema = TimetableInputSchema.model_validate(payload)
    except ValidationError as e:
        raise DomainError(
            f"Invalid timetable input: {e.error_count()} validation errors",
            validation_errors=e.errors(include_url=False, include_context=False),
            cause=e,
        ) from e
    return schema.to_request()


# --- Output Schemas ---


class SelectedCourseSchema(BaseModel):
    model_config = MODEL_CONFIG

    course_id: str = Field(alias="courseId")
    course_name: Optional[str] = Field(default=None, alias="courseName")
    section_id: str = Field(alias="sectionId")
    section_suffix: Optional[str] = Field(default=None, alias="sectionSuffix")
    tutorial_id: Optional[str] = Field(default=None, alias="tutorialId")
    section_time: TimeSlotSchema = Field(alias="sectionTime")
    tutorial_time: Optional[TimeSlotSchema] = Field(default=None, alias="tutorialTime")

    @classmethod
    def from_selection(cls, selection: Selection) -> "SelectedCourseSchema":
        return cls(
            course_id=selection.course_id,
            course_name=selection.course_name,
            section_id=selection.section_id,
            section_suffix=selection.section_suffix,
            tutorial_id=selection.tutorial_id,
            section_time=TimeSlotSchema.from_domain(selection.section_time),
            tutorial_time=(
                TimeSlotSchema.from_domain(selection.tutorial_time)
                if selection.tutorial_time is not None
                else None
            ),
        )


class TimetableConfigurationSchema(BaseModel):
    """One generated timetable; skipped courses map to null."""

    model_config = MODEL_CONFIG

    selected_section_ids: List[str] = Field(alias="selectedSectionIds")
    courses: Dict[str, Optional[SelectedCourseSchema]]

    @classmethod
    def from_configuration(
        cls, configuration: Configuration
    ) -> "TimetableConfigurationSchema":
        return cls(
            selected_section_ids=sorted(configuration.selected_ids),
            courses={
                course_id: (
                    SelectedCourseSchema.from_selection(selection)
                    if selection is not None
                    else None
                )
                for course_id, selection in configuration.selections.items()
            },
        )


def serialize_configurations(
    configurations: Sequence[Configuration],
) -> List[Dict[str, Any]]:
    """Render configurations in the camelCase shape renderers and exporters read."""
    return [
        TimetableConfigurationSchema.from_configuration(c).model_dump(by_alias=True)
        for c in configurations
    ]
