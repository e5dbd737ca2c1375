# timetable_engine/tests/unit/test_problem_model.py

"""
Tests for the timetable domain model.

Tests cover:
- Construction-time validation of time slots, sections, courses and groups
- Overlap and blocked-period predicates
- Catalog deduplication across groups
- Structured engine exceptions
"""

import logging

import pytest

from timetable_engine.core.exceptions import (
    DomainError,
    SearchBudgetExceededError,
    TimetableEngineError,
)
from timetable_engine.core.problem_model import (
    BlockedKind,
    BlockedPeriod,
    Course,
    GlobalConstraints,
    Group,
    Section,
    TimeSlot,
    TimetableRequest,
    Tutorial,
    Weekday,
    conflicts_with_blocked,
    section_key,
    time_slots_conflict,
    tutorial_key,
)
from timetable_engine.tests.builders import (
    block_after,
    block_before,
    block_between,
    make_course,
    make_group,
    make_section,
    make_slot,
    make_tutorial,
    to_minutes,
)


class TestTimeSlot:
    """Tests for TimeSlot validation and helpers"""

    def test_days_are_parsed_from_strings(self):
        """Test that day strings become Weekday members"""
        slot = make_slot(days=["Wed", "Mon"], start=600, end=690)

        assert slot.days == frozenset({Weekday.MON, Weekday.WED})
        assert slot.duration_minutes == 90
        assert slot.to_dict() == {
            "days": ["Mon", "Wed"],
            "start_minute": 600,
            "end_minute": 690,
        }

    def test_weekday_members_are_accepted(self):
        slot = TimeSlot(days=frozenset({Weekday.FRI}), start_minute=0, end_minute=1440)
        assert slot.days == frozenset({Weekday.FRI})

    @pytest.mark.parametrize(
        "days,start,end",
        [
            ([], 540, 630),
            (["Mon"], 630, 630),
            (["Mon"], 630, 540),
            (["Mon"], -10, 30),
            (["Mon"], 1440, 1450),
            (["Mon"], 1400, 1441),
        ],
    )
    def test_invalid_slots_rejected(self, days, start, end):
        """Test that malformed intervals and empty day sets raise DomainError"""
        with pytest.raises(DomainError):
            make_slot(days=days, start=start, end=end)

    def test_unknown_weekday_rejected(self):
        with pytest.raises(DomainError, match="Unknown weekday"):
            make_slot(days=["Funday"])


class TestConflictPredicates:
    """Tests for pairwise overlap and blocked-period checks"""

    def test_overlap_on_shared_day(self):
        a = make_slot(["Mon", "Wed"], to_minutes(10), to_minutes(11, 30))
        b = make_slot(["Mon"], to_minutes(11), to_minutes(12, 30))

        assert time_slots_conflict(a, b) is True
        assert time_slots_conflict(b, a) is True
        assert a.overlaps(b) is True

    def test_touching_intervals_do_not_conflict(self):
        a = make_slot(["Mon"], 540, 600)
        b = make_slot(["Mon"], 600, 660)

        assert time_slots_conflict(a, b) is False

    def test_no_shared_day_means_no_conflict(self):
        a = make_slot(["Mon"], 540, 600)
        b = make_slot(["Tue"], 540, 600)

        assert time_slots_conflict(a, b) is False

    def test_block_before(self):
        """Test that 'before' blocks slots starting before its end"""
        blocked = block_before(to_minutes(10))

        assert conflicts_with_blocked(make_slot(["Mon"], to_minutes(9), to_minutes(10, 30)), blocked)
        assert not conflicts_with_blocked(make_slot(["Mon"], to_minutes(10), to_minutes(11)), blocked)

    def test_block_after(self):
        """Test that 'after' blocks slots ending after its start"""
        blocked = block_after(to_minutes(17))

        assert conflicts_with_blocked(make_slot(["Mon"], to_minutes(16), to_minutes(17, 30)), blocked)
        assert not conflicts_with_blocked(make_slot(["Mon"], to_minutes(16), to_minutes(17)), blocked)

    def test_block_between(self):
        blocked = block_between(to_minutes(8), to_minutes(12), ["Mon"])

        assert conflicts_with_blocked(make_slot(["Mon"], to_minutes(11), to_minutes(13)), blocked)
        assert not conflicts_with_blocked(make_slot(["Mon"], to_minutes(12), to_minutes(13)), blocked)
        assert blocked.blocks(make_slot(["Mon", "Tue"], to_minutes(9), to_minutes(10)))

    def test_blocked_days_restrict_the_block(self):
        """Test that a block only applies on its own days"""
        blocked = block_between(to_minutes(8), to_minutes(12), ["Mon"])

        assert not conflicts_with_blocked(make_slot(["Tue"], to_minutes(9), to_minutes(10)), blocked)

    def test_empty_blocked_days_apply_to_every_day(self):
        blocked = block_between(to_minutes(8), to_minutes(12))

        for day in ["Mon", "Thu", "Sun"]:
            assert conflicts_with_blocked(make_slot([day], to_minutes(9), to_minutes(10)), blocked)

    def test_missing_bounds_use_literal_defaults(self, caplog):
        """Test defaults: before blocks nothing, after blocks nothing, between blocks all"""
        with caplog.at_level(logging.WARNING):
            before = BlockedPeriod(id="b", kind=BlockedKind.BEFORE)
            after = BlockedPeriod(id="a", kind="after")
        between = BlockedPeriod(id="w", kind="between")
        slot = make_slot(["Mon"], 0, 1440)

        assert not conflicts_with_blocked(slot, before)
        assert not conflicts_with_blocked(slot, after)
        assert conflicts_with_blocked(make_slot(["Sat"], 600, 610), between)
        assert "blocks nothing" in caplog.text

    def test_unknown_blocked_kind_rejected(self):
        with pytest.raises(DomainError):
            BlockedPeriod(id="x", kind="during")


class TestCatalogEntities:
    """Tests for tutorials, sections, courses and groups"""

    def test_section_requiring_tutorial_needs_one(self):
        with pytest.raises(DomainError) as exc_info:
            make_section(id="sec", tutorials=(), requires_tutorial=True)

        assert exc_info.value.context["section_id"] == "sec"

    def test_duplicate_tutorial_ids_rejected(self):
        with pytest.raises(DomainError) as exc_info:
            make_section(tutorials=[make_tutorial(id="t"), make_tutorial(id="t")])

        assert exc_info.value.context["tutorial_id"] == "t"

    def test_missing_ids_rejected(self):
        with pytest.raises(DomainError):
            Tutorial(id="", time=make_slot())
        with pytest.raises(DomainError):
            Section(id="", time=make_slot())
        with pytest.raises(DomainError):
            Course(id="")
        with pytest.raises(DomainError):
            Group(id="")

    def test_raw_tutorial_time_error_names_tutorial(self):
        """A zero-length time given as a mapping is reported against its tutorial"""
        with pytest.raises(DomainError) as exc_info:
            Tutorial(
                id="tut-1",
                time={"days": ["Wed"], "start_minute": 600, "end_minute": 600},
            )

        assert exc_info.value.context["tutorial_id"] == "tut-1"

    def test_raw_section_time_error_names_section(self):
        with pytest.raises(DomainError) as exc_info:
            Section(id="sec-1", time=(["Mon"], 540, 2000))

        assert exc_info.value.context["section_id"] == "sec-1"

    def test_malformed_time_wrapped_with_ids(self):
        with pytest.raises(DomainError) as exc_info:
            Section(id="sec-1", time=None)

        assert exc_info.value.context["section_id"] == "sec-1"
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_nested_raw_error_names_every_enclosing_id(self):
        with pytest.raises(DomainError) as exc_info:
            Course(
                id="comp2804",
                sections=[
                    {
                        "id": "comp2804-a",
                        "time": make_slot(["Tue"], 510, 600),
                        "requires_tutorial": True,
                        "tutorials": [
                            {"id": "comp2804-t1", "time": (["Thu"], 690, 690)}
                        ],
                    }
                ],
            )

        assert exc_info.value.context == {
            "course_id": "comp2804",
            "section_id": "comp2804-a",
            "tutorial_id": "comp2804-t1",
        }

    def test_unknown_section_value_rejected(self):
        with pytest.raises(DomainError) as exc_info:
            Course(id="c", sections=["not-a-section"])

        assert exc_info.value.context["course_id"] == "c"

    def test_raw_times_are_coerced(self):
        tutorial = Tutorial(
            id="tut-1", time={"days": ["Wed"], "start_minute": 600, "end_minute": 660}
        )
        section = Section(id="sec-1", time=(["Mon", "Wed"], 540, 600), tutorials=[tutorial])

        assert tutorial.time == make_slot(["Wed"], 600, 660)
        assert section.time == make_slot(["Mon", "Wed"], 540, 600)

    def test_duplicate_section_ids_rejected(self):
        with pytest.raises(DomainError) as exc_info:
            make_course(id="c", sections=[make_section(id="s"), make_section(id="s")])

        assert exc_info.value.context == {"course_id": "c", "section_id": "s"}

    def test_course_without_sections_is_legal(self):
        course = make_course(sections=[])
        assert course.sections == ()
        assert course.is_selected(frozenset()) is False

    def test_iter_blocks_uses_qualified_keys(self):
        course = make_course(
            id="c",
            sections=[make_section(id="s", tutorials=[make_tutorial(id="t")])],
        )

        keys = [key for key, _ in course.iter_blocks()]
        assert keys == [("c", "s"), ("c", "s", "t")]

    def test_is_selected_requires_tutorial_when_demanded(self):
        course = make_course(
            id="c",
            sections=[make_section(id="s", tutorials=[make_tutorial(id="t")])],
        )

        assert course.is_selected(frozenset({section_key("c", "s")})) is False
        assert course.is_selected(
            frozenset({section_key("c", "s"), tutorial_key("c", "s", "t")})
        ) is True

    def test_same_section_id_in_other_course_does_not_select(self):
        course = make_course(id="c", sections=[make_section(id="A")])

        assert course.is_selected(frozenset({section_key("other", "A")})) is False

    def test_group_bounds(self):
        group = make_group(min_select=1, max_select=2)

        assert not group.admits(0)
        assert group.admits(1)
        assert group.admits(2)
        assert not group.admits(3)
        assert make_group(min_select=None, max_select=None).admits(100)

    def test_negative_bounds_rejected(self):
        with pytest.raises(DomainError):
            make_group(min_select=-1)
        with pytest.raises(DomainError):
            GlobalConstraints(max_courses=-2)

    def test_group_course_ids_deduplicated(self):
        course = make_course(id="c")
        group = make_group(courses=[course, course, make_course(id="d")])

        assert group.course_ids == ("c", "d")


class TestTimetableRequest:
    """Tests for catalog flattening"""

    def test_catalog_deduplicates_by_id_in_order(self):
        a, b, c = make_course(id="a"), make_course(id="b"), make_course(id="c")
        request = TimetableRequest(
            groups=(
                make_group([a, b], id="g1"),
                make_group([b, c], id="g2"),
            )
        )

        assert [course.id for course in request.catalog] == ["a", "b", "c"]

    def test_first_occurrence_wins(self, caplog):
        first = make_course(id="a", required=True)
        second = make_course(id="a", required=False)
        request = TimetableRequest(
            groups=(make_group([first], id="g1"), make_group([second], id="g2"))
        )

        with caplog.at_level(logging.WARNING):
            catalog = request.catalog

        assert catalog == [first]
        assert "differs from its first occurrence" in caplog.text

    def test_to_dict(self):
        request = TimetableRequest(groups=(make_group([make_course(id="a")]),))
        data = request.to_dict()

        assert [c["id"] for c in data["courses"]] == ["a"]
        assert data["groups"][0]["course_ids"] == ["a"]
        assert data["global_constraints"]["blocked_periods"] == []


class TestExceptions:
    """Tests for structured engine errors"""

    def test_to_dict_shape(self):
        error = DomainError("bad input", course_id="c1")
        data = error.to_dict()["error"]

        assert data["type"] == "DomainError"
        assert data["code"] == "domain_error"
        assert data["status_code"] == 422
        assert data["context"] == {"course_id": "c1"}
        assert data["validation_errors"] == []

    def test_with_context_keeps_innermost_ids(self):
        error = DomainError("bad", section_id="inner")
        error.with_context(section_id="outer", course_id="c")

        assert error.context == {"section_id": "inner", "course_id": "c"}

    def test_from_exception_preserves_cause(self):
        cause = ValueError("boom")
        error = TimetableEngineError.from_exception(cause)

        assert error.cause is cause
        assert "boom" in str(error)

    def test_budget_error(self):
        error = SearchBudgetExceededError(10, details={"nodes_visited": 11})

        assert error.max_nodes == 10
        assert error.context["max_nodes"] == 10
        assert error.code == "search_budget_exceeded"
        assert "10" in error.message
