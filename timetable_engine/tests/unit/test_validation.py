# timetable_engine/tests/unit/test_validation.py

"""
Tests for the independent configuration validator.
"""

import pytest

from timetable_engine.core.solution import Configuration, Selection, Skipped
from timetable_engine.search.backtracking import generate_timetables
from timetable_engine.utils.logging import SchedulingPhase
from timetable_engine.utils.validation import (
    ConfigurationValidator,
    ViolationType,
    quick_validate,
    validate_with_report,
)
from timetable_engine.tests.builders import (
    block_between,
    make_course,
    make_group,
    make_request,
    make_section,
    make_slot,
    make_tutorial,
)


@pytest.fixture
def request_with_tutorial():
    """Two courses; 'lab' requires a tutorial and 'core' is required"""
    core = make_course(
        "core",
        [make_section("core-a", ["Mon"], 540, 600), make_section("core-b", ["Tue"], 540, 600)],
        required=True,
    )
    lab = make_course(
        "lab",
        [
            make_section(
                "lab-a",
                ["Wed"],
                540,
                600,
                tutorials=[make_tutorial("lab-a-t", ["Thu"], 540, 600)],
            )
        ],
    )
    return make_request(
        [make_group([core, lab], min_select=1, max_select=2)],
        min_courses=1,
        max_courses=2,
        blocked=[block_between(700, 800, ["Fri"])],
    )


def _select(course_id, section_id, days, start, end, tutorial=None):
    tutorial_id, tutorial_time = (None, None)
    if tutorial is not None:
        tutorial_id, tutorial_time = tutorial
    return Selection(
        course_id=course_id,
        section_id=section_id,
        section_time=make_slot(days, start, end),
        tutorial_id=tutorial_id,
        tutorial_time=tutorial_time,
    )


class TestConfigurationValidator:
    """Tests for each violation family"""

    def test_generated_results_are_valid(self, request_with_tutorial, quiet_config):
        results = generate_timetables(request_with_tutorial, engine_config=quiet_config)
        report = validate_with_report(request_with_tutorial, results)

        assert results
        assert report.is_valid
        assert report.total_violations == 0
        assert report.validated_configurations == len(results)

    def test_empty_result_list_is_valid(self, request_with_tutorial):
        assert quick_validate(request_with_tutorial, []) is True

    def test_time_overlap(self, request_with_tutorial):
        configuration = Configuration(
            entries={
                "core": _select("core", "core-a", ["Mon"], 540, 600),
                "lab": _select(
                    "lab",
                    "lab-a",
                    ["Mon"],
                    570,
                    630,
                    tutorial=("lab-a-t", make_slot(["Thu"], 540, 600)),
                ),
            }
        )

        result = ConfigurationValidator(request_with_tutorial).validate([configuration])

        overlaps = result.get_violations_by_type(ViolationType.TIME_OVERLAP)
        assert len(overlaps) == 1
        assert overlaps[0].entities_involved == ["core", "lab"]
        assert overlaps[0].configuration_index == 0

    def test_blocked_period(self, request_with_tutorial):
        configuration = Configuration(
            entries={
                "core": _select("core", "core-a", ["Fri"], 720, 780),
                "lab": Skipped("lab"),
            }
        )

        result = ConfigurationValidator(request_with_tutorial).validate([configuration])

        assert result.get_violations_by_type(ViolationType.BLOCKED_PERIOD)
        assert not result.is_valid

    def test_missing_tutorial(self, request_with_tutorial):
        configuration = Configuration(
            entries={
                "core": _select("core", "core-a", ["Mon"], 540, 600),
                "lab": _select("lab", "lab-a", ["Wed"], 540, 600),
            }
        )

        result = ConfigurationValidator(request_with_tutorial).validate([configuration])

        assert len(result.get_violations_by_type(ViolationType.MISSING_TUTORIAL)) == 1

    def test_unknown_section_and_tutorial(self, request_with_tutorial):
        configuration = Configuration(
            entries={
                "core": _select("core", "core-z", ["Mon"], 540, 600),
                "lab": _select(
                    "lab",
                    "lab-a",
                    ["Wed"],
                    540,
                    600,
                    tutorial=("nope", make_slot(["Thu"], 540, 600)),
                ),
            }
        )

        result = ConfigurationValidator(request_with_tutorial).validate([configuration])

        assert len(result.get_violations_by_type(ViolationType.UNKNOWN_SELECTION)) == 2

    def test_incomplete_assignment(self, request_with_tutorial):
        configuration = Configuration(
            entries={"core": _select("core", "core-a", ["Mon"], 540, 600)}
        )

        result = ConfigurationValidator(request_with_tutorial).validate([configuration])

        incomplete = result.get_violations_by_type(ViolationType.INCOMPLETE_ASSIGNMENT)
        assert incomplete[0].entities_involved == ["lab"]

    def test_required_group_and_global_bounds(self, request_with_tutorial):
        configuration = Configuration(
            entries={"core": Skipped("core"), "lab": Skipped("lab")}
        )

        result = ConfigurationValidator(request_with_tutorial).validate([configuration])

        assert result.get_violations_by_type(ViolationType.REQUIRED_COURSE)
        assert result.get_violations_by_type(ViolationType.GROUP_BOUNDS)
        assert result.get_violations_by_type(ViolationType.GLOBAL_BOUNDS)

    def test_duplicates(self, request_with_tutorial):
        configuration = Configuration(
            entries={
                "core": _select("core", "core-a", ["Mon"], 540, 600),
                "lab": Skipped("lab"),
            }
        )

        result = ConfigurationValidator(request_with_tutorial).validate(
            [configuration, Configuration(entries=dict(configuration.entries))]
        )

        duplicates = result.get_violations_by_type(ViolationType.DUPLICATE_CONFIGURATION)
        assert len(duplicates) == 1
        assert duplicates[0].configuration_index == 1
        assert result.total_violations == 1

    def test_to_dict(self, request_with_tutorial):
        configuration = Configuration(entries={"core": Skipped("core"), "lab": Skipped("lab")})
        data = validate_with_report(request_with_tutorial, [configuration]).to_dict()

        assert data["is_valid"] is False
        assert data["validated_configurations"] == 1
        assert {v["violation_type"] for v in data["violations"]} >= {
            "required_course",
            "global_bounds",
        }

    def test_violations_are_logged(self, request_with_tutorial, scheduling_logger):
        configuration = Configuration(entries={"core": Skipped("core"), "lab": Skipped("lab")})

        validate_with_report(request_with_tutorial, [configuration], logger=scheduling_logger)

        entries = scheduling_logger.get_entries(SchedulingPhase.VALIDATION)
        assert entries
        assert "constraint violations" in entries[-1].message
