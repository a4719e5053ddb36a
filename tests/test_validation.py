from __future__ import annotations

import pytest

from shotline.evaluation import MatchContext, RawInputs
from shotline.exceptions import InputValidationError
from shotline.validation import INPUT_RANGES, ensure_valid, validate_inputs


def _inputs(**overrides: object) -> RawInputs:
    values = {
        "baseline_rate": 3.5,
        "recent_form_rate": 3.0,
        "opponent_conceded_rate": 12.0,
        "team_output_rate": 12.0,
    }
    values.update(overrides)
    return RawInputs(**values)  # type: ignore[arg-type]


def _context(**overrides: object) -> MatchContext:
    values = {"average_minutes": 70.0, "matches_played": 10.0, "betting_line": 2.5}
    values.update(overrides)
    return MatchContext(**values)  # type: ignore[arg-type]


def test_valid_inputs_have_no_violations() -> None:
    assert validate_inputs(_inputs(), _context()) == []
    ensure_valid(_inputs(), _context())


def test_negative_baseline_reports_single_violation() -> None:
    violations = validate_inputs(_inputs(baseline_rate=-1.0), _context())
    assert violations == ["Baseline shots per match must be between 0 and 12"]


def test_all_checks_run_in_order() -> None:
    violations = validate_inputs(
        _inputs(recent_form_rate=13.0, opponent_conceded_rate=0.5, team_output_rate=31.0),
        _context(average_minutes=0.0, matches_played=51.0, betting_line=16.0),
    )
    assert violations == [
        "Recent form shots per match must be between 0 and 12",
        "Shots conceded by the opponent must be between 1 and 30",
        "Shots produced by the team must be between 1 and 30",
        "Average minutes per match must be between 1 and 120",
        "Matches played must be between 1 and 50",
        "Betting line must be between 0 and 15",
    ]


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), "many", None])
def test_non_numeric_values_are_violations(bad: object) -> None:
    violations = validate_inputs(_inputs(), _context(matches_played=bad))
    assert violations == ["Matches played must be between 1 and 50"]


def test_team_output_is_optional() -> None:
    assert validate_inputs(_inputs(team_output_rate=None), _context()) == []


@pytest.mark.parametrize(
    "field, value",
    [
        ("baseline_rate", 0.0),
        ("baseline_rate", 12.0),
        ("opponent_conceded_rate", 1.0),
        ("opponent_conceded_rate", 30.0),
    ],
)
def test_range_bounds_are_inclusive(field: str, value: float) -> None:
    assert validate_inputs(_inputs(**{field: value}), _context()) == []


def test_ensure_valid_raises_with_violation_list() -> None:
    with pytest.raises(InputValidationError) as excinfo:
        ensure_valid(_inputs(baseline_rate=-1.0), _context(betting_line=-0.5))
    assert len(excinfo.value.violations) == 2
    assert "Betting line" in str(excinfo.value)


def test_every_range_names_a_real_field() -> None:
    fields = set(RawInputs.__dataclass_fields__) | set(MatchContext.__dataclass_fields__)
    assert {rule.field for rule in INPUT_RANGES} == fields
