from __future__ import annotations

import dataclasses
import json

import polars as pl
import pytest

from shotline.calibration import CalibrationConfig
from shotline.evaluation import MatchContext, RawInputs, ShotPropEvaluator, evaluate
from shotline.exceptions import ConfigurationError, InputValidationError
from shotline.odds import fair_odd
from shotline.probability import confidence_interval, poisson_survival
from shotline.quality import QualityLevel
from shotline.selectors import MatchSelectors, PlayStyle, Position


def test_end_to_end_neutral_forward(
    evaluator: ShotPropEvaluator,
    neutral_inputs: RawInputs,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
) -> None:
    result = evaluator.evaluate(neutral_inputs, forward_selectors, regular_context)
    lam = result.expected_shots
    assert 0.75 * 3.5 < lam < 1.5 * 3.5
    assert result.threshold == 3
    assert result.probability == pytest.approx(poisson_survival(lam, 3))
    assert result.fair_odd == round(1.0 / result.probability, 2)
    assert result.interval == confidence_interval(lam, 10)
    assert result.quality.level is QualityLevel.HIGH
    assert result.breakdown.expected_shots == lam


def test_validation_failure_computes_nothing(
    evaluator: ShotPropEvaluator,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _fail(*args: object, **kwargs: object) -> None:
        raise AssertionError("model must not run on invalid input")

    monkeypatch.setattr(evaluator.model, "breakdown", _fail)
    inputs = RawInputs(-1.0, 3.0, 12.0, 12.0)
    with pytest.raises(InputValidationError) as excinfo:
        evaluator.evaluate(inputs, forward_selectors, regular_context)
    assert excinfo.value.violations == ["Baseline shots per match must be between 0 and 12"]


def test_line_zero_is_certain(
    evaluator: ShotPropEvaluator,
    neutral_inputs: RawInputs,
    forward_selectors: MatchSelectors,
) -> None:
    context = MatchContext(average_minutes=90.0, matches_played=2.0, betting_line=0.0)
    result = evaluator.evaluate(neutral_inputs, forward_selectors, context)
    assert result.threshold == 0
    assert result.probability == 1.0
    assert result.fair_odd == 1.0
    assert result.quality.level is QualityLevel.LOW


def test_to_dict_finite_odd(
    evaluator: ShotPropEvaluator,
    neutral_inputs: RawInputs,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
) -> None:
    payload = evaluator.evaluate(neutral_inputs, forward_selectors, regular_context).to_dict()
    assert payload["quality"]["level"] == "high"
    assert set(payload["breakdown"]) >= {"baseline", "confidence_multiplier", "expected_shots"}
    assert payload["fair_odd_display"] == f"{payload['fair_odd']:.2f}"


def test_to_dict_handles_infinite_odd(
    evaluator: ShotPropEvaluator,
    neutral_inputs: RawInputs,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
) -> None:
    result = evaluator.evaluate(neutral_inputs, forward_selectors, regular_context)
    impossible = dataclasses.replace(result, probability=0.0, fair_odd=fair_odd(0.0))
    payload = impossible.to_dict()
    assert payload["fair_odd"] is None
    assert payload["fair_odd_display"] == "∞"
    assert json.loads(json.dumps(payload))["fair_odd"] is None


def test_numeric_strings_are_converted_after_validation(
    evaluator: ShotPropEvaluator,
    forward_selectors: MatchSelectors,
) -> None:
    inputs = RawInputs("3.5", "3.0", "12", "12")  # type: ignore[arg-type]
    context = MatchContext("70", "10", "2.5")  # type: ignore[arg-type]
    result = evaluator.evaluate(inputs, forward_selectors, context)
    expected = evaluator.evaluate(
        RawInputs(3.5, 3.0, 12.0, 12.0), forward_selectors, MatchContext(70.0, 10.0, 2.5)
    )
    assert result == expected


def test_ladder_validates_every_line(
    evaluator: ShotPropEvaluator,
    neutral_inputs: RawInputs,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
) -> None:
    rungs = evaluator.ladder(neutral_inputs, forward_selectors, regular_context, [0.5, 2.5])
    assert [rung.threshold for rung in rungs] == [1, 3]
    with pytest.raises(InputValidationError, match="got 20"):
        evaluator.ladder(neutral_inputs, forward_selectors, regular_context, [0.5, 20.0])


def test_module_level_evaluate_uses_configured_profile(
    isolated_settings: None,
    neutral_inputs: RawInputs,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
) -> None:
    default = evaluate(neutral_inputs, forward_selectors, regular_context)
    explicit = ShotPropEvaluator(CalibrationConfig()).evaluate(
        neutral_inputs, forward_selectors, regular_context
    )
    assert default == explicit


def test_configuration_errors_propagate(
    evaluator: ShotPropEvaluator,
    forward_selectors: MatchSelectors,
    regular_context: MatchContext,
) -> None:
    inputs = RawInputs(3.0, 3.0, 12.0)
    with pytest.raises(ConfigurationError):
        evaluator.evaluate(inputs, forward_selectors, regular_context)


def _players_frame() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "player": ["nine", "full back", "bad data"],
            "baseline_rate": [3.5, 0.8, -1.0],
            "recent_form_rate": [3.0, 1.1, 2.0],
            "opponent_conceded_rate": [12.0, 9.0, 12.0],
            "team_output_rate": [12.0, 14.0, 12.0],
            "position": ["forward", "fullback", "winger"],
            "play_style": ["balanced", "defensive", "balanced"],
            "average_minutes": [70.0, 88.0, 70.0],
            "matches_played": [10, 4, 60],
            "betting_line": [2.5, 0.5, 1.5],
        }
    )


def test_evaluate_frame(evaluator: ShotPropEvaluator) -> None:
    frame = _players_frame()
    results = evaluator.evaluate_frame(frame)
    assert results.height == 3
    assert results.columns[: len(frame.columns)] == frame.columns

    first = results.row(0, named=True)
    single = evaluator.evaluate(
        RawInputs(3.5, 3.0, 12.0, 12.0),
        MatchSelectors(Position.FORWARD, PlayStyle.BALANCED),
        MatchContext(70.0, 10, 2.5),
    )
    assert first["expected_shots"] == pytest.approx(single.expected_shots)
    assert first["probability"] == pytest.approx(single.probability)
    assert first["quality"] == "high"
    assert first["errors"] is None

    second = results.row(1, named=True)
    assert second["quality"] == "medium"
    assert second["threshold"] == 1

    rejected = results.row(2, named=True)
    assert rejected["expected_shots"] is None
    assert "Baseline shots per match" in rejected["errors"]
    assert "Matches played" in rejected["errors"]


def test_evaluate_frame_requires_columns(evaluator: ShotPropEvaluator) -> None:
    with pytest.raises(ValueError, match="betting_line"):
        evaluator.evaluate_frame(_players_frame().drop("betting_line"))


def test_evaluate_frame_with_text_column(evaluator: ShotPropEvaluator) -> None:
    frame = _players_frame().with_columns(
        pl.Series("matches_played", ["10", "4", "?"]),
        pl.Series("recent_form_rate", ["3.0", "n/a", "2.0"]),
    )
    results = evaluator.evaluate_frame(frame)
    numeric = evaluator.evaluate_frame(_players_frame())

    first = results.row(0, named=True)
    assert first["errors"] is None
    assert first["expected_shots"] == pytest.approx(numeric.row(0, named=True)["expected_shots"])
    assert "Recent form shots per match" in results.row(1, named=True)["errors"]
    assert "Matches played" in results.row(2, named=True)["errors"]


def test_evaluate_frame_rejects_result_column_clash(evaluator: ShotPropEvaluator) -> None:
    frame = _players_frame().with_columns(pl.lit("keep me").alias("errors"))
    with pytest.raises(ValueError, match="errors"):
        evaluator.evaluate_frame(frame)


def test_evaluate_frame_unknown_position(evaluator: ShotPropEvaluator) -> None:
    frame = _players_frame().with_columns(pl.lit("goalkeeper").alias("position"))
    with pytest.raises(ConfigurationError):
        evaluator.evaluate_frame(frame)


def test_evaluate_frame_empty(evaluator: ShotPropEvaluator) -> None:
    results = evaluator.evaluate_frame(_players_frame().head(0))
    assert results.height == 0
    assert "expected_shots" in results.columns
