"""Single-player and batch evaluation entry points."""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Any, Dict, List

import polars as pl

from .calibration import CalibrationConfig, load_calibration
from .exceptions import InputValidationError
from .expectation import ExpectationBreakdown, ExpectationModel
from .odds import fair_odd, format_odd
from .probability import (
    ConfidenceInterval,
    LadderRung,
    confidence_interval,
    line_to_threshold,
    poisson_survival,
    survival_ladder,
)
from .quality import QualityAssessment, assess_quality
from .selectors import MatchSelectors
from .validation import validate_inputs

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class RawInputs:
    """Per-match shot rates for the player, the opponent and the team."""

    baseline_rate: float
    recent_form_rate: float
    opponent_conceded_rate: float
    team_output_rate: float | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class MatchContext:
    """Sample size and the line being priced."""

    average_minutes: float
    matches_played: float
    betting_line: float


@dataclasses.dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Everything a caller needs to present a priced line."""

    expected_shots: float
    threshold: int
    probability: float
    fair_odd: float
    interval: ConfidenceInterval
    quality: QualityAssessment
    breakdown: ExpectationBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expected_shots": self.expected_shots,
            "threshold": self.threshold,
            "probability": self.probability,
            "fair_odd": None if math.isinf(self.fair_odd) else self.fair_odd,
            "fair_odd_display": format_odd(self.fair_odd),
            "interval": {"low": self.interval.low, "high": self.interval.high},
            "quality": {
                "level": self.quality.level.value,
                "message": self.quality.message,
            },
            "breakdown": self.breakdown.as_dict(),
        }


def _as_numbers(inputs: RawInputs, context: MatchContext) -> tuple[RawInputs, MatchContext]:
    """Convert validated values (possibly numeric strings) to floats."""

    team_output = inputs.team_output_rate
    return (
        RawInputs(
            baseline_rate=float(inputs.baseline_rate),
            recent_form_rate=float(inputs.recent_form_rate),
            opponent_conceded_rate=float(inputs.opponent_conceded_rate),
            team_output_rate=None if team_output is None else float(team_output),
        ),
        MatchContext(
            average_minutes=float(context.average_minutes),
            matches_played=float(context.matches_played),
            betting_line=float(context.betting_line),
        ),
    )


class ShotPropEvaluator:
    """Validates inputs, then prices a shots line with a calibrated model."""

    def __init__(self, calibration: CalibrationConfig | None = None) -> None:
        self.model = ExpectationModel(calibration)

    @property
    def calibration(self) -> CalibrationConfig:
        return self.model.calibration

    def evaluate(
        self,
        inputs: RawInputs,
        selectors: MatchSelectors,
        context: MatchContext,
    ) -> EvaluationResult:
        """Price ``context.betting_line`` for one player.

        Raises:
            InputValidationError: when any input is out of range; nothing is
                computed in that case.
            ConfigurationError: when the calibration cannot serve the
                selectors or inputs supplied.
        """

        violations = validate_inputs(inputs, context)
        if violations:
            raise InputValidationError(violations)
        inputs, context = _as_numbers(inputs, context)

        breakdown = self.model.breakdown(inputs, selectors, context)
        lam = breakdown.expected_shots
        threshold = line_to_threshold(context.betting_line)
        probability = poisson_survival(lam, threshold)
        return EvaluationResult(
            expected_shots=lam,
            threshold=threshold,
            probability=probability,
            fair_odd=fair_odd(probability),
            interval=confidence_interval(lam, context.matches_played),
            quality=assess_quality(context.matches_played, context.average_minutes),
            breakdown=breakdown,
        )

    def ladder(
        self,
        inputs: RawInputs,
        selectors: MatchSelectors,
        context: MatchContext,
        lines: List[float],
    ) -> List[LadderRung]:
        """Price several lines for the same player and fixture."""

        violations = validate_inputs(inputs, context)
        violations.extend(
            f"Betting line must be between 0 and 15 (got {line:g})"
            for line in lines
            if math.isnan(line) or not 0.0 <= line <= 15.0
        )
        if violations:
            raise InputValidationError(violations)
        inputs, context = _as_numbers(inputs, context)
        lam = self.model.expected_shots(inputs, selectors, context)
        return survival_ladder(lam, lines)

    # ------------------------------------------------------------------
    # Batch evaluation
    # ------------------------------------------------------------------

    REQUIRED_COLUMNS = (
        "baseline_rate",
        "recent_form_rate",
        "opponent_conceded_rate",
        "position",
        "play_style",
        "average_minutes",
        "matches_played",
        "betting_line",
    )

    RESULT_SCHEMA = {
        "expected_shots": pl.Float64,
        "threshold": pl.Int64,
        "probability": pl.Float64,
        "fair_odd": pl.Float64,
        "interval_low": pl.Float64,
        "interval_high": pl.Float64,
        "quality": pl.Utf8,
        "errors": pl.Utf8,
    }

    def evaluate_frame(self, frame: pl.DataFrame) -> pl.DataFrame:
        """Evaluate every row of ``frame`` and append the result columns.

        Rows that fail range validation keep null results and carry their
        violations in the ``errors`` column.  A frame that already holds a
        result column is refused with :class:`ValueError`.  Configuration errors
        propagate.
        """

        missing = sorted(set(self.REQUIRED_COLUMNS).difference(frame.columns))
        if missing:
            raise ValueError(f"Missing required columns for evaluation: {', '.join(missing)}")
        clashing = [name for name in self.RESULT_SCHEMA if name in frame.columns]
        if clashing:
            raise ValueError(
                f"Input already has result columns: {', '.join(clashing)}; rename or drop them"
            )

        records: List[Dict[str, Any]] = []
        for index, row in enumerate(frame.iter_rows(named=True)):
            inputs = RawInputs(
                baseline_rate=row["baseline_rate"],
                recent_form_rate=row["recent_form_rate"],
                opponent_conceded_rate=row["opponent_conceded_rate"],
                team_output_rate=row.get("team_output_rate"),
            )
            context = MatchContext(
                average_minutes=row["average_minutes"],
                matches_played=row["matches_played"],
                betting_line=row["betting_line"],
            )
            selectors = MatchSelectors.from_tokens(
                row["position"], row["play_style"], row.get("venue")
            )
            try:
                result = self.evaluate(inputs, selectors, context)
            except InputValidationError as exc:
                logger.warning("Row %d rejected: %s", index, "; ".join(exc.violations))
                records.append({"errors": "; ".join(exc.violations)})
                continue
            records.append(
                {
                    "expected_shots": result.expected_shots,
                    "threshold": result.threshold,
                    "probability": result.probability,
                    "fair_odd": result.fair_odd,
                    "interval_low": result.interval.low,
                    "interval_high": result.interval.high,
                    "quality": result.quality.level.value,
                    "errors": None,
                }
            )

        results = pl.DataFrame(
            [{name: record.get(name) for name in self.RESULT_SCHEMA} for record in records],
            schema=self.RESULT_SCHEMA,
        )
        return pl.concat([frame, results], how="horizontal")


def evaluate(
    inputs: RawInputs,
    selectors: MatchSelectors,
    context: MatchContext,
    *,
    calibration: CalibrationConfig | None = None,
) -> EvaluationResult:
    """Evaluate with ``calibration`` or the calibration configured for the process."""

    return ShotPropEvaluator(calibration or load_calibration()).evaluate(
        inputs, selectors, context
    )


__all__ = [
    "EvaluationResult",
    "MatchContext",
    "RawInputs",
    "ShotPropEvaluator",
    "evaluate",
]
