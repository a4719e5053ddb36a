"""Expected shot count (λ) for a player in a single match."""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import TYPE_CHECKING, Mapping, TypeVar

from .calibration import CalibrationConfig, validate_calibration
from .exceptions import ConfigurationError
from .selectors import MatchSelectors

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from .evaluation import MatchContext, RawInputs

logger = logging.getLogger(__name__)

KeyT = TypeVar("KeyT")


@dataclasses.dataclass(frozen=True, slots=True)
class ExpectationBreakdown:
    """λ together with its value after each stage of the model."""

    baseline: float
    after_form: float
    after_position: float
    after_opponent: float
    after_style: float
    after_venue: float
    confidence_weight: float
    confidence_multiplier: float
    expected_shots: float

    def as_dict(self) -> dict[str, float]:
        return dataclasses.asdict(self)


def _lookup(table: Mapping[KeyT, float], key: KeyT, label: str) -> float:
    try:
        return float(table[key])
    except KeyError as exc:
        raise ConfigurationError(f"No {label} multiplier configured for '{key}'") from exc


class ExpectationModel:
    """Turns per-player and per-opponent rates into a Poisson rate.

    The model starts from the player's baseline rate and applies, in order,
    the recent-form, position, opponent, play-style and optional venue
    adjustments before scaling by a sample-confidence multiplier derived from
    minutes and matches played.  Coefficients come from the injected
    :class:`CalibrationConfig`.
    """

    def __init__(self, calibration: CalibrationConfig | None = None) -> None:
        self.calibration = calibration or CalibrationConfig()
        for message in validate_calibration(self.calibration):
            logger.warning("Calibration '%s': %s", self.calibration.profile, message)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def starting_rate(self, inputs: "RawInputs") -> float:
        weights = self.calibration.weights
        if self.calibration.baseline_mode == "blend":
            total = weights.baseline + weights.recent_form
            return (
                weights.baseline * inputs.baseline_rate
                + weights.recent_form * inputs.recent_form_rate
            ) / total
        return float(inputs.baseline_rate)

    def opponent_ratio(self, inputs: "RawInputs") -> float:
        opponent = self.calibration.opponent
        if opponent.strategy == "ratio":
            if inputs.team_output_rate is None:
                raise ConfigurationError(
                    "The 'ratio' opponent strategy requires team_output_rate"
                )
            return inputs.opponent_conceded_rate / inputs.team_output_rate
        return inputs.opponent_conceded_rate / opponent.league_average_conceded

    def opponent_factor(self, inputs: "RawInputs") -> float:
        """Multiplicative opponent effect, confined to ``1 ± opponent weight``."""

        cap = self.calibration.opponent.ratio_cap
        deviation = min(cap, max(-cap, self.opponent_ratio(inputs) - 1.0))
        return 1.0 + deviation * self.calibration.weights.opponent

    def venue_factor(self, selectors: MatchSelectors) -> float:
        venue_cfg = self.calibration.venue
        if not venue_cfg.enabled:
            if selectors.venue is not None:
                logger.debug(
                    "Profile '%s' has no venue stage; ignoring venue '%s'",
                    self.calibration.profile,
                    selectors.venue.value,
                )
            return 1.0
        if selectors.venue is None:
            raise ConfigurationError(
                f"Profile '{self.calibration.profile}' requires a venue (home or away)"
            )
        return _lookup(venue_cfg.multipliers, selectors.venue, "venue")

    def confidence_weight(self, average_minutes: float, matches_played: float) -> float:
        """Combine minutes and matches played into a weight in ``[0, 1]``."""

        curve = self.calibration.confidence
        minutes_factor = min(
            1.0,
            curve.minutes_floor
            + (average_minutes / curve.minutes_ceiling) * (1.0 - curve.minutes_floor),
        )
        if matches_played >= curve.matches_saturation:
            matches_factor = 1.0
        else:
            matches_factor = min(
                1.0,
                curve.matches_floor
                + (math.log(matches_played) / math.log(curve.matches_saturation))
                * (1.0 - curve.matches_floor),
            )
        floor = curve.minutes_floor * curve.matches_floor
        weight = (minutes_factor * matches_factor - floor) / (1.0 - floor)
        return min(1.0, max(0.0, weight))

    def confidence_multiplier(self, weight: float) -> float:
        curve = self.calibration.confidence
        if curve.shape == "logarithmic":
            return curve.minimum * (curve.maximum / curve.minimum) ** weight
        return curve.minimum + (curve.maximum - curve.minimum) * weight

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def breakdown(
        self,
        inputs: "RawInputs",
        selectors: MatchSelectors,
        context: "MatchContext",
    ) -> ExpectationBreakdown:
        """Run every stage and return the intermediate values."""

        calibration = self.calibration
        weights = calibration.weights

        baseline = self.starting_rate(inputs)
        lam = baseline + (inputs.recent_form_rate - baseline) * (
            weights.recent_form / weights.baseline
        )
        after_form = lam

        position = _lookup(calibration.multipliers.position, selectors.position, "position")
        lam *= 1.0 + (position - 1.0) * weights.position
        after_position = lam

        lam *= self.opponent_factor(inputs)
        after_opponent = lam

        lam *= _lookup(calibration.multipliers.play_style, selectors.play_style, "play style")
        after_style = lam

        lam *= self.venue_factor(selectors)
        after_venue = lam

        weight = self.confidence_weight(context.average_minutes, context.matches_played)
        multiplier = self.confidence_multiplier(weight)
        lam = max(calibration.epsilon, lam * multiplier)

        result = ExpectationBreakdown(
            baseline=baseline,
            after_form=after_form,
            after_position=after_position,
            after_opponent=after_opponent,
            after_style=after_style,
            after_venue=after_venue,
            confidence_weight=weight,
            confidence_multiplier=multiplier,
            expected_shots=lam,
        )
        logger.debug("Expectation breakdown (%s): %s", calibration.profile, result)
        return result

    def expected_shots(
        self,
        inputs: "RawInputs",
        selectors: MatchSelectors,
        context: "MatchContext",
    ) -> float:
        return self.breakdown(inputs, selectors, context).expected_shots


__all__ = ["ExpectationBreakdown", "ExpectationModel"]
