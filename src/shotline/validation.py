"""Admissible range checks for raw engine inputs."""

from __future__ import annotations

import dataclasses
import math
from typing import TYPE_CHECKING, List, Tuple

from .exceptions import InputValidationError

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from .evaluation import MatchContext, RawInputs


@dataclasses.dataclass(frozen=True, slots=True)
class InputRange:
    """Closed interval an input must fall within."""

    field: str
    label: str
    minimum: float
    maximum: float
    optional: bool = False

    def check(self, value: object) -> str | None:
        """Return a violation message for ``value`` or ``None`` when admissible."""

        if value is None and self.optional:
            return None
        message = f"{self.label} must be between {self.minimum:g} and {self.maximum:g}"
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return message
        if math.isnan(number) or not self.minimum <= number <= self.maximum:
            return message
        return None


INPUT_RANGES: Tuple[InputRange, ...] = (
    InputRange("baseline_rate", "Baseline shots per match", 0.0, 12.0),
    InputRange("recent_form_rate", "Recent form shots per match", 0.0, 12.0),
    InputRange("opponent_conceded_rate", "Shots conceded by the opponent", 1.0, 30.0),
    InputRange("team_output_rate", "Shots produced by the team", 1.0, 30.0, optional=True),
    InputRange("average_minutes", "Average minutes per match", 1.0, 120.0),
    InputRange("matches_played", "Matches played", 1.0, 50.0),
    InputRange("betting_line", "Betting line", 0.0, 15.0),
)


def validate_inputs(inputs: "RawInputs", context: "MatchContext") -> List[str]:
    """Return every range violation for ``inputs`` and ``context``, in order."""

    violations: List[str] = []
    for rule in INPUT_RANGES:
        source = inputs if hasattr(inputs, rule.field) else context
        message = rule.check(getattr(source, rule.field, None))
        if message is not None:
            violations.append(message)
    return violations


def ensure_valid(inputs: "RawInputs", context: "MatchContext") -> None:
    """Raise :class:`InputValidationError` when any input is out of range."""

    violations = validate_inputs(inputs, context)
    if violations:
        raise InputValidationError(violations)


__all__ = ["INPUT_RANGES", "InputRange", "ensure_valid", "validate_inputs"]
