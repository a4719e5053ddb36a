"""Fair odds derived from modelled probabilities."""

from __future__ import annotations

import math
from fractions import Fraction

INFINITE_ODD = math.inf

__all__ = [
    "INFINITE_ODD",
    "fair_odd",
    "format_odd",
    "to_american",
    "to_fractional",
]


def fair_odd(probability: float) -> float:
    """Decimal odd ``1 / probability`` rounded to two places.

    A probability of exactly zero maps to :data:`INFINITE_ODD`.
    """

    if math.isnan(probability) or not 0.0 <= probability <= 1.0:
        raise ValueError("Probability must be between 0 and 1 (inclusive)")
    if probability == 0.0:
        return INFINITE_ODD
    return round(1.0 / probability, 2)


def format_odd(odd: float) -> str:
    """Render a decimal odd for display."""

    if math.isinf(odd):
        return "∞"
    return f"{odd:.2f}"


def to_american(odd: float) -> int | None:
    """Express a decimal odd as American odds, ``None`` when undefined."""

    if math.isinf(odd) or odd <= 1.0:
        return None
    if odd >= 2.0:
        return int(round((odd - 1.0) * 100.0))
    return int(round(-100.0 / (odd - 1.0)))


def to_fractional(odd: float, *, max_denominator: int = 100) -> tuple[int, int] | None:
    """Express a decimal odd as a simplified fraction, ``None`` when undefined."""

    if math.isinf(odd) or odd <= 1.0:
        return None
    fraction = Fraction(odd - 1.0).limit_denominator(max_denominator)
    return fraction.numerator, fraction.denominator
