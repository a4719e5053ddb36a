"""Poisson tail probabilities and the heuristic interval around λ."""

from __future__ import annotations

import dataclasses
import math
from typing import Iterable, List

from .odds import fair_odd

Z_95 = 1.96


@dataclasses.dataclass(frozen=True, slots=True)
class ConfidenceInterval:
    """Lower and upper bound on the expected shot count."""

    low: float
    high: float


@dataclasses.dataclass(frozen=True, slots=True)
class LadderRung:
    """Probability of clearing one line of a ladder."""

    line: float
    threshold: int
    probability: float
    fair_odd: float


def line_to_threshold(line: float) -> int:
    """Smallest whole count that beats ``line`` (2.5 -> 3, 2.0 -> 2)."""

    return int(math.ceil(line))


def poisson_survival(lam: float, threshold: int) -> float:
    """Return ``P(X >= threshold)`` for ``X ~ Poisson(lam)``.

    The cumulative mass below the threshold is accumulated with a running
    term (``term *= lam / k``) so no factorial is ever formed.
    """

    if lam <= 0 or math.isnan(lam):
        raise ValueError("lam must be greater than zero")
    if threshold < 0:
        raise ValueError("threshold must be non-negative")
    if threshold == 0:
        return 1.0
    term = math.exp(-lam)
    cumulative = term
    for k in range(1, threshold):
        term *= lam / k
        cumulative += term
    return min(1.0, max(0.0, 1.0 - cumulative))


def survival_ladder(lam: float, lines: Iterable[float]) -> List[LadderRung]:
    """Probabilities and fair odds for several lines, sorted by line."""

    rungs: List[LadderRung] = []
    for line in sorted(set(float(value) for value in lines)):
        threshold = line_to_threshold(line)
        probability = poisson_survival(lam, threshold)
        rungs.append(
            LadderRung(
                line=line,
                threshold=threshold,
                probability=probability,
                fair_odd=fair_odd(probability),
            )
        )
    return rungs


def confidence_interval(lam: float, matches_played: float) -> ConfidenceInterval:
    """Approximate 95% band around ``lam``.

    This is a normal approximation with a standard deviation of ``sqrt(lam)``
    inflated by up to 50% when fewer than ten matches back the estimate.  It
    is a heuristic, not an exact Poisson interval.
    """

    confidence = min(matches_played / 10.0, 1.0)
    deviation = math.sqrt(lam) * (1.5 - confidence * 0.5)
    return ConfidenceInterval(
        low=round(max(0.0, lam - Z_95 * deviation), 2),
        high=round(lam + Z_95 * deviation, 2),
    )


__all__ = [
    "ConfidenceInterval",
    "LadderRung",
    "confidence_interval",
    "line_to_threshold",
    "poisson_survival",
    "survival_ladder",
]
