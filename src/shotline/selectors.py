"""Closed categorical selectors used by the expectation model."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Type, TypeVar

from .exceptions import ConfigurationError

SelectorT = TypeVar("SelectorT", bound="_Selector")


class _Selector(str, Enum):
    @classmethod
    def parse(cls: Type[SelectorT], token: "str | SelectorT") -> SelectorT:
        """Resolve ``token`` to a member, tolerating case, spaces and underscores."""

        if isinstance(token, cls):
            return token
        canonical = str(token).strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value == canonical:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ConfigurationError(
            f"Unknown {cls.__name__.lower()} '{token}'; expected one of: {choices}"
        )


class Position(_Selector):
    """Player position on the pitch."""

    FORWARD = "forward"
    WINGER = "winger"
    ATTACKING_MIDFIELDER = "attacking-midfielder"
    CENTRAL_MIDFIELDER = "central-midfielder"
    DEFENSIVE_MIDFIELDER = "defensive-midfielder"
    FULLBACK = "fullback"
    CENTRE_BACK = "centre-back"


class PlayStyle(_Selector):
    """Attacking posture of the player's team."""

    HIGH_INTENSITY_ATTACK = "high-intensity-attack"
    BALANCED = "balanced"
    DEFENSIVE = "defensive"


class Venue(_Selector):
    """Whether the player's team plays at home or away."""

    HOME = "home"
    AWAY = "away"


@dataclasses.dataclass(frozen=True, slots=True)
class MatchSelectors:
    """Categorical choices describing the player and the fixture."""

    position: Position
    play_style: PlayStyle
    venue: Venue | None = None

    @classmethod
    def from_tokens(
        cls,
        position: str,
        play_style: str,
        venue: str | None = None,
    ) -> "MatchSelectors":
        return cls(
            position=Position.parse(position),
            play_style=PlayStyle.parse(play_style),
            venue=Venue.parse(venue) if venue else None,
        )


__all__ = ["MatchSelectors", "PlayStyle", "Position", "Venue"]
