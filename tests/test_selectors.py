from __future__ import annotations

import pytest

from shotline.exceptions import ConfigurationError
from shotline.selectors import MatchSelectors, PlayStyle, Position, Venue


@pytest.mark.parametrize(
    "token, expected",
    [
        ("forward", Position.FORWARD),
        ("Attacking_Midfielder", Position.ATTACKING_MIDFIELDER),
        ("centre back", Position.CENTRE_BACK),
        (Position.WINGER, Position.WINGER),
    ],
)
def test_position_tokens(token: object, expected: Position) -> None:
    assert Position.parse(token) is expected  # type: ignore[arg-type]


def test_unknown_token_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="goalkeeper"):
        Position.parse("goalkeeper")
    with pytest.raises(ConfigurationError, match="playstyle"):
        PlayStyle.parse("park-the-bus")


def test_from_tokens() -> None:
    selectors = MatchSelectors.from_tokens("winger", "HIGH_INTENSITY_ATTACK", "away")
    assert selectors == MatchSelectors(Position.WINGER, PlayStyle.HIGH_INTENSITY_ATTACK, Venue.AWAY)
    assert MatchSelectors.from_tokens("fullback", "balanced").venue is None
