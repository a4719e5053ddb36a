"""Calibration profiles for the expectation model.

Every coefficient the model uses lives here as configuration rather than in
the model code.  Several hand-tuned calibrations exist (they differ in how
the baseline is blended, how opponent strength is measured, whether the venue
matters and how wide the sample-confidence multiplier swings), so each one is
a named profile layered over the defaults of :class:`CalibrationConfig`.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Literal, Mapping, MutableMapping, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import ConfigurationError
from .selectors import PlayStyle, Position, Venue

EXTRA_CONFIG_VARIABLE = "SHOTLINE_CALIBRATION_FILES"
ENV_OVERRIDE_PREFIX = "SHOTLINE_CALIBRATION__"
DEFAULT_PROFILE = "hybrid"

logger = logging.getLogger(__name__)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ModelWeights(_Frozen):
    """Relative weights of the additive and dampened stages."""

    baseline: float = 0.40
    recent_form: float = 0.18
    position: float = 0.10
    opponent: float = 0.25


class MultiplierTables(_Frozen):
    """Lookup tables for the categorical selectors."""

    position: Dict[Position, float] = Field(
        default_factory=lambda: {
            Position.FORWARD: 1.15,
            Position.WINGER: 1.12,
            Position.ATTACKING_MIDFIELDER: 1.08,
            Position.CENTRAL_MIDFIELDER: 0.75,
            Position.DEFENSIVE_MIDFIELDER: 0.65,
            Position.FULLBACK: 0.50,
            Position.CENTRE_BACK: 0.45,
        }
    )
    play_style: Dict[PlayStyle, float] = Field(
        default_factory=lambda: {
            PlayStyle.HIGH_INTENSITY_ATTACK: 1.12,
            PlayStyle.BALANCED: 1.00,
            PlayStyle.DEFENSIVE: 0.88,
        }
    )

    @field_validator("position", mode="before")
    @classmethod
    def _canonical_positions(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {Position.parse(key): val for key, val in value.items()}
        return value

    @field_validator("play_style", mode="before")
    @classmethod
    def _canonical_styles(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {PlayStyle.parse(key): val for key, val in value.items()}
        return value


class OpponentAdjustment(_Frozen):
    """How opponent defensive strength is measured.

    ``ratio`` compares the shots the opponent concedes with the shots the
    player's team produces; ``league_baseline`` compares them with a fixed
    league average instead.
    """

    strategy: Literal["ratio", "league_baseline"] = "ratio"
    league_average_conceded: float = 12.0
    ratio_cap: float = 1.0


class VenueAdjustment(_Frozen):
    """Optional home/away stage."""

    enabled: bool = False
    multipliers: Dict[Venue, float] = Field(
        default_factory=lambda: {Venue.HOME: 1.05, Venue.AWAY: 0.95}
    )

    @field_validator("multipliers", mode="before")
    @classmethod
    def _canonical_venues(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {Venue.parse(key): val for key, val in value.items()}
        return value


class ConfidenceCurve(_Frozen):
    """Maps minutes and matches played onto the final λ multiplier."""

    shape: Literal["affine", "logarithmic"] = "affine"
    minimum: float = 0.75
    maximum: float = 1.50
    minutes_floor: float = 0.70
    minutes_ceiling: float = 90.0
    matches_floor: float = 0.80
    matches_saturation: float = 20.0


class CalibrationConfig(_Frozen):
    """Aggregate calibration injected into :class:`ExpectationModel`."""

    profile: str = DEFAULT_PROFILE
    baseline_mode: Literal["baseline", "blend"] = "baseline"
    epsilon: float = 0.01
    weights: ModelWeights = Field(default_factory=ModelWeights)
    multipliers: MultiplierTables = Field(default_factory=MultiplierTables)
    opponent: OpponentAdjustment = Field(default_factory=OpponentAdjustment)
    venue: VenueAdjustment = Field(default_factory=VenueAdjustment)
    confidence: ConfidenceCurve = Field(default_factory=ConfidenceCurve)


CALIBRATION_PROFILES: Mapping[str, Mapping[str, Any]] = {
    # Ratio against team output, no venue, conservative confidence swing.
    "hybrid": {},
    "aggressive": {
        "baseline_mode": "blend",
        "opponent": {"strategy": "league_baseline"},
        "venue": {"enabled": True},
        "confidence": {"minimum": 0.30, "maximum": 1.50, "matches_saturation": 15.0},
    },
    # hybrid tables with the unscaled 0.75 + 0.75 * (minutes x matches) curve;
    # on the rescaled weight that is affine over [1.17, 1.50].
    "legacy": {
        "confidence": {"minimum": 1.17, "maximum": 1.50},
    },
    "tight": {
        "venue": {"enabled": True},
        "confidence": {"shape": "logarithmic", "minimum": 0.90, "maximum": 1.10},
    },
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Calibration at {path} must be a mapping")
    return dict(data)


def _merge_layers(base: Dict[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in layer.items():
        if (
            key in merged
            and isinstance(merged[key], Mapping)
            and isinstance(value, Mapping)
        ):
            merged[key] = _merge_layers(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _coerce_env_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return raw


def _set_nested(mapping: MutableMapping[str, Any], path: Iterable[str], value: Any) -> None:
    segments = list(path)
    if not segments:
        return
    head, *tail = segments
    key = head.lower()
    if not tail:
        mapping[key] = value
        return
    child = mapping.get(key)
    if not isinstance(child, MutableMapping):
        child = {}
    else:
        child = dict(child)
    mapping[key] = child
    _set_nested(child, tail, value)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    updated = dict(data)
    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_OVERRIDE_PREFIX):
            continue
        path = [segment for segment in key[len(ENV_OVERRIDE_PREFIX) :].split("__") if segment]
        if not path:
            continue
        _set_nested(updated, path, _coerce_env_value(raw_value))
    return updated


def profile_defaults(name: str) -> Dict[str, Any]:
    """Return a copy of the override layer for the built-in profile ``name``."""

    try:
        layer = CALIBRATION_PROFILES[name]
    except KeyError as exc:
        choices = ", ".join(sorted(CALIBRATION_PROFILES))
        raise ConfigurationError(
            f"Unknown calibration profile '{name}'; expected one of: {choices}"
        ) from exc
    data = copy.deepcopy(dict(layer))
    data["profile"] = name
    return data


def load_calibration(
    *,
    base_path: str | os.PathLike[str] | None = None,
    profile: str | None = None,
    extra_paths: Sequence[str | os.PathLike[str]] | None = None,
) -> CalibrationConfig:
    """Load a layered calibration.

    Layers, lowest precedence first: the built-in profile, the YAML file at
    ``base_path``, any ``extra_paths`` and files listed in
    ``SHOTLINE_CALIBRATION_FILES``, then ``SHOTLINE_CALIBRATION__`` prefixed
    environment variables (``SHOTLINE_CALIBRATION__weights__opponent=0.3``).
    The profile is ``profile`` if given, else the ``profile`` key of the base
    file, else the configured default.
    """

    from .config import get_settings

    settings = get_settings()
    file_data: Dict[str, Any] = {}
    path = base_path if base_path is not None else settings.calibration_path
    if path is None:
        candidate = settings.config_dir / "calibration.yaml"
        if candidate.exists():
            path = candidate
    if path is not None:
        file_data = _load_yaml(Path(path))
        logger.info("Loaded calibration file %s", path)

    name = profile or file_data.get("profile") or settings.profile
    data = _merge_layers(profile_defaults(str(name)), file_data)
    data["profile"] = str(name)

    override_sources: list[Path] = []
    if extra_paths:
        override_sources.extend(Path(item) for item in extra_paths)
    env_files = os.getenv(EXTRA_CONFIG_VARIABLE)
    if env_files:
        override_sources.extend(Path(token) for token in env_files.split(os.pathsep) if token)
    for override in override_sources:
        if override.exists():
            data = _merge_layers(data, _load_yaml(override))
            logger.info("Applied calibration override %s", override)
        else:
            logger.warning("Calibration override %s does not exist; skipping", override)

    data = _apply_env_overrides(data)
    try:
        return CalibrationConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid calibration '{name}': {exc}") from exc


def validate_calibration(config: CalibrationConfig) -> list[str]:
    """Validate ``config`` and return non-fatal warnings.

    Raises:
        ConfigurationError: listing every fatal problem found.
    """

    errors: list[str] = []
    warnings: list[str] = []

    weights = config.weights
    if weights.baseline <= 0:
        errors.append("weights.baseline must be greater than zero")
    if weights.recent_form < 0:
        errors.append("weights.recent_form must be non-negative")
    if not 0 <= weights.position <= 1:
        errors.append("weights.position must be within [0, 1]")
    if not 0 <= weights.opponent < 1:
        errors.append("weights.opponent must be within [0, 1)")
    elif weights.opponent * config.opponent.ratio_cap >= 1:
        errors.append("weights.opponent * opponent.ratio_cap must stay below 1")
    if weights.baseline > 0 and weights.recent_form > weights.baseline:
        warnings.append(
            "weights.recent_form exceeds weights.baseline; recent form will overshoot the baseline"
        )

    tables = config.multipliers
    for label, table, members in (
        ("multipliers.position", tables.position, list(Position)),
        ("multipliers.play_style", tables.play_style, list(PlayStyle)),
        ("venue.multipliers", config.venue.multipliers, list(Venue)),
    ):
        missing = [member.value for member in members if member not in table]
        if missing:
            errors.append(f"{label} is missing: {', '.join(missing)}")
        for member, value in table.items():
            if value <= 0:
                errors.append(f"{label}.{member.value} must be greater than zero")

    opponent = config.opponent
    if opponent.league_average_conceded <= 0:
        errors.append("opponent.league_average_conceded must be greater than zero")
    if opponent.ratio_cap <= 0:
        errors.append("opponent.ratio_cap must be greater than zero")

    curve = config.confidence
    if curve.minimum <= 0:
        errors.append("confidence.minimum must be greater than zero")
    if curve.maximum <= curve.minimum:
        errors.append("confidence.maximum must exceed confidence.minimum")
    if not 0 <= curve.minutes_floor < 1:
        errors.append("confidence.minutes_floor must be within [0, 1)")
    if not 0 <= curve.matches_floor < 1:
        errors.append("confidence.matches_floor must be within [0, 1)")
    if curve.minutes_ceiling <= 0:
        errors.append("confidence.minutes_ceiling must be greater than zero")
    if curve.matches_saturation <= 1:
        errors.append("confidence.matches_saturation must be greater than one")
    if curve.minimum > 0 and curve.minimum < 0.5:
        warnings.append(
            "confidence.minimum is below 0.5; thin samples will be shrunk heavily"
        )

    if config.epsilon <= 0:
        errors.append("epsilon must be greater than zero")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError(f"Calibration validation failed:\n{bullet_list}")

    return warnings


__all__ = [
    "CALIBRATION_PROFILES",
    "CalibrationConfig",
    "ConfidenceCurve",
    "DEFAULT_PROFILE",
    "ModelWeights",
    "MultiplierTables",
    "OpponentAdjustment",
    "VenueAdjustment",
    "load_calibration",
    "profile_defaults",
    "validate_calibration",
]
