"""
shotline: price "player shots" betting lines with a calibrated Poisson model.

The package turns a player's baseline and recent shot rates, the opponent's
defensive record and a handful of categorical selectors into an expected
shot count, the probability of clearing a line, a fair decimal odd, a
heuristic interval and a sample-quality rating.
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - exercised in packaging workflows
    __version__ = version("shotline")
except PackageNotFoundError:  # pragma: no cover - local editable installs
    __version__ = "0.0.0"

_EXPORTS = {
    # Evaluation entry points
    "evaluate": ".evaluation",
    "EvaluationResult": ".evaluation",
    "MatchContext": ".evaluation",
    "RawInputs": ".evaluation",
    "ShotPropEvaluator": ".evaluation",
    # Model and math
    "ExpectationBreakdown": ".expectation",
    "ExpectationModel": ".expectation",
    "ConfidenceInterval": ".probability",
    "confidence_interval": ".probability",
    "line_to_threshold": ".probability",
    "poisson_survival": ".probability",
    "survival_ladder": ".probability",
    "INFINITE_ODD": ".odds",
    "fair_odd": ".odds",
    "assess_quality": ".quality",
    "QualityLevel": ".quality",
    "validate_inputs": ".validation",
    # Selectors
    "MatchSelectors": ".selectors",
    "PlayStyle": ".selectors",
    "Position": ".selectors",
    "Venue": ".selectors",
    # Configuration
    "CalibrationConfig": ".calibration",
    "load_calibration": ".calibration",
    "validate_calibration": ".calibration",
    "get_settings": ".config",
    # Errors
    "ConfigurationError": ".exceptions",
    "InputValidationError": ".exceptions",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:  # pragma: no cover - thin lazy importer
    from importlib import import_module

    target_module = _EXPORTS.get(name)
    if not target_module:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    module = import_module(target_module, __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:  # pragma: no cover - trivial
    return sorted(list(globals().keys()) + __all__)
