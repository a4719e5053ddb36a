"""Exception types raised by the shot probability engine."""

from __future__ import annotations

from typing import Iterable


class ConfigurationError(ValueError):
    """Raised when calibration or selector configuration is unusable.

    These indicate integration defects (an unknown position token, a
    calibration missing a multiplier, an opponent strategy without its
    required input) rather than bad user input.
    """


class InputValidationError(ValueError):
    """Raised when raw inputs fall outside their admissible ranges."""

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations: list[str] = list(violations)
        bullet_list = "\n".join(f"- {message}" for message in self.violations)
        super().__init__(f"Input validation failed:\n{bullet_list}")


__all__ = ["ConfigurationError", "InputValidationError"]
