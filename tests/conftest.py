from __future__ import annotations

import os
from pathlib import Path

import pytest

from shotline.calibration import CalibrationConfig, profile_defaults
from shotline.config import reset_settings
from shotline.evaluation import MatchContext, RawInputs, ShotPropEvaluator
from shotline.selectors import MatchSelectors, PlayStyle, Position


@pytest.fixture()
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("SHOTLINE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SHOTLINE_CONFIG_DIR", str(tmp_path / "config-home"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture()
def hybrid() -> CalibrationConfig:
    return CalibrationConfig()


@pytest.fixture()
def aggressive() -> CalibrationConfig:
    return CalibrationConfig.model_validate(profile_defaults("aggressive"))


@pytest.fixture()
def tight() -> CalibrationConfig:
    return CalibrationConfig.model_validate(profile_defaults("tight"))


@pytest.fixture()
def neutral_inputs() -> RawInputs:
    return RawInputs(
        baseline_rate=3.5,
        recent_form_rate=3.0,
        opponent_conceded_rate=12.0,
        team_output_rate=12.0,
    )


@pytest.fixture()
def forward_selectors() -> MatchSelectors:
    return MatchSelectors(position=Position.FORWARD, play_style=PlayStyle.BALANCED)


@pytest.fixture()
def regular_context() -> MatchContext:
    return MatchContext(average_minutes=70.0, matches_played=10.0, betting_line=2.5)


@pytest.fixture()
def evaluator(hybrid: CalibrationConfig) -> ShotPropEvaluator:
    return ShotPropEvaluator(hybrid)
