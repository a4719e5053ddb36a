"""Process level settings for shotline."""

from pathlib import Path

from platformdirs import user_config_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShotlineSettings(BaseSettings):
    """Settings resolved from the environment and an optional ``.env`` file."""

    # Calibration selection
    profile: str = Field(
        default="hybrid",
        description="Built-in calibration profile used when none is requested",
        alias="SHOTLINE_PROFILE",
    )

    calibration_path: Path | None = Field(
        default=None,
        description="YAML calibration file layered over the profile",
        alias="SHOTLINE_CALIBRATION",
    )

    config_dir: Path = Field(
        default_factory=lambda: Path(user_config_dir("shotline")),
        description="Directory searched for calibration.yaml",
        alias="SHOTLINE_CONFIG_DIR",
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Root log level used by the command line",
        alias="SHOTLINE_LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Global settings instance
settings = ShotlineSettings()


def get_settings() -> ShotlineSettings:
    """Get the current settings."""
    return settings


def update_settings(**kwargs) -> None:
    """Update settings in place."""
    global settings
    for key, value in kwargs.items():
        if hasattr(settings, key):
            setattr(settings, key, value)
        else:
            raise ValueError(f"Unknown setting: {key}")


def reset_settings() -> None:
    """Reset settings to defaults."""
    global settings
    settings = ShotlineSettings()
