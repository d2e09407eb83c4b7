"""
Configuration management for the ORbit scoring engine.
"""
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

from orbit_scoring.models import ScorecardSettings, StartMilestone

# Go up from src/orbit_scoring/utils/config.py to the project root
_THIS_FILE = Path(__file__).resolve()
_PROJECT_ROOT = _THIS_FILE.parents[3]
_ENV_FILE = _PROJECT_ROOT / ".env"

# Default minimum cases in the period for a surgeon to be listed.
# ORBIT_MIN_CASE_THRESHOLD overrides it at runtime.
MIN_CASE_THRESHOLD = 15


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing required values."""
    pass


class Settings(BaseSettings):
    """Engine settings loaded from ORBIT_* environment variables"""

    # Engine
    min_case_threshold: int = MIN_CASE_THRESHOLD
    default_timezone: str = "America/Chicago"
    enable_diagnostics: bool = False

    # Facility defaults used when a caller supplies no analytics settings
    start_time_milestone: StartMilestone = StartMilestone.PATIENT_IN
    start_time_grace_minutes: float = 3
    start_time_floor_minutes: float = 20
    waiting_on_surgeon_minutes: float = 3
    waiting_on_surgeon_floor_minutes: float = 10
    min_procedure_cases: int = 3
    gate_peer_cohorts: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="ORBIT_",
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def scorecard_settings(self) -> ScorecardSettings:
        """Build facility scoring settings from the configured defaults"""
        return ScorecardSettings(
            start_time_milestone=self.start_time_milestone,
            start_time_grace_minutes=self.start_time_grace_minutes,
            start_time_floor_minutes=self.start_time_floor_minutes,
            waiting_on_surgeon_minutes=self.waiting_on_surgeon_minutes,
            waiting_on_surgeon_floor_minutes=self.waiting_on_surgeon_floor_minutes,
            min_procedure_cases=self.min_procedure_cases,
            gate_peer_cohorts=self.gate_peer_cohorts,
        )


def resolve_timezone(name: str) -> ZoneInfo:
    """
    Look up an IANA timezone.

    Raises:
        ConfigurationError: If the name is not a known timezone
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown facility timezone: {name!r}") from e


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings instance loaded from environment
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """
    Force reload settings from environment.

    Returns:
        New Settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
