"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.capacity import AnyBarberPolicy
from .domain.exceptions import ConfigError
from .domain.models import WorkingHoursWindow, parse_working_hours


def _default_week() -> List[dict]:
    """Monday to Saturday 09:00-18:00, closed on Sunday."""
    return [
        {
            "dayOfWeek": day,
            "isOpen": day != 0,
            "start": "09:00",
            "end": "18:00",
        }
        for day in range(7)
    ]


class StoreConfig(BaseModel):
    """Where barbershop data lives."""
    backend: Literal["json", "rest"] = "json"
    data_file: Path = Path("barberslots.json")
    base_url: str = ""
    api_key: str = ""
    timeout_seconds: float = 10.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure upstream reads are bounded."""
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_rest_settings(self) -> "StoreConfig":
        """A REST store needs an endpoint and a key."""
        if self.backend == "rest" and not (self.base_url and self.api_key):
            raise ValueError("store.base_url and store.api_key are required for the rest backend")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Sao_Paulo"
    slot_step_minutes: int = 30
    any_barber_policy: AnyBarberPolicy = AnyBarberPolicy.headcount
    log_level: str = "WARNING"
    store: StoreConfig = Field(default_factory=StoreConfig)
    default_working_hours: List[dict] = Field(default_factory=_default_week)

    @field_validator("slot_step_minutes")
    @classmethod
    def validate_step(cls, value: int) -> int:
        """Slots sit on a 15, 30 or 60 minute grid."""
        if value not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level: {value}")
        return level

    @field_validator("default_working_hours")
    @classmethod
    def validate_default_working_hours(cls, value: List[dict]) -> List[dict]:
        """The signup template must be clean: reject instead of skipping."""
        seen: set[int] = set()
        for record in value:
            try:
                window = WorkingHoursWindow.from_record(record)
            except ConfigError as exc:
                raise ValueError(f"Invalid default working hours entry {record!r}: {exc}") from exc
            if window.day_of_week in seen:
                raise ValueError(f"Duplicate default working hours for day {window.day_of_week}")
            seen.add(window.day_of_week)
        return value

    def working_hours_template(self) -> List[WorkingHoursWindow]:
        """Working hours given to a newly provisioned barbershop."""
        return parse_working_hours(self.default_working_hours, owner="template")

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative data files are resolved next to the config file.
        if not config.store.data_file.is_absolute():
            config.store.data_file = config_path.parent / config.store.data_file

        return config

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppConfig":
        """Load the given file, the default file if present, or built-in defaults."""
        path = config_path or get_default_config_path()
        if config_path is None and not path.exists():
            return cls()
        return cls.load_from_yaml(path)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of barberslots/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
