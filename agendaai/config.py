"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import List, Literal, Optional
from zoneinfo import available_timezones

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import SchedulingPolicy
from .services.assistant import EventSettings


class PolicyConfig(BaseModel):
    """Working-hour policy of the service provider."""
    timezone: str = "America/Sao_Paulo"
    start_hour: int = 9
    end_hour: int = 18
    slot_duration_minutes: int = 60
    max_suggestions: int = 3
    search_horizon_days: int = 14
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        if value not in available_timezones():
            raise ValueError(f"Unknown IANA timezone: {value}")
        return value

    @field_validator("start_hour")
    @classmethod
    def validate_start_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError(f"start_hour must be between 0 and 23, got {value}")
        return value

    @field_validator("end_hour")
    @classmethod
    def validate_end_hour(cls, value: int) -> int:
        if not 1 <= value <= 24:
            raise ValueError(f"end_hour must be between 1 and 24, got {value}")
        return value

    @field_validator("slot_duration_minutes", "max_suggestions", "search_horizon_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("exclude_days")
    @classmethod
    def validate_exclude_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"exclude_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "PolicyConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        if len(self.exclude_days) == 7:
            raise ValueError("exclude_days cannot exclude every day of the week")
        return self

    def to_policy(self) -> SchedulingPolicy:
        """Build the domain policy."""
        return SchedulingPolicy(
            timezone=self.timezone,
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            slot_duration_minutes=self.slot_duration_minutes,
            max_suggestions=self.max_suggestions,
            search_horizon_days=self.search_horizon_days,
            exclude_weekdays=tuple(self.exclude_days),
        )


class CalendarConfig(BaseModel):
    """Where the provider's busy times come from."""
    provider: Literal["google", "microsoft", "mock"] = "google"
    calendar_id: str = "primary"
    service_account_file: Optional[Path] = None  # google
    client_id: Optional[str] = None  # microsoft
    tenant_id: Optional[str] = None  # microsoft

    @model_validator(mode="after")
    def validate_provider_settings(self) -> "CalendarConfig":
        """Ensure the selected provider has its credentials configured."""
        if self.provider == "google" and self.service_account_file is None:
            raise ValueError("calendar.service_account_file is required for the google provider")
        if self.provider == "microsoft" and not (self.client_id and self.tenant_id):
            raise ValueError("calendar.client_id and calendar.tenant_id are required for the microsoft provider")
        return self


class LLMConfig(BaseModel):
    """Language model endpoint used for intent extraction."""
    model: str = "gpt-4o-mini"
    api_key_env: str = "OPENAI_API_KEY"
    base_url: Optional[str] = None
    timeout_seconds: float = 30.0
    max_retries: int = 2

    def get_api_key(self) -> Optional[str]:
        """Read the API key from the configured environment variable."""
        return os.environ.get(self.api_key_env)


class EventConfig(BaseModel):
    """Details written into booked .ics files."""
    organizer_name: str = "Agenda AI"
    organizer_email: str = "noreply@agenda-ai.com"
    attendee_email: str = "user@example.com"
    attendee_name: Optional[str] = None
    uid_domain: str = "agenda-ai.com"
    product_id: str = "-//AgendaAI//App//EN"

    def to_settings(self) -> EventSettings:
        return EventSettings(**self.model_dump())


class AppConfig(BaseModel):
    """Application configuration."""
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    calendar: CalendarConfig = Field(default_factory=lambda: CalendarConfig(provider="mock"))
    llm: LLMConfig = Field(default_factory=LLMConfig)
    event: EventConfig = Field(default_factory=EventConfig)

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

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of agendaai/)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path
