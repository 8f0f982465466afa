"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
import re
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "FieldRoute Optimizer API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted run outputs.")

    # Travel estimation
    average_speed_kmh: float = Field(default=40.0, gt=0.0, description="Assumed urban driving speed.")
    traffic_multiplier: float = Field(
        default=1.3,
        ge=1.0,
        description="Travel time multiplier applied when traffic consideration is requested.",
    )

    # Route construction defaults
    default_max_route_time_minutes: int = Field(default=480, ge=1)
    default_service_time_minutes: int = Field(default=30, ge=0)
    route_start_time: str = Field(default="09:00", description="Clock time (HH:MM) routes leave the start location.")
    sequence_refinement_enabled: bool = True
    solver_first_solution_strategy: str = Field(default="PATH_CHEAPEST_ARC")
    solver_local_search_metaheuristic: str = Field(default="GREEDY_DESCENT")
    solver_time_limit_seconds: int = Field(default=5, ge=1)

    # Reporting
    fuel_cost_per_km: float = Field(default=0.15, ge=0.0)
    efficiency_warning_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    route_time_warning_ratio: float = Field(default=0.9, gt=0.0, le=1.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    appointments_table: str = "appointments"
    audit_table: str = "audit_logs"

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("route_start_time")
    @classmethod
    def _check_clock(cls, value: str) -> str:
        if not _CLOCK_PATTERN.match(value):
            raise ValueError(f"route_start_time must be HH:MM, got '{value}'")
        return value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> tuple[str, ...]:
        """Parse origins from an environment variable (JSON array or comma-separated)."""
        if isinstance(value, (tuple, list)):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = None
            if isinstance(parsed, list):
                return tuple(str(item) for item in parsed)
            return tuple(item.strip() for item in value.split(",") if item.strip())
        return tuple()


settings = Settings()
