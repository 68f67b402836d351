"""
Cutscene Toolkit - Configuration Settings
Export envelope defaults, compiler switches, engine naming conventions and logging.
"""

from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cutscene toolkit settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CUTSCENE_",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Export Envelope ───────────────────────────────────────────────
    export_fps: int = Field(default=30, gt=0)
    untitled_id: str = "untitled"

    # ── Engine Conventions ────────────────────────────────────────────
    # Scope marker the engine prepends to global variables on its own side.
    global_var_prefix: str = "global."

    # ── Compiler ──────────────────────────────────────────────────────
    mark_named_nodes: bool = True

    # ── HTTP Service ──────────────────────────────────────────────────
    cors_allowed_origins: str = "*"

    # ── Logging ───────────────────────────────────────────────────────
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    def cors_origins(self) -> List[str]:
        raw = self.cors_allowed_origins.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


settings = Settings()
