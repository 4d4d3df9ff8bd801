"""Configuration schemas using Pydantic for validation."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from nob.config.defaults import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_CACHE_SIZE,
    DEFAULT_HISTORY_LINES,
    DEFAULT_LOG_FILE,
    DEFAULT_MAX_COMPLETIONS,
    DEFAULT_MAX_STEPS,
    DEFAULT_MODEL,
    DEFAULT_MODEL_TIMEOUT,
    DEFAULT_OUTPUT_LIMIT,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_TURN_WINDOW,
)


class Mode(str, Enum):
    """Input handling mode."""

    ON = "on"  # AI mode
    OFF = "off"  # Manual mode with autosuggestion


class LLMConfig(BaseModel):
    """Text generation service configuration."""

    api_endpoint: Optional[str] = Field(
        default=DEFAULT_API_ENDPOINT,
        description="Shared backend endpoint used when no personal key is set",
    )
    model: str = Field(
        default=DEFAULT_MODEL,
        description="Model identifier sent with every request",
    )
    cloudflare_account_id: Optional[str] = Field(
        default=None,
        description="Personal Workers AI account id (bring your own key)",
    )
    cloudflare_api_token: Optional[str] = Field(
        default=None,
        description="Personal Workers AI API token (bring your own key)",
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Opaque user identifier sent to the shared backend",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_MODEL_TIMEOUT,
        gt=0,
        description="Timeout for one model call",
    )

    @property
    def has_personal_key(self) -> bool:
        """Whether both halves of a personal credential are present."""
        return bool(self.cloudflare_account_id and self.cloudflare_api_token)

    @property
    def is_configured(self) -> bool:
        """Whether any text generation backend is reachable."""
        return self.has_personal_key or bool(self.api_endpoint)


class AgentConfig(BaseModel):
    """Agent loop configuration."""

    max_steps: int = Field(
        default=DEFAULT_MAX_STEPS,
        gt=0,
        description="Maximum model calls per task",
    )
    turn_window: int = Field(
        default=DEFAULT_TURN_WINDOW,
        gt=0,
        description="Conversation turns sent with each request",
    )
    output_limit: int = Field(
        default=DEFAULT_OUTPUT_LIMIT,
        gt=0,
        description="Characters of command output kept for the model",
    )


class ShellConfig(BaseModel):
    """Shell front end configuration."""

    backend: Optional[str] = Field(
        default=None,
        description="Shell used to run commands (defaults to $SHELL)",
    )
    mode: Optional[Mode] = Field(
        default=None,
        description="Initial mode; AI mode when a backend is configured",
    )
    history_lines: int = Field(
        default=DEFAULT_HISTORY_LINES,
        gt=0,
        description="Lines read from the shell history file for suggestions",
    )
    use_color: bool = Field(
        default=True,
        description="Use ANSI colors",
    )


class CompletionConfig(BaseModel):
    """Completion index configuration."""

    max_results: int = Field(
        default=DEFAULT_MAX_COMPLETIONS,
        gt=0,
        description="Maximum completions returned for one query",
    )
    cache_size: int = Field(
        default=DEFAULT_CACHE_SIZE,
        gt=0,
        description="Cached partials kept before the cache is cleared",
    )
    query_timeout: float = Field(
        default=DEFAULT_QUERY_TIMEOUT,
        gt=0,
        description="Timeout for git/project queries in seconds",
    )


class TelemetryConfig(BaseModel):
    """Logging configuration."""

    log_file: Optional[Path] = Field(
        default=DEFAULT_LOG_FILE,
        description="Path to log file",
    )
    json_format: bool = Field(
        default=True,
        description="Write JSON log lines",
    )


class NobConfig(BaseModel):
    """Root configuration for nob."""

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="Text generation configuration",
    )
    agent: AgentConfig = Field(
        default_factory=AgentConfig,
        description="Agent loop configuration",
    )
    shell: ShellConfig = Field(
        default_factory=ShellConfig,
        description="Shell configuration",
    )
    completion: CompletionConfig = Field(
        default_factory=CompletionConfig,
        description="Completion configuration",
    )
    telemetry: TelemetryConfig = Field(
        default_factory=TelemetryConfig,
        description="Logging configuration",
    )
    log_level: str = Field(
        default="INFO",
        description="Global log level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    def initial_mode(self) -> Mode:
        """Mode the session starts in."""
        if self.shell.mode is not None:
            return self.shell.mode
        return Mode.ON if self.llm.is_configured else Mode.OFF
