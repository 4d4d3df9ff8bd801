"""Configuration management for nob."""

from nob.config.schemas import (
    AgentConfig,
    CompletionConfig,
    LLMConfig,
    Mode,
    NobConfig,
    ShellConfig,
    TelemetryConfig,
)
from nob.config.loader import load_config, get_default_config_path
from nob.config.store import Credentials, CredentialStore

__all__ = [
    "AgentConfig",
    "CompletionConfig",
    "Credentials",
    "CredentialStore",
    "LLMConfig",
    "Mode",
    "NobConfig",
    "ShellConfig",
    "TelemetryConfig",
    "load_config",
    "get_default_config_path",
]
