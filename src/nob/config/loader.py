"""Configuration loading with hierarchy support."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from nob.config.defaults import (
    DEFAULT_CONFIG_FILE,
    ENV_ACCOUNT_ID,
    ENV_API_TOKEN,
)
from nob.config.schemas import NobConfig
from nob.config.store import CredentialStore

ENV_PREFIX = "NOB_"

# Read explicitly into the llm section rather than through the generic mapping
CREDENTIAL_ENV_VARS = {
    ENV_ACCOUNT_ID: "cloudflare_account_id",
    ENV_API_TOKEN: "cloudflare_api_token",
}


def get_default_config_path() -> Path:
    """Get the default user configuration path."""
    return DEFAULT_CONFIG_FILE


def get_config_paths() -> list[Path]:
    """Get ordered list of configuration paths to check."""
    paths = []

    system_config = Path("/etc/nob/config.yaml")
    if system_config.exists():
        paths.append(system_config)

    user_config = get_default_config_path()
    if user_config.exists():
        paths.append(user_config)

    project_config = Path.cwd() / ".nob.yaml"
    if project_config.exists():
        paths.append(project_config)

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    with open(path, "r") as f:
        content = yaml.safe_load(f) or {}
    return content


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables.

    Environment variables are prefixed with NOB_ and use double underscores
    for nested keys. For example:
    - NOB_LOG_LEVEL=DEBUG -> {"log_level": "DEBUG"}
    - NOB_LLM__MODEL=@cf/foo -> {"llm": {"model": "@cf/foo"}}

    The credential variables NOB_CLOUDFLARE_ACCOUNT_ID and
    NOB_CLOUDFLARE_API_TOKEN map into the llm section verbatim.
    """
    overrides: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        if key in CREDENTIAL_ENV_VARS:
            if value:
                overrides.setdefault("llm", {})[CREDENTIAL_ENV_VARS[key]] = value
            continue

        config_key = key[len(ENV_PREFIX):].lower()
        parts = config_key.split("__")

        current = overrides
        for part in parts[:-1]:
            if part not in current or not isinstance(current[part], dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = _parse_env_value(value)

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def load_config(
    config_path: Optional[Path] = None,
    include_env: bool = True,
    credential_store: Optional[CredentialStore] = None,
) -> NobConfig:
    """Load configuration from all sources with proper hierarchy.

    Loading order (later overrides earlier):
    1. Default values (from schema)
    2. System config (/etc/nob/config.yaml)
    3. User config (~/.nob/config.yaml)
    4. Project config (.nob.yaml in cwd)
    5. Explicit config file (--config argument)
    6. Stored personal credentials (~/.nob/config.json)
    7. Environment variables (NOB_*)

    Args:
        config_path: Optional explicit configuration file path
        include_env: Whether to include environment variable overrides
        credential_store: Store to read personal credentials from. Uses the
            default location if None.

    Returns:
        Validated NobConfig instance
    """
    merged_config: dict[str, Any] = {}

    for path in get_config_paths():
        try:
            file_config = load_yaml_config(path)
            merged_config = deep_merge(merged_config, file_config)
        except (OSError, yaml.YAMLError):
            # Unreadable files in the standard locations are skipped
            pass

    if config_path:
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        explicit_config = load_yaml_config(config_path)
        merged_config = deep_merge(merged_config, explicit_config)

    store = credential_store or CredentialStore()
    credentials = store.load()
    if credentials.has_personal_key:
        merged_config = deep_merge(
            merged_config,
            {
                "llm": {
                    "cloudflare_account_id": credentials.cloudflare_account_id,
                    "cloudflare_api_token": credentials.cloudflare_api_token,
                }
            },
        )

    if include_env:
        env_overrides = get_env_overrides()
        merged_config = deep_merge(merged_config, env_overrides)

    return NobConfig(**merged_config)


def create_default_config(path: Path) -> None:
    """Create a default configuration file.

    Args:
        path: Path where to create the config file
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    default_config = NobConfig()
    config_dict = default_config.model_dump(mode="json", exclude_none=True)
    # Credentials belong in the credential store, not the settings file
    for key in ("cloudflare_account_id", "cloudflare_api_token"):
        config_dict["llm"].pop(key, None)

    yaml_content = """# nob configuration
# Personal API keys are managed with 'nob set-api-key', not in this file.

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    with open(path, "w") as f:
        f.write(yaml_content)
