"""Default configuration values for nob."""

from pathlib import Path

# Default paths
DEFAULT_CONFIG_DIR = Path.home() / ".nob"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_CREDENTIALS_FILE = DEFAULT_CONFIG_DIR / "config.json"
DEFAULT_LOG_FILE = DEFAULT_CONFIG_DIR / "nob.log"

# Text generation
DEFAULT_API_ENDPOINT = "https://nob-proxy.hetkp8044.workers.dev"
DEFAULT_MODEL = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"
DEFAULT_MODEL_TIMEOUT = 30.0
WORKERS_AI_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"

# Agent loop
DEFAULT_MAX_STEPS = 10
DEFAULT_TURN_WINDOW = 10
DEFAULT_OUTPUT_LIMIT = 2000

# Completion
DEFAULT_MAX_COMPLETIONS = 20
DEFAULT_CACHE_SIZE = 1000
DEFAULT_QUERY_TIMEOUT = 1.0
DEFAULT_HISTORY_LINES = 500

# Environment variables for personal credentials
ENV_ACCOUNT_ID = "NOB_CLOUDFLARE_ACCOUNT_ID"
ENV_API_TOKEN = "NOB_CLOUDFLARE_API_TOKEN"

RATE_LIMIT_HINT = (
    "To use your own API key, run 'nob set-api-key' or set:\n"
    f"export {ENV_ACCOUNT_ID}=your_account_id\n"
    f"export {ENV_API_TOKEN}=your_api_token"
)


def ensure_default_dirs() -> None:
    """Ensure default directories exist."""
    DEFAULT_CONFIG_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
