"""Text generation providers.

Supported providers:
- BackendProxyClient: shared, rate-limited nob backend (default)
- WorkersAIClient: Cloudflare Workers AI with the user's own key
"""

from nob.agent.providers.proxy import BackendProxyClient
from nob.agent.providers.workers_ai import WorkersAIClient

__all__ = [
    "BackendProxyClient",
    "WorkersAIClient",
    "get_client",
]


def get_client(provider: str, **kwargs):
    """Factory function to get a text generation client by provider name.

    Args:
        provider: Provider name (proxy, workers-ai)
        **kwargs: Provider-specific configuration

    Returns:
        TextGenerationService instance

    Example:
        client = get_client("proxy", endpoint="https://...", user_id="me")
        client = get_client("workers-ai", account_id="...", api_token="...")
    """
    providers = {
        "proxy": BackendProxyClient,
        "workers-ai": WorkersAIClient,
    }

    provider_lower = provider.lower()
    if provider_lower not in providers:
        available = list(providers.keys())
        raise ValueError(f"Unknown provider: {provider}. Available: {available}")

    return providers[provider_lower](**kwargs)
