# lander: Model name resolution and adapter selection. The lookup table lives in LanderConfig.models so new names
# can be added from settings.yaml without touching code.

from typing import Dict, Optional

from ..context import Context
from ..settings import LanderConfig, ModelRoute
from .anthropic_messages import AnthropicMessagesAdapter
from .base import ProviderAdapter
from .openai_chat import OpenAIChatAdapter

__all__ = [
    "AnthropicMessagesAdapter",
    "OpenAIChatAdapter",
    "ProviderAdapter",
    "build_adapter",
    "resolve_model",
]


def resolve_model(name: Optional[str], routes: Dict[str, ModelRoute], default: str) -> ModelRoute:
    """Route a requested model name, falling back to the default entry for unknown or missing names."""
    if name and name in routes:
        return routes[name]
    if default in routes:
        return routes[default]
    # Default name not in the table: treat it as an Anthropic model id.
    return ModelRoute(provider="anthropic", model_id=default)


def build_adapter(route: ModelRoute, cfg: LanderConfig, ctx: Context) -> ProviderAdapter:
    if route.provider == "openai":
        return OpenAIChatAdapter(
            cfg.openai_api_key, route.model_id, cfg.openai_base_url, ctx, request_timeout=cfg.generation_timeout
        )
    return AnthropicMessagesAdapter(
        cfg.anthropic_api_key, route.model_id, cfg.anthropic_base_url, ctx, request_timeout=cfg.generation_timeout
    )
