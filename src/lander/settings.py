# lander: YAML settings loader plus the LanderConfig model that every component receives at construction.

from __future__ import annotations

import os
import pathlib
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from . import config


class ModelRoute(BaseModel):
    """Concrete provider + model id a requested model name resolves to."""
    model_config = ConfigDict(extra="forbid", frozen=True, protected_namespaces=())

    provider: Literal["openai", "anthropic"]
    model_id: str


DEFAULT_MODEL_ROUTES: Dict[str, ModelRoute] = {
    "gpt-5-nano": ModelRoute(provider="openai", model_id="gpt-4o-mini"),
    "gpt-5-mini": ModelRoute(provider="openai", model_id="gpt-4o"),
    "claude-3-haiku-20240307": ModelRoute(provider="anthropic", model_id="claude-3-haiku-20240307"),
    "claude-3-5-sonnet-20241022": ModelRoute(provider="anthropic", model_id="claude-3-5-sonnet-20241022"),
}


class LanderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    projects_dir: pathlib.Path = Field(default_factory=lambda: pathlib.Path(config.PROJECTS_DIR))
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    netlify_auth_token: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_base_url: str = "https://api.anthropic.com/v1"
    netlify_bin: str = config.NETLIFY_BIN
    generation_timeout: float = config.GENERATION_TIMEOUT
    deploy_timeout: float = config.DEPLOY_TIMEOUT
    max_tokens: int = config.MAX_TOKENS
    follow_up_max_tokens: int = config.FOLLOW_UP_MAX_TOKENS
    default_model: str = config.DEFAULT_MODEL
    models: Dict[str, ModelRoute] = Field(default_factory=lambda: dict(DEFAULT_MODEL_ROUTES))
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    def secrets(self) -> List[str]:
        """Every configured credential, for log redaction."""
        return [s for s in (self.openai_api_key, self.anthropic_api_key, self.netlify_auth_token) if s]


def load_settings(root: pathlib.Path) -> Dict[str, Any]:
    """
    Load settings from <root>/.lander/settings.yaml or settings.yml.

    Returns an empty dict {} when the settings file is missing, unreadable, or
    does not contain a mapping. The function never raises.
    """
    lander_dir = pathlib.Path(root) / ".lander"
    for p in (lander_dir / "settings.yaml", lander_dir / "settings.yml"):
        try:
            if p.exists() and p.is_file():
                data = yaml.safe_load(p.read_text(encoding="utf-8"))
                # lander: Non-mapping YAML is treated as empty settings.
                return data if isinstance(data, dict) else {}
        except (OSError, yaml.YAMLError):
            continue
    return {}


def _env(*names: str) -> Optional[str]:
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def load_config(root: Optional[pathlib.Path] = None, overrides: Optional[Dict[str, Any]] = None) -> LanderConfig:
    """
    Build a LanderConfig.

    Precedence (highest first): overrides argument, YAML settings, environment.
    The YAML `models` mapping extends the default lookup table instead of
    replacing it. Relative projects_dir values resolve against root.
    """
    root = pathlib.Path(root or ".").resolve()
    values: Dict[str, Any] = {
        "openai_api_key": _env("OPENAI_API_KEY"),
        "anthropic_api_key": _env("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
        "netlify_auth_token": _env("NETLIFY_AUTH_TOKEN"),
    }
    openai_base = _env("OPENAI_BASE_URL")
    if openai_base:
        values["openai_base_url"] = openai_base
    anthropic_base = _env("ANTHROPIC_BASE_URL")
    if anthropic_base:
        values["anthropic_base_url"] = anthropic_base

    settings = load_settings(root)
    extra_models = settings.pop("models", None)
    values.update(settings)
    values.update(overrides or {})

    routes = dict(DEFAULT_MODEL_ROUTES)
    if isinstance(extra_models, dict):
        for name, route in extra_models.items():
            routes[str(name)] = ModelRoute.model_validate(route)
    values.setdefault("models", routes)

    cfg = LanderConfig.model_validate(values)
    if not cfg.projects_dir.is_absolute():
        cfg.projects_dir = (root / cfg.projects_dir).resolve()
    return cfg
