"""Fixtures shared by the lander tests. Provider HTTP and the netlify CLI are never touched."""

import pathlib
from typing import Any, Dict, List

import pytest

from lander.context import Context
from lander.executor import ToolExecutor
from lander.providers import AnthropicMessagesAdapter, OpenAIChatAdapter
from lander.settings import LanderConfig
from lander.storage import ProjectStore
from lander.tools import ToolContext

NETLIFY_TOKEN = "nfp_test_token_0123456789abcdef"


class ScriptedMixin:
    """Replaces the network call with canned provider bodies, recording every request."""

    def script(self, *responses: Any) -> "ScriptedMixin":
        self.responses: List[Any] = list(responses)
        self.requests: List[Dict[str, Any]] = []
        return self

    async def send_turn(self, messages, tools, system_prompt, max_tokens, deadline=None):
        self.requests.append(
            {
                "messages": messages,
                "tools": tools,
                "system_prompt": system_prompt,
                "max_tokens": max_tokens,
                "deadline": deadline,
            }
        )
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return await item()
        return item


class ScriptedAnthropic(ScriptedMixin, AnthropicMessagesAdapter):
    pass


class ScriptedOpenAI(ScriptedMixin, OpenAIChatAdapter):
    pass


def anthropic_text(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "usage": {"input_tokens": 1, "output_tokens": 1}}


def anthropic_tools(*calls: Dict[str, Any], text: str = "") -> Dict[str, Any]:
    content: List[Dict[str, Any]] = [{"type": "text", "text": text}] if text else []
    for i, call in enumerate(calls):
        content.append({"type": "tool_use", "id": f"toolu_{i}", "name": call["name"], "input": call["input"]})
    return {"content": content, "stop_reason": "tool_use"}


@pytest.fixture
def ctx() -> Context:
    return Context(secrets=[NETLIFY_TOKEN], verbose=True)


@pytest.fixture
def store(tmp_path: pathlib.Path) -> ProjectStore:
    return ProjectStore(tmp_path / "projects")


@pytest.fixture
def tool_context(store: ProjectStore, ctx: Context) -> ToolContext:
    return ToolContext(store=store, ctx=ctx, netlify_auth_token=None, deploy_timeout=5.0)


@pytest.fixture
def deploy_context(store: ProjectStore, ctx: Context) -> ToolContext:
    return ToolContext(store=store, ctx=ctx, netlify_auth_token=NETLIFY_TOKEN, deploy_timeout=5.0)


@pytest.fixture
def executor(tool_context: ToolContext) -> ToolExecutor:
    return ToolExecutor(tool_context)


@pytest.fixture
def config(tmp_path: pathlib.Path) -> LanderConfig:
    return LanderConfig(
        projects_dir=tmp_path / "projects",
        anthropic_api_key="test-anthropic-key",
        openai_api_key="test-openai-key",
        generation_timeout=5.0,
    )


@pytest.fixture
def anthropic_adapter(config: LanderConfig, ctx: Context) -> ScriptedAnthropic:
    return ScriptedAnthropic(config.anthropic_api_key, "claude-3-haiku-20240307", config.anthropic_base_url, ctx)


@pytest.fixture
def openai_adapter(config: LanderConfig, ctx: Context) -> ScriptedOpenAI:
    return ScriptedOpenAI(config.openai_api_key, "gpt-4o-mini", config.openai_base_url, ctx)
