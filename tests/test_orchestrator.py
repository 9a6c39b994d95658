import asyncio
import json
import time

import pytest

from conftest import anthropic_text, anthropic_tools
from lander import deploy, document
from lander.deploy import CliOutput
from lander.errors import ProviderRequestFailed, TurnTimeout
from lander.executor import ToolExecutor
from lander.models import ChatRequest
from lander.orchestrator import GENERIC_ERROR, TIMEOUT_ERROR, TurnOrchestrator
from lander.providers import AnthropicMessagesAdapter
from lander.tools import ToolContext


def make_orchestrator(config, store, ctx, adapter, netlify_token=None):
    executor = ToolExecutor(ToolContext(store=store, ctx=ctx, netlify_auth_token=netlify_token))
    routes = []

    def factory(route):
        routes.append(route)
        return adapter

    orch = TurnOrchestrator(config, store, executor, ctx, adapter_factory=factory)
    return orch, routes


async def collect(orch, **request):
    return [e async for e in orch.run_turn(ChatRequest(**request))]


def kinds(events):
    return [e.type for e in events]


@pytest.mark.asyncio
async def test_plain_text_turn(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(anthropic_text("Hello there"))
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="hi")
    assert kinds(events) == ["chunk", "done"]
    assert events[0].content == "Hello there"
    assert events[1].metadata == {
        "toolsExecuted": 0,
        "toolsUsed": [],
        "model": "claude-3-haiku-20240307",
        "provider": "anthropic",
    }
    assert len(anthropic_adapter.requests) == 1


@pytest.mark.asyncio
async def test_create_then_deploy_event_order(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(
        anthropic_tools(
            {"name": "create_html", "input": {"projectId": "p1", "html": "<h1>Hi</h1>"}},
            {"name": "deploy_to_netlify", "input": {"projectId": "p1"}},
            text="Building now.",
        ),
        anthropic_text("Created your page."),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="make a page and deploy it")

    assert kinds(events) == [
        "tool-start",
        "tool-success",
        "code-updated",
        "tool-start",
        "tool-error",
        "chunk",
        "done",
    ]
    start = events[0]
    assert (start.tool, start.call_id, start.icon, start.human_message) == (
        "create_html",
        "toolu_0",
        "🎨",
        "Creating landing page...",
    )
    assert events[1].files == ["index.html"]
    assert events[2].project_id == "p1"
    assert events[3].icon == "🚀"
    assert "NETLIFY_AUTH_TOKEN" in events[4].message
    assert events[5].content == "Created your page."
    assert events[6].metadata["toolsExecuted"] == 2
    assert events[6].metadata["toolsUsed"] == ["create_html", "deploy_to_netlify"]
    assert store.exists("p1")


@pytest.mark.asyncio
async def test_single_follow_up_carries_every_result(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(
        anthropic_tools(
            {"name": "create_html", "input": {"projectId": "p1", "html": "<p>x</p>"}},
            {"name": "get_code", "input": {"projectId": "p1"}},
        ),
        anthropic_text(""),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="go")

    assert kinds(events)[-1] == "done"
    assert "chunk" not in kinds(events)
    assert len(anthropic_adapter.requests) == 2
    follow_up = anthropic_adapter.requests[1]
    assert follow_up["max_tokens"] == config.follow_up_max_tokens
    last = follow_up["messages"][-1]
    assert last["role"] == "user"
    assert [b["tool_use_id"] for b in last["content"]] == ["toolu_0", "toolu_1"]
    assert json.loads(last["content"][1]["content"])["html"] == "<p>x</p>"
    assert follow_up["messages"][-2]["role"] == "assistant"


@pytest.mark.asyncio
async def test_deploy_success_emits_no_code_update(config, store, ctx, anthropic_adapter, monkeypatch):
    store.write("p1", document.render("<p>x</p>"))

    async def fake_run_cli(argv, cwd, env, timeout):
        return CliOutput(0, "Website URL: https://p1.netlify.app", "")

    monkeypatch.setattr(deploy, "run_cli", fake_run_cli)
    anthropic_adapter.script(
        anthropic_tools({"name": "deploy_to_netlify", "input": {"projectId": "p1"}}),
        anthropic_text("Live!"),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter, netlify_token="tok")
    events = await collect(orch, message="deploy", projectId="p1")
    assert kinds(events) == ["tool-start", "tool-success", "chunk", "done"]
    assert "https://p1.netlify.app" in events[1].message


@pytest.mark.asyncio
async def test_deploy_timeout_ends_the_turn(config, store, ctx, anthropic_adapter, monkeypatch):
    async def slow_run_cli(argv, cwd, env, timeout):
        raise TurnTimeout(f"Netlify deploy exceeded {timeout:g}s")

    monkeypatch.setattr(deploy, "run_cli", slow_run_cli)
    anthropic_adapter.script(
        anthropic_tools(
            {"name": "create_html", "input": {"projectId": "p1", "html": "<h1>Hi</h1>"}},
            {"name": "deploy_to_netlify", "input": {"projectId": "p1"}},
        ),
        anthropic_text("never sent"),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter, netlify_token="tok")
    events = await collect(orch, message="make a page and deploy it")

    assert kinds(events) == ["tool-start", "tool-success", "code-updated", "tool-start", "error"]
    assert events[3].tool == "deploy_to_netlify"
    assert events[-1].content == TIMEOUT_ERROR
    # No follow-up request after the timeout, but the created page stays.
    assert len(anthropic_adapter.requests) == 1
    assert store.exists("p1")


@pytest.mark.asyncio
async def test_model_calls_share_one_deadline(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(
        anthropic_tools({"name": "create_html", "input": {"projectId": "p1", "html": "<p>x</p>"}}),
        anthropic_text("Done."),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    started = time.monotonic()
    await collect(orch, message="go")
    first, second = (r["deadline"] for r in anthropic_adapter.requests)
    assert started < first <= time.monotonic() + config.generation_timeout
    # Tool time is not charged, so the follow-up deadline moves only by how long the tools ran.
    assert first <= second <= first + 0.5


@pytest.mark.asyncio
async def test_existing_project_is_injected_into_the_prompt(config, store, ctx, anthropic_adapter):
    store.write("p1", document.render("<p>current</p>", "b {}", ""))
    anthropic_adapter.script(anthropic_text("ok"))
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    await collect(
        orch,
        message="make it blue",
        projectId="p1",
        conversationHistory=[{"role": "user", "content": "make a page"}, {"role": "assistant", "content": "Done"}],
    )

    request = anthropic_adapter.requests[0]
    user = request["messages"][-1]["content"]
    assert user.startswith("CURRENT LANDING PAGE CODE:\n```html\n")
    assert "<p>current</p>" in user
    assert "USER REQUEST: make it blue" in user
    assert 'projectId="p1"' in user
    assert "CURRENT CONTEXT" in request["system_prompt"]
    assert "(p1)" in request["system_prompt"]
    assert request["messages"][:2] == [
        {"role": "user", "content": "make a page"},
        {"role": "assistant", "content": "Done"},
    ]


@pytest.mark.asyncio
async def test_unknown_project_sends_message_unmodified(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(anthropic_text("ok"))
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    await collect(orch, message="make it blue", projectId="ghost")
    request = anthropic_adapter.requests[0]
    assert request["messages"] == [{"role": "user", "content": "make it blue"}]
    assert "CURRENT CONTEXT" not in request["system_prompt"]


@pytest.mark.asyncio
async def test_model_selection(config, store, ctx, openai_adapter):
    openai_adapter.script({"choices": [{"message": {"role": "assistant", "content": "hey"}}]})
    orch, routes = make_orchestrator(config, store, ctx, openai_adapter)
    events = await collect(orch, message="hi", model="gpt-5-mini")
    assert routes[0].model_id == "gpt-4o"
    assert events[-1].metadata["provider"] == "openai"


@pytest.mark.asyncio
async def test_unknown_tool_does_not_stop_the_batch(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(
        anthropic_tools(
            {"name": "make_coffee", "input": {}},
            {"name": "create_html", "input": {"projectId": "p2", "html": "<p>x</p>"}},
        ),
        anthropic_text("done"),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="go")
    assert kinds(events) == ["tool-start", "tool-error", "tool-start", "tool-success", "code-updated", "chunk", "done"]
    assert events[0].icon == "🔧"


@pytest.mark.asyncio
async def test_provider_failure_emits_generic_error(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(ProviderRequestFailed("anthropic API error 500: secret detail", status_code=500))
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="hi")
    assert kinds(events) == ["error"]
    assert events[0].content == GENERIC_ERROR
    assert "secret detail" not in events[0].content


@pytest.mark.asyncio
async def test_follow_up_failure_after_tools(config, store, ctx, anthropic_adapter):
    anthropic_adapter.script(
        anthropic_tools({"name": "create_html", "input": {"projectId": "p1", "html": "<p>x</p>"}}),
        RuntimeError("connection reset"),
    )
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="go")
    assert kinds(events) == ["tool-start", "tool-success", "code-updated", "error"]
    # Completed writes are kept
    assert store.exists("p1")


@pytest.mark.asyncio
async def test_generation_timeout(config, store, ctx, anthropic_adapter):
    async def hang():
        await asyncio.sleep(5)

    config.generation_timeout = 0.05
    anthropic_adapter.script(hang)
    orch, _ = make_orchestrator(config, store, ctx, anthropic_adapter)
    events = await collect(orch, message="hi")
    assert kinds(events) == ["error"]
    assert events[0].content == TIMEOUT_ERROR


@pytest.mark.asyncio
async def test_missing_api_key_surfaces_as_error(config, store, ctx):
    adapter = AnthropicMessagesAdapter(None, "claude-3-haiku-20240307", config.anthropic_base_url, ctx)
    orch, _ = make_orchestrator(config, store, ctx, adapter)
    events = await collect(orch, message="hi")
    assert kinds(events) == ["error"]
