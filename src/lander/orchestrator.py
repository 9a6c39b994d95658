# lander: One chat turn as an async generator of stream events. At most two model round-trips per turn: the
# initial request and, when tools fired, a single follow-up carrying every result of the batch.

import asyncio
import enum
import time
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

from .context import Context
from .errors import TurnTimeout
from .executor import ToolExecutor
from .models import (
    AnyStreamEvent,
    ChatRequest,
    ChunkEvent,
    CodeUpdatedEvent,
    DoneEvent,
    ErrorEvent,
    ModelReply,
    ToolErrorEvent,
    ToolResult,
    ToolStartEvent,
    ToolSuccessEvent,
)
from .prompts import get_prompt
from .providers import ProviderAdapter, build_adapter, resolve_model
from .settings import LanderConfig, ModelRoute
from .storage import ProjectStore
from .tools import discover_tools, get_tool

GENERIC_ERROR = "Something went wrong. Please try again."
TIMEOUT_ERROR = "The request timed out. Please try again."

DEFAULT_ICON = "🔧"
DEFAULT_HUMAN_MESSAGE = "Processing..."

AdapterFactory = Callable[[ModelRoute], ProviderAdapter]


class TurnState(enum.Enum):
    INIT = "init"
    AWAITING_MODEL = "awaiting_model"
    PLAIN_TEXT = "plain_text"
    TOOL_CALLS_PENDING = "tool_calls_pending"
    EXECUTING_TOOLS = "executing_tools"
    AWAITING_FOLLOW_UP = "awaiting_follow_up"
    DONE = "done"
    ERROR = "error"


class _Budget:
    """Wall-clock allowance shared by the model calls of one turn."""

    def __init__(self, seconds: float) -> None:
        self.remaining = float(seconds)

    def deadline(self) -> float:
        """time.monotonic() value at which the remaining allowance runs out."""
        return time.monotonic() + self.remaining

    async def run(self, coro):
        if self.remaining <= 0:
            coro.close()
            raise TurnTimeout()
        started = time.monotonic()
        try:
            return await asyncio.wait_for(coro, timeout=self.remaining)
        except asyncio.TimeoutError:
            raise TurnTimeout() from None
        finally:
            self.remaining -= time.monotonic() - started


class TurnOrchestrator:
    def __init__(
        self,
        config: LanderConfig,
        store: ProjectStore,
        executor: ToolExecutor,
        ctx: Context,
        adapter_factory: Optional[AdapterFactory] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.executor = executor
        self.ctx = ctx
        self.adapter_factory = adapter_factory or (lambda route: build_adapter(route, config, ctx))

    def _transition(self, state: TurnState, new: TurnState) -> TurnState:
        self.ctx.log(f"Turn state: {state.value} -> {new.value}")
        return new

    def build_prompt(self, request: ChatRequest) -> Tuple[str, str]:
        """Return (system_prompt, user_message), injecting the live document when the project exists."""
        system_prompt = get_prompt("system_prompt.txt").rstrip()
        current = self.store.read_if_exists(request.project_id)
        if current is None:
            if request.project_id:
                self.ctx.log(f"Could not read project {request.project_id}, treating as new")
            return system_prompt, request.message
        self.ctx.log(f"Read existing project: {request.project_id}")
        user_message = get_prompt(
            "current_document.txt",
            document=current,
            message=request.message,
            project_id=request.project_id,
        )
        system_prompt += get_prompt("editing_context.txt", project_id=request.project_id)
        return system_prompt, user_message

    async def run_turn(self, request: ChatRequest) -> AsyncIterator[AnyStreamEvent]:
        """
        Drive one turn and yield events in causal order.

        The stream always ends with exactly one terminal event: done on
        success, error otherwise. Error events carry a generic message; the
        detail only goes to the log.
        """
        state = TurnState.INIT
        route = resolve_model(request.model, self.config.models, self.config.default_model)
        budget = _Budget(self.config.generation_timeout)
        try:
            adapter = self.adapter_factory(route)
            self.ctx.log(f"Turn using {route.provider}:{route.model_id} (requested {request.model or 'default'})")

            system_prompt, user_message = self.build_prompt(request)
            messages = adapter.translate_history(request.conversation_history)
            messages.append({"role": "user", "content": user_message})
            tools = adapter.translate_tool_schema(discover_tools())

            state = self._transition(state, TurnState.AWAITING_MODEL)
            raw = await budget.run(
                adapter.send_turn(messages, tools, system_prompt, self.config.max_tokens, deadline=budget.deadline())
            )
            reply = adapter.interpret_response(raw)

            if not reply.tool_calls:
                state = self._transition(state, TurnState.PLAIN_TEXT)
                if reply.text:
                    yield ChunkEvent(content=reply.text)
                state = self._transition(state, TurnState.DONE)
                yield DoneEvent(metadata=self._metadata([], route))
                return

            state = self._transition(state, TurnState.TOOL_CALLS_PENDING)
            state = self._transition(state, TurnState.EXECUTING_TOOLS)
            results: List[ToolResult] = []
            for invocation in reply.tool_calls:
                spec = get_tool(invocation.name)
                yield ToolStartEvent(
                    tool=invocation.name,
                    call_id=invocation.call_id,
                    arguments=invocation.arguments,
                    human_message=spec.human_message if spec else DEFAULT_HUMAN_MESSAGE,
                    icon=spec.icon if spec else DEFAULT_ICON,
                )
                result = await self.executor.execute(invocation)
                results.append(result)
                if result.success:
                    files = result.payload.get("files")
                    yield ToolSuccessEvent(
                        tool=invocation.name,
                        call_id=invocation.call_id,
                        files=files if isinstance(files, list) else None,
                        message=str(result.payload.get("message") or "Done"),
                    )
                    if spec is not None and spec.mutates_document and result.project_id:
                        yield CodeUpdatedEvent(project_id=result.project_id)
                else:
                    yield ToolErrorEvent(
                        tool=invocation.name,
                        call_id=invocation.call_id,
                        message=result.error_message or "Tool execution failed",
                    )

            state = self._transition(state, TurnState.AWAITING_FOLLOW_UP)
            follow_up = adapter.append_tool_results(messages, reply, results)
            raw = await budget.run(
                adapter.send_turn(
                    follow_up,
                    tools,
                    system_prompt,
                    self.config.follow_up_max_tokens,
                    deadline=budget.deadline(),
                )
            )
            follow_up_reply: ModelReply = adapter.interpret_response(raw)
            if follow_up_reply.tool_calls:
                # Only one follow-up per turn; further tool requests are not executed.
                self.ctx.log(f"Ignoring {len(follow_up_reply.tool_calls)} tool call(s) in follow-up response")
            if follow_up_reply.text:
                yield ChunkEvent(content=follow_up_reply.text)
            state = self._transition(state, TurnState.DONE)
            yield DoneEvent(metadata=self._metadata(results, route))
        except TurnTimeout as e:
            self._transition(state, TurnState.ERROR)
            self.ctx.error_message(f"Turn timed out: {e}")
            yield ErrorEvent(content=TIMEOUT_ERROR)
        except Exception as e:
            self._transition(state, TurnState.ERROR)
            self.ctx.error_message(f"Turn failed: {type(e).__name__}: {e}")
            yield ErrorEvent(content=GENERIC_ERROR)

    @staticmethod
    def _metadata(results: List[ToolResult], route: ModelRoute) -> Dict[str, object]:
        return {
            "toolsExecuted": len(results),
            "toolsUsed": [r.tool for r in results],
            "model": route.model_id,
            "provider": route.provider,
        }
