# lander: Run one ToolInvocation against the registry and always come back with a ToolResult. Failures are data for
# the model, not exceptions for the caller; only TurnTimeout escapes because it ends the whole turn.

import json
from typing import Any, Dict

from .errors import DeployFailed, LanderError, MalformedToolArguments, TurnTimeout, UnknownTool, UrlExtractionFailed
from .models import ToolInvocation, ToolResult
from .tools import ToolContext, call_tool, get_tool


class ToolExecutor:
    def __init__(self, tool_context: ToolContext) -> None:
        self.tc = tool_context
        self.ctx = tool_context.ctx

    def _failure(self, invocation: ToolInvocation, error: Exception, payload: Dict[str, Any]) -> ToolResult:
        message = str(error) if isinstance(error, LanderError) else f"{type(error).__name__}: {error}"
        self.ctx.error_message(f"Tool {invocation.name} ({invocation.call_id}) failed: {message}")
        return ToolResult(
            call_id=invocation.call_id,
            tool=invocation.name,
            success=False,
            payload=payload,
            error_message=self.ctx.redact(message),
            error_type=type(error).__name__,
        )

    async def execute(self, invocation: ToolInvocation) -> ToolResult:
        """
        Execute a single tool call.

        Unknown names fail with UnknownTool; undecodable arguments fail with
        MalformedToolArguments before the tool runs. Any LanderError or other
        exception raised by the tool becomes success=False with error_type set
        to the exception class name. A non-mapping return value is wrapped as
        {"output": value}.
        """
        args_preview = self.ctx.redact(json.dumps(invocation.arguments, ensure_ascii=False))
        self.ctx.log(f"Invoking tool: {invocation.name} ({invocation.call_id}) with args: {args_preview[:500]}")

        spec = get_tool(invocation.name)
        if spec is None:
            return self._failure(invocation, UnknownTool(invocation.name), {})
        if invocation.arguments_error:
            return self._failure(invocation, MalformedToolArguments(invocation.arguments_error), {})

        try:
            raw = await call_tool(self.tc, invocation.name, invocation.arguments)
        except TurnTimeout:
            raise
        except UrlExtractionFailed as e:
            return self._failure(invocation, e, {"output": self.ctx.redact(e.output)})
        except DeployFailed as e:
            return self._failure(invocation, e, {"stderr": self.ctx.redact(e.stderr)[-2000:]})
        except LanderError as e:
            return self._failure(invocation, e, {})
        except Exception as e:
            return self._failure(invocation, e, {})

        payload = dict(raw) if isinstance(raw, dict) else {"output": raw}
        self.ctx.log(f"Tool {invocation.name} ({invocation.call_id}) succeeded")
        return ToolResult(call_id=invocation.call_id, tool=invocation.name, success=True, payload=payload)
