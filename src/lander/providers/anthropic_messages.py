# lander: Anthropic Messages wire format. System prompt is a top-level field, tool calls are tool_use content blocks,
# and all results for one turn go back in a single user message of tool_result blocks.

from typing import Any, Dict, List

from ..models import ModelReply, ToolInvocation, ToolResult
from .base import ProviderAdapter

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicMessagesAdapter(ProviderAdapter):
    provider = "anthropic"

    def endpoint(self) -> str:
        return f"{self.base_url}/messages"

    def auth_headers(self) -> Dict[str, str]:
        return {"x-api-key": self.api_key or "", "anthropic-version": ANTHROPIC_VERSION}

    def translate_tool_schema(self, specs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {"name": s["name"], "description": s["description"], "input_schema": s["parameters"]}
            for s in specs
        ]

    def build_payload(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        system_prompt: str,
        max_tokens: int,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system_prompt,
            "messages": list(messages),
        }
        if tools:
            payload["tools"] = tools
        return payload

    def interpret_response(self, raw: Dict[str, Any]) -> ModelReply:
        content = raw.get("content") or []
        texts: List[str] = []
        calls: List[ToolInvocation] = []
        for block in content:
            if not isinstance(block, dict):
                continue
            kind = block.get("type")
            if kind == "text":
                texts.append(block.get("text") or "")
            elif kind == "tool_use":
                args = block.get("input")
                calls.append(
                    ToolInvocation(
                        name=block.get("name") or "",
                        arguments=args if isinstance(args, dict) else {},
                        call_id=block.get("id") or f"toolu_{len(calls)}",
                        arguments_error=None if isinstance(args, dict) else "Tool input must be a JSON object",
                    )
                )
        return ModelReply(
            text="".join(texts),
            tool_calls=calls,
            assistant_message={"role": "assistant", "content": content},
        )

    def append_tool_results(
        self,
        messages: List[Dict[str, Any]],
        reply: ModelReply,
        results: List[ToolResult],
    ) -> List[Dict[str, Any]]:
        blocks = []
        for r in results:
            block: Dict[str, Any] = {"type": "tool_result", "tool_use_id": r.call_id, "content": r.to_content()}
            if not r.success:
                block["is_error"] = True
            blocks.append(block)
        return list(messages) + [reply.assistant_message, {"role": "user", "content": blocks}]
