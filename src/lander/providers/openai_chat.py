# lander: OpenAI Chat Completions wire format. The system prompt travels as the first message, tool calls come back
# on choices[0].message.tool_calls with JSON-encoded argument strings, and every result is its own role:"tool" message.

import json
from typing import Any, Dict, List

from ..models import ModelReply, ToolInvocation, ToolResult
from .base import ProviderAdapter


class OpenAIChatAdapter(ProviderAdapter):
    provider = "openai"

    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def translate_tool_schema(self, specs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": s["name"],
                    "description": s["description"],
                    "parameters": s["parameters"],
                },
            }
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
            "messages": [{"role": "system", "content": system_prompt}] + list(messages),
            "max_tokens": max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        return payload

    def interpret_response(self, raw: Dict[str, Any]) -> ModelReply:
        choices = raw.get("choices") or []
        message = (choices[0].get("message") if choices and isinstance(choices[0], dict) else None) or {}
        text = message.get("content") if isinstance(message.get("content"), str) else ""

        calls: List[ToolInvocation] = []
        for i, tc in enumerate(message.get("tool_calls") or []):
            fn = tc.get("function") or {}
            args_text = fn.get("arguments") or "{}"
            arguments: Dict[str, Any] = {}
            error = None
            if isinstance(args_text, dict):
                arguments = args_text
            else:
                try:
                    decoded = json.loads(args_text)
                    if isinstance(decoded, dict):
                        arguments = decoded
                    else:
                        error = "Tool arguments must be a JSON object"
                except ValueError as e:
                    error = f"Tool arguments are not valid JSON: {e}"
            calls.append(
                ToolInvocation(
                    name=fn.get("name") or "",
                    arguments=arguments,
                    call_id=tc.get("id") or f"call_{i}",
                    arguments_error=error,
                )
            )

        # Replayed verbatim (minus nulls OpenAI rejects on input) in the follow-up.
        assistant: Dict[str, Any] = {"role": "assistant", "content": message.get("content")}
        if message.get("tool_calls"):
            assistant["tool_calls"] = message["tool_calls"]
        return ModelReply(text=text or "", tool_calls=calls, assistant_message=assistant)

    def append_tool_results(
        self,
        messages: List[Dict[str, Any]],
        reply: ModelReply,
        results: List[ToolResult],
    ) -> List[Dict[str, Any]]:
        tool_messages = [
            {"role": "tool", "tool_call_id": r.call_id, "content": r.to_content()}
            for r in results
        ]
        return list(messages) + [reply.assistant_message] + tool_messages
