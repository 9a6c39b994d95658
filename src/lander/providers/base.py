# lander: Provider adapter capability. One adapter per wire format; the orchestrator only ever talks to this
# interface. HTTP goes through a requests.Session on a worker thread so the event loop stays free.

import asyncio
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from ..context import Context
from ..errors import ProviderRequestFailed
from ..models import ConversationTurn, ModelReply, ToolResult

MAX_RETRIES = 3
_BACKOFF = [1.0, 2.0, 4.0]


def _as_int(v: Any) -> int:
    try:
        return int(v) if v is not None else 0
    except (TypeError, ValueError):
        return 0


class ProviderAdapter(ABC):
    """Translate between the neutral turn model and one provider's native request/response format."""

    provider: str = ""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        ctx: Context,
        request_timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.ctx = ctx
        self.request_timeout = request_timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ----- translation -----

    def translate_history(self, turns: List[ConversationTurn]) -> List[Dict[str, Any]]:
        """Text-only history; assistant turns without content are dropped."""
        out: List[Dict[str, Any]] = []
        for turn in turns:
            if turn.role == "assistant" and not turn.content:
                continue
            out.append({"role": turn.role, "content": turn.content})
        return out

    @abstractmethod
    def translate_tool_schema(self, specs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def build_payload(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        system_prompt: str,
        max_tokens: int,
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    def endpoint(self) -> str:
        ...

    @abstractmethod
    def auth_headers(self) -> Dict[str, str]:
        ...

    @abstractmethod
    def interpret_response(self, raw: Dict[str, Any]) -> ModelReply:
        ...

    @abstractmethod
    def append_tool_results(
        self,
        messages: List[Dict[str, Any]],
        reply: ModelReply,
        results: List[ToolResult],
    ) -> List[Dict[str, Any]]:
        ...

    # ----- transport -----

    async def send_turn(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        system_prompt: str,
        max_tokens: int,
        deadline: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        POST one request and return the decoded JSON body.

        deadline is a time.monotonic() value. Each attempt's HTTP timeout is
        capped at the time left, and no retry is scheduled whose backoff would
        reach it, so the worker thread stops once the turn's budget is spent.
        """
        if not self.api_key:
            raise ProviderRequestFailed(f"No API key configured for provider {self.provider}")
        payload = self.build_payload(messages, tools, system_prompt, max_tokens)
        return await asyncio.to_thread(self._post, self.endpoint(), payload, deadline)

    def _time_left(self, deadline: Optional[float]) -> Optional[float]:
        return None if deadline is None else deadline - time.monotonic()

    def _retry_delay(self, attempt: int, deadline: Optional[float]) -> Optional[float]:
        """Backoff before the next attempt, or None when retries are used up or it would overrun the deadline."""
        if attempt > MAX_RETRIES:
            return None
        delay = self._backoff(attempt)
        left = self._time_left(deadline)
        if left is not None and left <= delay:
            return None
        return delay

    def _post(self, url: str, payload: Dict[str, Any], deadline: Optional[float] = None) -> Dict[str, Any]:
        # lander: Bounded retry for transient failures (timeouts, HTTP 5xx). 4xx errors are not retried.
        # No attempt starts, and no backoff sleeps, past the caller's deadline.
        attempt = 0
        while True:
            attempt += 1
            timeout = self.request_timeout
            left = self._time_left(deadline)
            if left is not None:
                if left <= 0:
                    raise ProviderRequestFailed(f"{self.provider} request deadline passed before attempt {attempt}")
                timeout = min(timeout, left)
            try:
                r = self.session.post(url, json=payload, headers=self.auth_headers(), timeout=timeout)
            except requests.exceptions.Timeout as e:
                delay = self._retry_delay(attempt, deadline)
                if delay is not None:
                    self.ctx.log(f"{self.provider} timeout on attempt {attempt}; retrying in {delay:.2f}s...")
                    time.sleep(delay)
                    continue
                raise ProviderRequestFailed(f"{self.provider} timeout after {attempt} attempt(s)") from e
            except requests.exceptions.RequestException as e:
                raise ProviderRequestFailed(f"{self.provider} request failed: {self.ctx.redact(str(e))}") from e

            if r.status_code == 200:
                break
            if r.status_code >= 500:
                delay = self._retry_delay(attempt, deadline)
                if delay is not None:
                    self.ctx.log(f"{self.provider} attempt {attempt} received {r.status_code}; retrying in {delay:.2f}s...")
                    time.sleep(delay)
                    continue
            raise ProviderRequestFailed(
                f"{self.provider} API error {r.status_code}: {self.ctx.redact(r.text[:2000])}",
                status_code=r.status_code,
            )

        try:
            body = r.json()
        except ValueError as e:
            raise ProviderRequestFailed(f"{self.provider} returned a non-JSON body") from e
        if not isinstance(body, dict):
            raise ProviderRequestFailed(f"{self.provider} returned an unexpected body")
        self._log_usage(body)
        return body

    @staticmethod
    def _backoff(attempt: int) -> float:
        # Exponential backoff with jitter
        return _BACKOFF[min(attempt - 1, len(_BACKOFF) - 1)] * random.uniform(0.5, 1.5)

    def _log_usage(self, body: Dict[str, Any]) -> None:
        usage = body.get("usage") or {}
        input_tokens = usage.get("input_tokens")
        if input_tokens is None:
            input_tokens = usage.get("prompt_tokens")
        output_tokens = usage.get("output_tokens")
        if output_tokens is None:
            output_tokens = usage.get("completion_tokens")
        self.ctx.log(
            f"{self.provider} usage ({self.model}): input_tokens={_as_int(input_tokens)}, "
            f"output_tokens={_as_int(output_tokens)}"
        )
