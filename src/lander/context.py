# lander: Console I/O and logging context passed through the server, orchestrator and tools. Keeps direct
# stdout/stderr usage out of business logic and masks configured credentials in everything it prints.

import re
import sys
from typing import Iterable, List, Optional


_GENERIC_SECRET_PATTERNS = [
    # OpenAI / Anthropic style keys
    (re.compile(r"\bsk-[A-Za-z0-9_-]{20,}\b"), "[REDACTED_KEY]"),
    # Bearer headers echoed back in error bodies
    (re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._-]{16,}"), r"\1[REDACTED]"),
]


class Context:
    """
    Thin wrapper around console I/O and logging.

    Secrets registered at construction (API keys, the Netlify token) are
    replaced with [REDACTED] before anything is written.
    """

    def __init__(self, secrets: Optional[Iterable[str]] = None, verbose: bool = True) -> None:
        self._secrets: List[str] = sorted({s for s in (secrets or []) if s}, key=len, reverse=True)
        self.verbose = verbose

    def redact(self, text: str) -> str:
        """Mask configured secrets and well-known key shapes in text."""
        if not text:
            return text
        out = text
        for secret in self._secrets:
            out = out.replace(secret, "[REDACTED]")
        for pattern, repl in _GENERIC_SECRET_PATTERNS:
            out = pattern.sub(repl, out)
        return out

    def send_to_user(self, message: str) -> None:
        """Send a user-facing message to stdout."""
        print(self.redact(message))

    def log(self, message: str) -> None:
        """Emit a lightweight log line to stdout, prefixed for readability."""
        if self.verbose:
            print(f"[LOG] {self.redact(message)}")

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {self.redact(message)}", file=sys.stderr)
