"""Error types carried by failed completion streams."""

from __future__ import annotations

from typing import Optional


class CompletionError(Exception):
    """Base class for anything that ends a completion stream early."""


class ResponseStatusError(CompletionError):
    """The endpoint answered with a non-success HTTP status."""

    # Only the head of an error body is kept; some proxies send whole pages.
    BODY_LIMIT = 8192

    def __init__(self, status_code: int, reason: str = "", body: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        status = f"{status_code} {reason}".strip()
        super().__init__(f"API error: {status} - {body}" if body else f"API error: {status}")

    @classmethod
    def from_body(cls, status_code: int, reason: str, raw: bytes) -> "ResponseStatusError":
        text = raw[: cls.BODY_LIMIT].decode("utf-8", errors="replace").strip()
        return cls(status_code, reason, text)


class TransportError(CompletionError):
    """Connecting to or reading from the endpoint failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        if cause is not None and str(cause) and str(cause) not in message:
            message = f"{message}: {cause}"
        super().__init__(message)


class StreamCancelled(CompletionError):
    """The stream was abandoned by the session before it finished."""

    def __init__(self, message: str = "stream cancelled") -> None:
        super().__init__(message)
