"""Streaming chat completion client built on the OpenAI SDK."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterator, Optional, Sequence

import httpx
import openai
from openai import OpenAI  # type: ignore

from .config import Config
from .errors import CompletionError, ResponseStatusError, StreamCancelled, TransportError
from .events import Error, Message, StreamEvent, is_terminal
from .stream import decode_stream

logger = logging.getLogger(__name__)


class CompletionClient:
    """Run one streaming chat completion per call and report it as events.

    The SDK is only used to issue the request and hand back the raw response;
    the ``data:`` frames are decoded by :func:`decode_stream` so malformed
    frames can be skipped instead of aborting the stream.
    """

    TEMPERATURE = 0.2
    NO_KEY = "codybot-no-key"

    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_config(
        cls, config: Config, http_client: Optional[httpx.Client] = None
    ) -> "CompletionClient":
        # No timeout and no retries: a call runs until the server closes the
        # stream and failures are reported, not retried. The SDK refuses an
        # empty key, so a placeholder is set and the header dropped per request.
        client = OpenAI(
            api_key=config.api_key or cls.NO_KEY,
            base_url=config.base_url.rstrip("/"),
            timeout=None,
            max_retries=0,
            http_client=http_client,
        )
        return cls(client, config.model)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def stream_events(
        self,
        messages: Sequence[Message],
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[StreamEvent]:
        """Yield the events of one completion, ending in exactly one terminal event."""
        terminated = False
        try:
            with self.client.chat.completions.with_streaming_response.create(  # type: ignore[call-overload]
                model=self.model,
                messages=[m.as_dict() for m in messages],
                stream=True,
                temperature=self.TEMPERATURE,
                extra_headers=self._auth_headers(),
            ) as response:
                for event in decode_stream(response.iter_lines()):
                    if cancel is not None and cancel.is_set():
                        terminated = True
                        yield Error(StreamCancelled())
                        return
                    terminated = is_terminal(event)
                    yield event
                    if terminated:
                        return
        except openai.APIStatusError as exc:
            error: CompletionError = ResponseStatusError.from_body(
                exc.status_code, exc.response.reason_phrase, exc.response.content
            )
        except (openai.APIConnectionError, httpx.TransportError) as exc:
            error = TransportError("Connection to completion endpoint failed", exc.__cause__ or exc)
        except openai.OpenAIError as exc:
            error = CompletionError(str(exc))
        else:
            return

        if terminated:
            # Closing the response after a terminal event must not produce a second one.
            logger.debug("Ignoring error after end of stream: %s", error)
            return
        yield Error(error)

    def start(
        self,
        messages: Sequence[Message],
        relay: Callable[[StreamEvent], None],
        cancel: Optional[threading.Event] = None,
    ) -> threading.Thread:
        """Stream a completion on a background thread, passing each event to *relay*."""
        snapshot = tuple(messages)
        thread = threading.Thread(
            target=self._run,
            args=(snapshot, relay, cancel),
            name="codybot-completion",
            daemon=True,
        )
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _auth_headers(self) -> Dict[str, Any]:
        if self.client.api_key == self.NO_KEY:
            return {"Authorization": openai.Omit()}
        return {}

    def _run(
        self,
        messages: Sequence[Message],
        relay: Callable[[StreamEvent], None],
        cancel: Optional[threading.Event],
    ) -> None:
        logger.debug("Streaming %d messages to %s", len(messages), self.model)
        terminated = False
        try:
            for event in self.stream_events(messages, cancel):
                terminated = is_terminal(event)
                relay(event)
        except Exception as exc:  # relay the failure so the session leaves Streaming
            if terminated:
                raise
            logger.exception("Completion worker crashed")
            relay(Error(CompletionError(f"Unexpected error: {exc}")))
            return
        logger.debug("Completion worker finished (terminal event relayed: %s)", terminated)
