"""Conversation state for a single chat session."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .events import Done, Error, Message, StreamEvent, StreamUpdate, Token
from .instructions import ProjectInstructions

logger = logging.getLogger(__name__)

USER_PREFIX = "You: "
ASSISTANT_PREFIX = "Assistant: "
TURN_SEPARATOR = "\n\n"


class SessionState(enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"


class StreamLauncher(Protocol):
    def start(
        self,
        messages: Sequence[Message],
        relay: Callable[[StreamEvent], None],
        cancel: Optional[threading.Event] = None,
    ) -> object: ...


class ChatSession:
    """Owns the conversation history and transcript and applies stream events.

    Only one completion stream is live at a time. Every stream gets a new
    generation number; events are delivered back through *relay* wrapped in a
    :class:`StreamUpdate` and :meth:`handle` ignores those whose generation is
    no longer current, so a stream abandoned by :meth:`clear` cannot touch the
    fresh conversation.
    """

    def __init__(
        self,
        client: StreamLauncher,
        instructions: ProjectInstructions,
        relay: Callable[[StreamUpdate], None],
    ) -> None:
        self.client = client
        self.instructions = instructions
        self._relay = relay

        # The first message is always our system prompt; it is only ever
        # replaced wholesale.
        self._history: List[Message] = [self._system_message()]
        self._transcript: List[str] = []
        self._partial: List[str] = []
        self._partial_lock = threading.Lock()

        self.state = SessionState.IDLE
        self.last_error: Optional[Error] = None
        self.generation = 0
        self._cancel: Optional[threading.Event] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def history(self) -> Tuple[Message, ...]:
        return tuple(self._history)

    @property
    def system_message(self) -> Message:
        return self._history[0]

    @property
    def transcript(self) -> str:
        return "".join(self._transcript)

    @property
    def partial(self) -> str:
        """Assistant content received so far for the in-flight turn."""
        with self._partial_lock:
            return "".join(self._partial)

    @property
    def is_streaming(self) -> bool:
        return self.state is SessionState.STREAMING

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def send(self, text: str) -> bool:
        """Start a new turn with *text*. Returns False if nothing was sent."""
        text = text.strip()
        if not text or self.is_streaming:
            return False

        self._transcript.append(f"{USER_PREFIX}{text}{TURN_SEPARATOR}{ASSISTANT_PREFIX}")
        self._history.append(Message("user", text))
        self.state = SessionState.STREAMING
        self.last_error = None
        self._reset_partial()

        self.generation += 1
        generation = self.generation
        self._cancel = threading.Event()

        def relay(event: StreamEvent) -> None:
            self._relay(StreamUpdate(generation, event))

        logger.debug("Starting stream generation %d", generation)
        self.client.start(self.history, relay, self._cancel)
        return True

    def clear(self) -> None:
        """Drop the conversation, keeping a freshly built system message."""
        self._abandon_stream()
        self._history = [self._system_message()]
        self._transcript = []
        self._reset_partial()

    def close(self) -> None:
        self._abandon_stream()

    def replace_instructions(self, instructions: ProjectInstructions) -> None:
        self.instructions = instructions
        self._history[0] = self._system_message()

    # ------------------------------------------------------------------
    # Stream events
    # ------------------------------------------------------------------

    def handle(self, update: StreamUpdate) -> bool:
        """Apply a relayed stream event. Returns False if it was stale."""
        if update.generation != self.generation or not self.is_streaming:
            logger.debug(
                "Dropping stale %s from generation %d (current %d)",
                type(update.event).__name__,
                update.generation,
                self.generation,
            )
            return False

        event = update.event
        if isinstance(event, Token):
            self._transcript.append(event.text)
            with self._partial_lock:
                self._partial.append(event.text)
        elif isinstance(event, Done):
            self._transcript.append(TURN_SEPARATOR)
            response = self._take_partial()
            if response.strip():
                self._history.append(Message("assistant", response))
            self.last_error = None
            self._finish()
        elif isinstance(event, Error):
            self._transcript.append(f"{TURN_SEPARATOR}[error] {event.message}{TURN_SEPARATOR}")
            self._take_partial()
            self.last_error = event
            self._finish()
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _system_message(self) -> Message:
        return Message("system", self.instructions.system_prompt)

    def _reset_partial(self) -> None:
        with self._partial_lock:
            self._partial = []

    def _take_partial(self) -> str:
        with self._partial_lock:
            text = "".join(self._partial)
            self._partial = []
        return text

    def _finish(self) -> None:
        self.state = SessionState.IDLE
        self._cancel = None

    def _abandon_stream(self) -> None:
        if self.is_streaming:
            logger.debug("Abandoning stream generation %d", self.generation)
            if self._cancel is not None:
                self._cancel.set()
            self.generation += 1
        self._finish()
