"""Value types exchanged between the completion worker and the session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class Message:
    """A single chat message in prompt order."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Token:
    """An incremental content fragment."""

    text: str


@dataclass(frozen=True)
class Done:
    """The stream finished normally."""


@dataclass(frozen=True)
class Error:
    """The stream failed; *cause* explains why."""

    cause: BaseException

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__


StreamEvent = Union[Token, Done, Error]


def is_terminal(event: StreamEvent) -> bool:
    return isinstance(event, (Done, Error))


@dataclass(frozen=True)
class StreamUpdate:
    """A stream event tagged with the generation of the stream that produced it."""

    generation: int
    event: StreamEvent
