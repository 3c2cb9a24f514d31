"""Decoding of ``data:`` framed chat completion streams."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from .events import Done, StreamEvent, Token

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

# (content fragment, finish reason) for every choice of a frame.
_Choice = Tuple[str, str]


def _parse_frame(payload: str) -> Optional[List[_Choice]]:
    """Return the choices of a JSON frame, or ``None`` if it is not one.

    Missing or null fields are treated as empty. Anything that has the wrong
    type (a non-object frame, a string where a choice list is expected, a
    numeric content) makes the whole frame undecodable.
    """
    try:
        frame = json.loads(payload)
    except ValueError:
        return None
    if not isinstance(frame, dict):
        return None

    choices: Any = frame.get("choices") or []
    if not isinstance(choices, list):
        return None

    parsed: List[_Choice] = []
    for choice in choices:
        if not isinstance(choice, dict):
            return None
        delta = choice.get("delta") or {}
        if not isinstance(delta, dict):
            return None
        content = delta.get("content") or ""
        finish_reason = choice.get("finish_reason") or ""
        if not isinstance(content, str) or not isinstance(finish_reason, str):
            return None
        parsed.append((content, finish_reason))
    return parsed


def decode_stream(lines: Iterable[Union[str, bytes]]) -> Iterator[StreamEvent]:
    """Yield :class:`Token` and :class:`Done` events decoded from *lines*.

    Exactly one ``Done`` ends the sequence: on the ``[DONE]`` sentinel, on the
    first choice carrying a finish reason, or when *lines* is exhausted.
    Errors raised while iterating *lines* are not caught here.
    """
    for raw in lines:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        line = raw.strip()
        if not line or not line.startswith(DATA_PREFIX):
            continue

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            yield Done()
            return

        choices = _parse_frame(payload)
        if choices is None:
            logger.debug("Skipping undecodable frame: %.200s", payload)
            continue

        for content, finish_reason in choices:
            if content:
                yield Token(content)
            if finish_reason:
                logger.debug("Stream finished with reason %r", finish_reason)
                yield Done()
                return

    # Orderly end of input without sentinel.
    yield Done()
