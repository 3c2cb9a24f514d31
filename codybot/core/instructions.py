"""Project instructions file and the system prompt built from it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

# Fixed part of the system message; project instructions are appended to it.
BASE_INSTRUCTIONS = (
    "You are Codybot, a CLI coding agent. Be concise and practical. "
    "Ask clarifying questions only when required."
)

AGENTS_TEMPLATE = """\
# agents.md

## Mission
You are Codybot, a CLI coding agent. Keep responses concise and practical.

## Project context
- Describe the product and stack here.
- Note any constraints or policies.

## Workflow
- Prefer small, safe changes.
- Call out risks and unknowns.
- Summarize steps taken after each change.
"""


def build_system_prompt(content: str, label: str = "agents.md") -> str:
    """Return the system prompt, folding in *content* when it is not blank."""
    if not content.strip():
        return BASE_INSTRUCTIONS
    return f"{BASE_INSTRUCTIONS}\n\nProject instructions ({label}):\n{content}"


@dataclass(frozen=True)
class ProjectInstructions:
    """Contents of the project instructions file as read at one point in time."""

    path: Path
    content: str = ""
    exists: bool = False

    @property
    def label(self) -> str:
        return self.path.name

    @property
    def system_prompt(self) -> str:
        return build_system_prompt(self.content, self.label)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ProjectInstructions":
        path = Path(path)
        if not path.is_file():
            return cls(path=path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            content = ""
        return cls(path=path, content=content, exists=True)


def write_template(path: Union[str, Path]) -> Path:
    """Write the default instructions template to *path*, creating parent directories.

    ``OSError`` is left to the caller; the setup prompt reports it.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(AGENTS_TEMPLATE, encoding="utf-8")
    logger.debug("Wrote instructions template to %s", path)
    return path
