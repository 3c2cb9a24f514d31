"""Terminal chat client for OpenAI-compatible streaming endpoints.

Features
--------
1. Streaming replies: tokens are rendered as they arrive; the prompt stays usable while a reply streams.
2. Project instructions: the contents of ``agents.md`` (or ``--agents PATH``) are folded into the system prompt.
3. Any OpenAI-compatible endpoint: point ``--base-url`` at a local server or a hosted API.

Run `python -m codybot` or use the `codybot` console script as the entry point.
"""
# Re-export useful symbols for convenience
from .core import ChatSession, Config, Message, ProjectInstructions, SessionState
from .core.client import CompletionClient
from .cli import ChatCLI, run_cli

__all__ = [
    "ChatSession",
    "Config",
    "Message",
    "ProjectInstructions",
    "SessionState",
    "CompletionClient",
    "ChatCLI",
    "run_cli",
]
