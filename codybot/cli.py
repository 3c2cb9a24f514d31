"""Terminal chat client for OpenAI-compatible streaming endpoints.

The foreground loop owns the session: it takes one item at a time from an
inbox fed by the input thread and by the completion worker, applies it and
redraws whatever the transcript gained.
"""
from __future__ import annotations

import argparse
import logging
import queue
import readline  # noqa: F401 – side-effect: history & line editing
import sys
import threading
from dataclasses import dataclass
from typing import Optional, Union

import questionary
from rich.panel import Panel

from .core import ChatSession, Config, ProjectInstructions, StreamUpdate
from .core.client import CompletionClient
from .core.instructions import write_template
from .utils import (
    PROMPT,
    Spinner,
    configure_logging,
    console,
    error_line,
    failure,
    hint,
    notice,
    warning_line,
)

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"/exit", "/quit"}

HELP_TEXT = """\
Type a message and press Enter to send it.

Commands:
  /help     show this help
  /clear    start over with only the system prompt
  /status   show the connection and stream status
  /exit     quit (also /quit, Ctrl+C or Ctrl+D)
"""


@dataclass(frozen=True)
class UserLine:
    text: str


@dataclass(frozen=True)
class UserQuit:
    pass


InboxItem = Union[UserLine, UserQuit, StreamUpdate]


# ---------------------------------------------------------------------------
# Helper classes
# ---------------------------------------------------------------------------


class ChatCLI:
    """High-level orchestration class for the interactive REPL."""

    def __init__(self, session: ChatSession, config: Config, inbox: "queue.Queue[InboxItem]"):
        self.session = session
        self.config = config
        self.inbox = inbox
        self._rendered = 0
        self._spinner: Optional[Spinner] = None

    # ---------------- Status ----------------

    def status_line(self) -> str:
        status = "Ready"
        if self.session.is_streaming:
            status = f"Streaming from {self.config.model}"
        if self.session.last_error is not None:
            status = f"Error: {self.session.last_error.message}"
        return f"{status}  |  Enter to send • /clear to reset • /exit to quit"

    # ---------------- Command handling ---------------

    def handle_command(self, line: str) -> bool:
        """Handle slash commands. Return False to exit REPL."""

        parts = line.strip().split()
        if not parts:
            return True

        cmd = parts[0].lower()

        if cmd == "/help":
            console.print(HELP_TEXT, markup=False)

        elif cmd in EXIT_COMMANDS:
            self.session.close()
            console.print("Bye!")
            return False

        elif cmd == "/clear":
            self.session.clear()

        elif cmd == "/status":
            console.print(notice(self.status_line()))
            console.print(notice(f"{self.config.model} @ {self.config.completions_url}"))

        else:
            console.print(failure(f"Unknown command: {cmd} (see /help)"))

        return True

    def submit(self, line: str) -> bool:
        """Process one line typed by the user. Return False to exit REPL."""
        line = line.strip()
        if not line:
            return True
        if line.startswith("/"):
            return self.handle_command(line)
        if self.session.is_streaming:
            console.print()
            console.print(warning_line("still streaming – wait for the reply or /clear"))
            return True
        self.session.send(line)
        return True

    def dispatch(self, item: InboxItem) -> bool:
        """Apply one inbox item to the session. Return False to exit REPL."""
        if isinstance(item, UserQuit):
            self.session.close()
            return False
        if isinstance(item, UserLine):
            return self.submit(item.text)
        self.session.handle(item)
        return True

    # ---------------- Rendering ---------------

    def render(self) -> bool:
        """Print the part of the transcript that has not been shown yet.

        Returns True if the input prompt was printed again.
        """
        transcript = self.session.transcript
        if len(transcript) < self._rendered:
            self._stop_spinner()
            console.clear()
            console.print(notice("[conversation cleared – system prompt reinstated]"))
            self._rendered = 0
            self._prompt()
            return True

        delta = transcript[self._rendered:]
        if delta:
            self._stop_spinner()
            console.out(delta, end="", highlight=False)
            self._rendered = len(transcript)

        if self.session.is_streaming:
            if not self.session.partial and self._spinner is None:
                self._spinner = Spinner(prefix=transcript.rsplit("\n", 1)[-1])
                self._spinner.start()
        elif delta:
            self._stop_spinner()
            if self.session.last_error is not None:
                console.print(error_line(self.status_line()))
            self._prompt()
            return True
        return False

    def _stop_spinner(self) -> None:
        if self._spinner is not None:
            self._spinner.stop()
            self._spinner = None

    def _prompt(self) -> None:
        console.print(PROMPT, end="")
        console.file.flush()

    # ---------------- Interaction loop ---------------

    def _read_input(self) -> None:
        """Input thread: forward typed lines to the inbox until EOF or exit."""
        while True:
            try:
                line = console.input()
            except (EOFError, KeyboardInterrupt):
                self.inbox.put(UserQuit())
                return
            self.inbox.put(UserLine(line))
            if line.strip().lower() in EXIT_COMMANDS:
                return

    def repl(self) -> None:
        """Run the interactive read–eval–print-loop."""
        console.print(
            Panel.fit(
                f"codybot\n{notice(f'{self.config.model} @ {self.config.base_url}')}",
                style="bold magenta",
            )
        )
        console.print(hint("Type your message and press Enter. Type /help for help."))
        self._prompt()

        reader = threading.Thread(target=self._read_input, name="codybot-input", daemon=True)
        reader.start()

        while True:
            try:
                item = self.inbox.get()
            except KeyboardInterrupt:
                self._stop_spinner()
                console.print("\n[signal caught – exiting]", markup=False)
                self.session.close()
                break

            if not self.dispatch(item):
                self._stop_spinner()
                break
            if not self.render() and isinstance(item, UserLine) and not self.session.is_streaming:
                self._prompt()


# ---------------------------------------------------------------------------
# Setup flow
# ---------------------------------------------------------------------------


def ensure_instructions(instructions: ProjectInstructions) -> ProjectInstructions:
    """Offer to create the instructions file when it does not exist yet."""
    if instructions.exists:
        return instructions

    try:
        create = questionary.confirm(
            f"No {instructions.label} found. Create one now?", default=True
        ).ask()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return instructions

    if not create:
        console.print(notice("You can create it later to steer the agent."))
        return instructions

    try:
        write_template(instructions.path)
    except OSError as exc:
        console.print(error_line(f"Could not create {instructions.path}: {exc}"))
        return instructions

    console.print(notice(f"[created {instructions.path} – edit it to steer the agent]"))
    return ProjectInstructions.load(instructions.path)


# ---------------------------------------------------------------------------
# Entrypoint helpers (keeping it separate simplifies __main__ handling)
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[list] = None) -> argparse.Namespace:  # pragma: no cover
    parser = argparse.ArgumentParser(
        description="Terminal chat client for OpenAI-compatible streaming endpoints."
    )
    parser.add_argument("--base-url", help="Base URL of the API (env: OPENAI_BASE_URL)")
    parser.add_argument("--model", "-m", help="Model name (env: CODYBOT_MODEL)")
    parser.add_argument("--api-key", help="API key for the endpoint (env: OPENAI_API_KEY)")
    parser.add_argument("--agents", help="Path to the project instructions file (env: CODYBOT_AGENTS)")
    parser.add_argument("--log-level", help="Logging level (env: CODYBOT_LOG_LEVEL)")
    return parser.parse_args(argv)


def run_cli(argv: Optional[list] = None) -> None:  # pragma: no cover
    config = Config.resolve(_parse_args(argv))
    configure_logging(config.log_level)

    instructions = ensure_instructions(ProjectInstructions.load(config.agents_path))

    inbox: "queue.Queue[InboxItem]" = queue.Queue()

    try:
        session = ChatSession(CompletionClient.from_config(config), instructions, inbox.put)
        ChatCLI(session, config, inbox).repl()
    except Exception as exc:
        logger.exception("codybot crashed")
        sys.stderr.write(f"codybot error: {exc}\n")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    run_cli()
