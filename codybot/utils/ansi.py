"""Rich markup for the few styled lines codybot prints around the transcript."""

import os

from rich.console import Console
from rich.markup import escape


console = Console()


class Ansi:
    """Style names used by the chat view."""

    BOLD = "bold"
    DIM = "dim"
    FG_CYAN = "cyan"
    FG_YELLOW = "yellow"
    FG_RED = "red"

    @staticmethod
    def style(text: str, *codes: str) -> str:
        """Return *text* wrapped in rich markup unless ``NO_COLOR`` is set."""
        if os.getenv("NO_COLOR") is not None:
            return text
        style = " ".join(codes)
        return f"[{style}]{text}[/]"


USER_LABEL = Ansi.style("you", Ansi.FG_CYAN, Ansi.BOLD)
ERROR_LABEL = Ansi.style("error", Ansi.FG_RED, Ansi.BOLD)
WARNING_LABEL = Ansi.style("warning", Ansi.FG_YELLOW, Ansi.BOLD)

PROMPT = f"{USER_LABEL}> "


def notice(text: str) -> str:
    """Dimmed side note such as ``[conversation cleared]``; *text* is taken literally."""
    return Ansi.style(escape(text), Ansi.DIM)


def hint(text: str) -> str:
    return Ansi.style(escape(text), Ansi.FG_YELLOW)


def error_line(text: str) -> str:
    return f"[{ERROR_LABEL}] {escape(text)}"


def warning_line(text: str) -> str:
    return f"[{WARNING_LABEL}] {escape(text)}"


def failure(text: str) -> str:
    """Red line for a rejected command."""
    return Ansi.style(escape(text), Ansi.FG_RED)
