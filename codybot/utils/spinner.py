"""Waiting indicator shown until the first token of a reply arrives."""
from __future__ import annotations

from yaspin import yaspin
from yaspin.spinners import Spinners

from .ansi import console


class Spinner:
    """Display a small spinner after *prefix*, which is the text already on the line.

    yaspin redraws the whole line on every frame, so the prefix is handed to
    it as text and written back once the spinner is cleared.
    """

    def __init__(self, prefix: str = ""):
        self._prefix = prefix
        self._started = False
        self._spinner = yaspin(Spinners.dots, text=prefix, side="right")

    @property
    def active(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self._spinner.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._spinner.stop()
        console.out(f"\r{self._prefix}", end="", highlight=False)
        console.file.flush()
        self._started = False
