from .ansi import (
    PROMPT,
    console,
    error_line,
    failure,
    hint,
    notice,
    warning_line,
)
from .logging import configure_logging
from .spinner import Spinner

__all__ = [
    "PROMPT",
    "console",
    "error_line",
    "failure",
    "hint",
    "notice",
    "warning_line",
    "configure_logging",
    "Spinner",
]
