"""Resolved runtime configuration for the chat client."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:11434/v1"
DEFAULT_MODEL = "qwen3-coder"
DEFAULT_AGENTS_PATH = "agents.md"
DEFAULT_LOG_LEVEL = "WARNING"


def env_or_default(environ: Mapping[str, str], key: str, fallback: str) -> str:
    """Return the stripped value of *key* in *environ*, or *fallback* if blank."""
    value = (environ.get(key) or "").strip()
    return value or fallback


@dataclass(frozen=True)
class Config:
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    api_key: str = ""
    agents_path: str = DEFAULT_AGENTS_PATH
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def resolve(
        cls,
        args: Optional[argparse.Namespace] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """Build a config where flags win over environment values over defaults."""
        if environ is None:
            environ = os.environ

        def pick(flag: str, env_key: str, fallback: str) -> str:
            value = getattr(args, flag, None) if args is not None else None
            if value is not None:
                return value
            return env_or_default(environ, env_key, fallback)

        return cls(
            base_url=pick("base_url", "OPENAI_BASE_URL", DEFAULT_BASE_URL),
            model=pick("model", "CODYBOT_MODEL", DEFAULT_MODEL),
            api_key=pick("api_key", "OPENAI_API_KEY", ""),
            agents_path=pick("agents", "CODYBOT_AGENTS", DEFAULT_AGENTS_PATH),
            log_level=pick("log_level", "CODYBOT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    @property
    def completions_url(self) -> str:
        return self.base_url.rstrip("/") + "/chat/completions"
