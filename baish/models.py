"""Core value types shared across the command generator.

Everything here is immutable once built.  ``ResolvedConfig`` is handed
to the generation pipeline by the CLI, ``GenerationOutput`` is what a
provider returns after normalisation, and ``TerminalContext`` captures
the process-wide terminal state once at startup so the review loop can
be exercised without a real terminal.
"""

from __future__ import annotations

import os
import sys
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, TextIO


DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-haiku-latest"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OPENROUTER_MODEL = "openai/gpt-4o-mini"
DEFAULT_VERCEL_BASE_URL = "https://ai-gateway.vercel.sh/v1"
DEFAULT_VERCEL_MODEL = "openai/gpt-4o-mini"


class Provider(str, Enum):
    """The closed set of supported model backends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"
    VERCEL = "vercel"

    @classmethod
    def parse(cls, name: str) -> Optional["Provider"]:
        """Return the provider for ``name`` or ``None`` when unknown.

        Matching is case-insensitive and accepts a couple of aliases for
        the Vercel AI Gateway.
        """
        value = (name or "").strip().lower()
        if value in ("vercel-ai-gateway", "gateway"):
            return cls.VERCEL
        for member in cls:
            if member.value == value:
                return member
        return None

    @property
    def default_base_url(self) -> str:
        return _DEFAULT_BASE_URLS[self]

    @property
    def default_model(self) -> str:
        return _DEFAULT_MODELS[self]


_DEFAULT_BASE_URLS = {
    Provider.OPENAI: DEFAULT_OPENAI_BASE_URL,
    Provider.ANTHROPIC: DEFAULT_ANTHROPIC_BASE_URL,
    Provider.OPENROUTER: DEFAULT_OPENROUTER_BASE_URL,
    Provider.VERCEL: DEFAULT_VERCEL_BASE_URL,
}

_DEFAULT_MODELS = {
    Provider.OPENAI: DEFAULT_OPENAI_MODEL,
    Provider.ANTHROPIC: DEFAULT_ANTHROPIC_MODEL,
    Provider.OPENROUTER: DEFAULT_OPENROUTER_MODEL,
    Provider.VERCEL: DEFAULT_VERCEL_MODEL,
}


class Safety(str, Enum):
    """Advisory risk level attached to a generated command."""

    SAFE = "safe"
    CAUTION = "caution"
    RISKY = "risky"

    @classmethod
    def parse(cls, raw: Any) -> Optional["Safety"]:
        if not isinstance(raw, str):
            return None
        value = raw.strip().lower()
        for member in cls:
            if member.value == value:
                return member
        return None


@dataclass(frozen=True)
class GenerationOutput:
    """A single normalised answer from a provider."""

    command: str
    explanation: str
    safety: Safety

    def to_dict(self) -> Dict[str, str]:
        return {
            "command": self.command,
            "explanation": self.explanation,
            "safety": self.safety.value,
        }


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully merged runtime configuration for one invocation.

    Produced by :func:`baish.config.resolve_config` (flags > environment
    > config file > defaults) and never modified afterwards.
    """

    provider: Provider
    model: str
    base_url: str
    api_key: str
    explain: bool = False
    json: bool = False
    plain: bool = False
    no_fun: bool = False
    output_file: Optional[str] = None

    @property
    def api_key_missing(self) -> bool:
        return not self.api_key.strip()

    def public_dict(self) -> Dict[str, Any]:
        """Return the config as a dict with the API key masked."""
        data = asdict(self)
        data["provider"] = self.provider.value
        data["api_key"] = "***" if self.api_key else ""
        return data


@dataclass(frozen=True)
class TerminalContext:
    """Terminal facts resolved once at startup."""

    stdin_tty: bool
    stdout_tty: bool
    color: bool

    @property
    def interactive(self) -> bool:
        return self.stdin_tty and self.stdout_tty

    @classmethod
    def detect(
        cls,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "TerminalContext":
        stdin = stdin if stdin is not None else sys.stdin
        stdout = stdout if stdout is not None else sys.stdout
        environ = environ if environ is not None else os.environ
        stdin_tty = _isatty(stdin)
        stdout_tty = _isatty(stdout)
        return cls(
            stdin_tty=stdin_tty,
            stdout_tty=stdout_tty,
            color=stdout_tty and "NO_COLOR" not in environ,
        )


def _isatty(stream: Optional[TextIO]) -> bool:
    try:
        return bool(stream is not None and stream.isatty())
    except ValueError:
        # closed stream
        return False
