"""Exception hierarchy for the command generator.

Every error carries a human-readable message.  The CLI catches
:class:`BaishError` at the process boundary, prints ``error: <message>``
and exits with status 1.  Nothing in the generation path retries.
"""

from typing import Optional


class BaishError(Exception):
    """Base class for all errors raised by ``baish``."""


class ConfigError(BaishError):
    """Raised when configuration or the prompt cannot be resolved."""


class RequestFailed(BaishError):
    """Raised when the HTTP request to a provider fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(BaishError):
    """Raised when a provider's JSON envelope lacks the expected fields."""


class NoTextContent(MalformedResponse):
    """Raised when an Anthropic response carries no ``text`` block."""


class EmptyOutput(BaishError):
    """Raised when normalisation leaves no command to run."""


class WorkerDisconnected(BaishError):
    """Raised when the generation worker exits without reporting a result."""


class ClipboardUnsupported(BaishError):
    """Raised when no clipboard helper could take the command."""
