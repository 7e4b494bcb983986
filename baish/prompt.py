"""Work out the natural-language request to send to the model."""

from __future__ import annotations

import sys
from typing import Optional, Sequence, TextIO

import click

from .errors import ConfigError

QUESTION = "What command do you want?"


def resolve_prompt(
    words: Sequence[str],
    stdin: Optional[TextIO] = None,
    stdin_tty: Optional[bool] = None,
) -> str:
    """Return the prompt from ``words``, an interactive question or stdin.

    Positional words win when they are not blank.  On a terminal the
    user is asked for the request; otherwise all of stdin is read, so
    ``echo "list files" | b`` works.

    :raises ConfigError: When the resulting prompt is empty.
    """
    joined = " ".join(words).strip()
    if joined:
        return joined

    stdin = stdin if stdin is not None else sys.stdin
    if stdin_tty is None:
        stdin_tty = stdin.isatty()
    if stdin_tty:
        answer = click.prompt(QUESTION, default="", show_default=False, prompt_suffix=" ")
        answer = answer.strip()
        if not answer:
            raise ConfigError("missing prompt")
        return answer

    data = stdin.read().strip()
    if not data:
        raise ConfigError("missing prompt from stdin")
    return data
