"""Interactive review of a generated command.

The session moves through these states::

    GENERATING -> REVIEWING -> ACCEPTED | REGENERATING | QUIT
    REGENERATING -> GENERATING

``GENERATING`` runs the request through
:func:`baish.progress.run_with_progress`; errors propagate to the
caller untouched.  ``REVIEWING`` reads one key at a time:

* Enter – accept: write the command to ``--output-file`` when given
  (the shell wrapper runs it), otherwise run it in a child shell.
* ``r`` – generate again with the same prompt.
* ``e`` – print the explanation.
* ``c`` – copy the command to the clipboard.
* ``q`` – quit without doing anything.

Letter keys are case-insensitive.  An empty command on accept and a
missing clipboard helper are reported without leaving ``REVIEWING``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import click
import httpx

from .actions import copy_to_clipboard, run_command
from .errors import BaishError, ClipboardUnsupported
from .models import GenerationOutput, ResolvedConfig, TerminalContext
from .output import render_result_card
from .progress import run_with_progress

logger = logging.getLogger(__name__)

REGENERATE_LINE = "Trying a different phrasing path..."
HINT_LINE = "Unknown key. Press Enter, r, e, c, or q."
ENTER_KEYS = ("\r", "\n")


class ReviewState(Enum):
    GENERATING = "generating"
    REVIEWING = "reviewing"
    ACCEPTED = "accepted"
    REGENERATING = "regenerating"
    QUIT = "quit"


class KeyAction(Enum):
    ACCEPT = "accept"
    REGENERATE = "regenerate"
    EXPLAIN = "explain"
    COPY = "copy"
    QUIT = "quit"


_LETTER_ACTIONS = {
    "r": KeyAction.REGENERATE,
    "e": KeyAction.EXPLAIN,
    "c": KeyAction.COPY,
    "q": KeyAction.QUIT,
}


def action_for_key(key: str) -> Optional[KeyAction]:
    """Map a keystroke to its action, or ``None`` for unknown keys."""
    if key in ENTER_KEYS:
        return KeyAction.ACCEPT
    return _LETTER_ACTIONS.get(key.lower()) if len(key) == 1 else None


@dataclass
class ReviewSession:
    """The prompt under review and the latest generated answer."""

    prompt: str
    output: GenerationOutput


class ReviewLoop:
    """Drives one interactive generate/inspect/act cycle.

    Collaborators are injectable so the loop can be driven from tests
    without a terminal, a network or a clipboard.
    """

    def __init__(
        self,
        client: httpx.Client,
        config: ResolvedConfig,
        terminal: TerminalContext,
        generate: Callable[[httpx.Client, ResolvedConfig, str], GenerationOutput] = run_with_progress,
        read_key: Callable[[], str] = click.getchar,
        run: Callable[[str], int] = run_command,
        copy: Callable[[str], None] = copy_to_clipboard,
    ) -> None:
        self.client = client
        self.config = config
        self.terminal = terminal
        self.generate = generate
        self.read_key = read_key
        self.run_command = run
        self.copy = copy
        self.state = ReviewState.GENERATING
        self.session: Optional[ReviewSession] = None
        self.exit_code = 0

    def echo(self, text: str = "", nl: bool = True, **style) -> None:
        if style:
            text = click.style(text, **style)
        click.echo(text, nl=nl, color=self.terminal.color)

    def run(self, prompt: str) -> int:
        """Run the session for ``prompt`` and return the process exit code."""
        self.state = ReviewState.GENERATING
        while True:
            if self.state is ReviewState.GENERATING:
                output = self.generate(self.client, self.config, prompt)
                self.session = ReviewSession(prompt=prompt, output=output)
                render_result_card(self.config, prompt, output, self.terminal)
                self.state = ReviewState.REVIEWING
            elif self.state is ReviewState.REVIEWING:
                self.state = self.review_once()
            elif self.state is ReviewState.REGENERATING:
                if not self.config.no_fun:
                    self.echo(REGENERATE_LINE)
                self.state = ReviewState.GENERATING
            else:
                logger.debug("Review finished in state %s", self.state.value)
                self.session = None
                return self.exit_code

    def review_once(self) -> ReviewState:
        """Prompt for one key and return the next state."""
        self.echo(
            "  ".join(
                click.style(label, dim=True)
                for label in ("[Enter] use", "[r] regenerate", "[e] explain", "[c] copy", "[q] quit")
            )
        )
        self.echo("action > ", nl=False, dim=True)
        key = self.read_key()
        self.echo()

        action = action_for_key(key)
        if action is KeyAction.ACCEPT:
            return self.accept()
        if action is KeyAction.REGENERATE:
            return ReviewState.REGENERATING
        if action is KeyAction.EXPLAIN:
            self.echo()
            self.echo("Explanation", fg="cyan")
            self.echo(self.session.output.explanation.strip())
            self.echo()
            return ReviewState.REVIEWING
        if action is KeyAction.COPY:
            try:
                self.copy(self.session.output.command.strip())
            except ClipboardUnsupported as exc:
                self.echo(str(exc), fg="yellow")
            else:
                self.echo("Copied to clipboard.", fg="green")
            return ReviewState.REVIEWING
        if action is KeyAction.QUIT:
            return ReviewState.QUIT
        self.echo(HINT_LINE, fg="yellow")
        return ReviewState.REVIEWING

    def accept(self) -> ReviewState:
        command = self.session.output.command.strip()
        if not command:
            self.echo("Generated command was empty.", fg="yellow")
            return ReviewState.REVIEWING
        if self.config.output_file:
            try:
                Path(self.config.output_file).write_text(f"{command}\n", encoding="utf-8")
            except OSError as exc:
                raise BaishError(f"could not write {self.config.output_file}: {exc}") from exc
            logger.debug("Wrote command to %s", self.config.output_file)
            self.exit_code = 0
        else:
            self.exit_code = self.run_command(command)
        return ReviewState.ACCEPTED


def run_interactive(
    client: httpx.Client,
    config: ResolvedConfig,
    prompt: str,
    terminal: TerminalContext,
) -> int:
    """Review ``prompt`` interactively with the default collaborators."""
    return ReviewLoop(client, config, terminal).run(prompt)
