"""Printing generated commands.

Non-interactive output is either the bare command (plain mode) or a
single JSON line (``--json``).  The interactive result card is also
rendered here so the review loop only deals with keys and transitions.
"""

from __future__ import annotations

import json
from typing import Dict

import click

from .models import GenerationOutput, ResolvedConfig, Safety, TerminalContext

SAFETY_COLORS = {
    Safety.SAFE: "green",
    Safety.CAUTION: "yellow",
    Safety.RISKY: "red",
}


def json_payload(config: ResolvedConfig, output: GenerationOutput) -> Dict[str, str]:
    payload = {"provider": config.provider.value, "model": config.model}
    payload.update(output.to_dict())
    return payload


def emit_non_interactive(config: ResolvedConfig, output: GenerationOutput) -> None:
    """Print ``output`` for scripts and pipes.

    JSON mode writes one line with provider, model, command, explanation
    and safety.  Otherwise the explanation (when requested) goes to
    stderr and only the command goes to stdout.
    """
    if config.json:
        click.echo(json.dumps(json_payload(config, output)))
        return
    if config.explain:
        click.echo(output.explanation.strip(), err=True)
    click.echo(output.command.strip())


def render_result_card(
    config: ResolvedConfig,
    prompt: str,
    output: GenerationOutput,
    terminal: TerminalContext,
) -> None:
    def echo(text: str = "") -> None:
        click.echo(text, color=terminal.color)

    safety = output.safety
    echo()
    echo(f"{click.style('Prompt:', bold=True)} {prompt.strip()}")
    echo()
    echo(f"{click.style('Command', fg='cyan')}  {click.style(f'[{safety.value}]', fg=SAFETY_COLORS[safety])}")
    echo(output.command.strip())
    if config.explain:
        echo()
        echo(click.style("Explanation", fg="cyan"))
        echo(output.explanation.strip())
    echo()
