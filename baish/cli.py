"""Command line interface for baish.

This module defines the ``b`` command using the ``click`` library.
Anything that is not a subcommand is treated as a prompt, so the
everyday form is simply::

    b find files larger than 100MB

Subcommands:

``b [options] <prompt>``
    Generate a command.  On a terminal the result is shown for review
    (Enter to run, ``r`` to regenerate, ``e`` to explain, ``c`` to
    copy, ``q`` to quit).  When piped, or with ``--plain`` / ``--json``,
    the command is printed instead.  The prompt can also come from
    stdin: ``echo "list files" | b``.

``b setup``
    Run the interactive setup wizard and write ``~/.baish/config.yaml``.

``b init [bash|zsh]``
    Install the ``b`` shell function so accepted commands run in, and
    are recorded by, the current shell.

``b list-models``
    List the models the configured provider advertises.

``b serve``
    Launch a local FastAPI server exposing ``POST /generate``.
"""

from __future__ import annotations

import functools
import sys
from typing import Optional, Tuple

import click

from . import __version__
from .config import load_file_config, merge_with_setup, resolve_config
from .errors import BaishError, ConfigError
from .logging_utils import configure_logging
from .models import TerminalContext
from .onboarding import run_onboarding
from .output import emit_non_interactive
from .prompt import resolve_prompt
from .providers import build_client, generate_once, list_models
from .review import run_interactive
from .shell_integration import detect_shell_from_env, install, parse_shell_name

MISSING_KEY_MESSAGE = (
    "missing API key. Run `b setup` or set provider env key "
    "(OPENAI_API_KEY / ANTHROPIC_API_KEY / OPENROUTER_API_KEY / VERCEL_AI_GATEWAY_API_KEY)"
)


class CLIError(click.ClickException):
    """Prints ``error: <message>`` and exits with status 1."""

    def show(self, file=None) -> None:
        click.echo(f"error: {self.format_message()}", err=True)


def handle_errors(func):
    """Turn :class:`BaishError` into a clean CLI failure."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaishError as exc:
            raise CLIError(str(exc)) from exc

    return wrapper


class PromptGroup(click.Group):
    """A group that falls back to ``run`` when no subcommand is named."""

    default_command = "run"

    def parse_args(self, ctx: click.Context, args):
        if not args or (args[0] not in self.commands and args[0] not in ("-h", "--help", "--version")):
            args = [self.default_command] + list(args)
        return super().parse_args(ctx, args)


def provider_options(func):
    """Options shared by every command that talks to a provider."""
    func = click.option("--api-key", default=None, help="Override API key.")(func)
    func = click.option("--base-url", default=None, help="Override API base URL.")(func)
    func = click.option("--model", default=None, help="Override model.")(func)
    func = click.option("--provider", default=None, help="openai | anthropic | openrouter | vercel")(func)
    func = click.option("--debug", is_flag=True, help="Log requests and parsing details to stderr.")(func)
    return func


@click.group(cls=PromptGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="b")
def cli() -> None:
    """b - turn a prompt into a shell command."""


@cli.command(
    name="run",
    context_settings={"ignore_unknown_options": True, "help_option_names": ["-h", "--help"]},
)
@click.argument("prompt", nargs=-1, type=click.UNPROCESSED)
@provider_options
@click.option("-e", "--explain", is_flag=True, help="Include explanation in output.")
@click.option("--json", "json_mode", is_flag=True, help="JSON output mode.")
@click.option("--plain", is_flag=True, help="Disable interactive rendering.")
@click.option("--no-fun", is_flag=True, help="Disable playful copy.")
@click.option("--output-file", default=None, help="Write the accepted command here instead of running it.")
@click.pass_context
@handle_errors
def run_prompt(
    ctx: click.Context,
    prompt: Tuple[str, ...],
    debug: bool,
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
    explain: bool,
    json_mode: bool,
    plain: bool,
    no_fun: bool,
    output_file: Optional[str],
) -> None:
    """Generate a shell command for PROMPT."""
    configure_logging(debug)
    terminal = TerminalContext.detect()
    file_config = load_file_config()
    config = resolve_config(
        file_config,
        provider=provider,
        model=model,
        base_url=base_url,
        api_key=api_key,
        explain=explain,
        json_mode=json_mode,
        plain=plain,
        no_fun=no_fun,
        output_file=output_file,
    )

    with build_client() as client:
        if config.api_key_missing:
            if not terminal.interactive:
                raise ConfigError(MISSING_KEY_MESSAGE)
            click.echo("No provider key found. Launching onboarding...", err=True)
            saved = run_onboarding(client, file_config)
            config = merge_with_setup(config, saved)

        text = resolve_prompt(prompt, stdin_tty=terminal.stdin_tty)
        if terminal.interactive and not config.json and not config.plain:
            code = run_interactive(client, config, text, terminal)
            ctx.exit(code)
        output = generate_once(client, config, text)
        emit_non_interactive(config, output)


@cli.command()
@click.option("--debug", is_flag=True, help="Log requests and parsing details to stderr.")
@handle_errors
def setup(debug: bool) -> None:
    """Run the interactive setup wizard."""
    configure_logging(debug)
    with build_client() as client:
        run_onboarding(client, load_file_config())


@cli.command()
@click.argument("shell", required=False)
@handle_errors
def init(shell: Optional[str]) -> None:
    """Install the shell integration for SHELL (bash or zsh)."""
    kind = parse_shell_name(shell) if shell else detect_shell_from_env()
    if kind is None:
        raise ConfigError("could not detect shell. Run `b init zsh` or `b init bash`.")
    result = install(kind)
    if result.updated:
        click.echo(f"Installed shell integration for {kind.value} at {result.rc_path}")
    else:
        click.echo(f"Shell integration already up to date for {kind.value} at {result.rc_path}")
    click.echo(f"Restart shell or run: source {result.rc_path}")


@cli.command(name="list-models")
@provider_options
@handle_errors
def list_models_cmd(
    debug: bool,
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
) -> None:
    """List available models for the configured provider."""
    configure_logging(debug)
    config = resolve_config(
        load_file_config(), provider=provider, model=model, base_url=base_url, api_key=api_key
    )
    if config.api_key_missing:
        raise ConfigError(MISSING_KEY_MESSAGE)
    with build_client() as client:
        models = list_models(client, config.provider, config.base_url, config.api_key)
    if not models:
        click.echo(f"No models reported by provider '{config.provider.value}'.")
        return
    for name in models:
        marker = "*" if name == config.model else " "
        click.echo(f"{marker} {name}")


@cli.command(name="serve")
@click.option("--host", default="127.0.0.1", help="Bind address for the server.")
@click.option("--port", default=5005, help="Port for the server.")
@provider_options
@handle_errors
def serve(
    host: str,
    port: int,
    debug: bool,
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
) -> None:
    """Run a local JSON API for generating commands."""
    # Imported lazily so the everyday CLI path does not load them.
    try:
        import uvicorn

        from .server import create_app
    except ImportError:
        raise CLIError("FastAPI and uvicorn are required to run the server. Please install them with pip.")

    configure_logging(debug)
    config = resolve_config(
        load_file_config(), provider=provider, model=model, base_url=base_url, api_key=api_key
    )
    if config.api_key_missing:
        raise ConfigError(MISSING_KEY_MESSAGE)
    with build_client() as client:
        app = create_app(config, client)
        click.echo(f"baish server running on http://{host}:{port}", err=True)
        uvicorn.run(app, host=host, port=port)


def main() -> None:
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    cli(prog_name="b")


if __name__ == "__main__":
    main()
