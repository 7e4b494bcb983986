"""First-run setup wizard.

Walks through three steps (provider, API key, model), checks the
choice with a tiny test request, saves the result to the YAML config
file and offers to install the shell integration.  Runs on ``b setup``
and automatically when no API key can be found on a terminal.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

import click
import httpx

from . import shell_integration
from .config import FileConfig, config_dir, config_file_path, detected_provider_keys, save_file_config
from .errors import BaishError, ConfigError
from .models import Provider, ResolvedConfig
from .providers import generate_once, list_models

logger = logging.getLogger(__name__)

TEST_PROMPT = "print current directory"
CUSTOM_MODEL = "Custom model id..."
PROVIDER_LABELS = {
    Provider.OPENAI: "OpenAI",
    Provider.ANTHROPIC: "Anthropic",
    Provider.OPENROUTER: "OpenRouter",
    Provider.VERCEL: "Vercel AI Gateway",
}


def models_cache_path(provider: Provider) -> Path:
    return config_dir() / f"models-{provider.value}.json"


def load_models_cache(provider: Provider) -> Optional[List[str]]:
    path = models_cache_path(provider)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, list) or not data:
        return None
    return [str(m) for m in data]


def save_models_cache(provider: Provider, models: Sequence[str]) -> None:
    path = models_cache_path(provider)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(list(models)), encoding="utf-8")
    except OSError as exc:
        logger.debug("Could not write model cache %s: %s", path, exc)


def _step(number: str, title: str) -> None:
    click.echo()
    click.echo(click.style(f"[{number}] {title}", fg="cyan", bold=True))


def select_provider(default: Optional[Provider], detected: Sequence[Tuple[Provider, str]]) -> Provider:
    suggested = default or (detected[0][0] if detected else Provider.OPENAI)
    choices = list(Provider)
    for idx, provider in enumerate(choices, start=1):
        click.echo(f"  {idx}. {provider.value:<11} {PROVIDER_LABELS[provider]}")
    picked = click.prompt(
        "Pick your model provider",
        type=click.IntRange(1, len(choices)),
        default=choices.index(suggested) + 1,
    )
    return choices[picked - 1]


def select_api_key(
    provider: Provider,
    detected: Sequence[Tuple[Provider, str]],
    existing: FileConfig,
) -> str:
    env_key = next((key for p, key in detected if p is provider), None)
    if env_key and click.confirm(f"Use the {provider.value} key found in your environment?", default=True):
        return env_key
    if existing.provider is provider and existing.api_key:
        if click.confirm("Keep the saved API key?", default=True):
            return existing.api_key
    while True:
        key = click.prompt(f"{PROVIDER_LABELS[provider]} API key", hide_input=True).strip()
        if key:
            return key
        click.echo(click.style("API key cannot be empty.", fg="yellow"))


def model_candidates(client: httpx.Client, provider: Provider, base_url: str, api_key: str) -> List[str]:
    """Live model list, falling back to the cached list, then to nothing."""
    try:
        models = list_models(client, provider, base_url, api_key)
    except BaishError as exc:
        logger.debug("Live model listing failed: %s", exc)
        models = []
    if models:
        save_models_cache(provider, models)
        click.echo(click.style(f"Loaded {len(models)} models from API.", fg="green"))
        return models
    cached = load_models_cache(provider)
    if cached:
        click.echo(click.style("Using cached model list.", fg="yellow"))
        return cached
    return []


def select_model(
    client: httpx.Client,
    provider: Provider,
    base_url: str,
    api_key: str,
    existing_model: Optional[str],
) -> str:
    click.echo(click.style("Loading models...", dim=True))
    items = model_candidates(client, provider, base_url, api_key)
    default_model = existing_model or provider.default_model
    if default_model not in items:
        items.insert(0, default_model)
    items.append(CUSTOM_MODEL)
    for idx, item in enumerate(items, start=1):
        click.echo(f"  {idx}. {item}")
    picked = click.prompt(
        "Select model",
        type=click.IntRange(1, len(items)),
        default=items.index(default_model) + 1,
    )
    choice = items[picked - 1]
    if choice != CUSTOM_MODEL:
        return choice
    while True:
        value = click.prompt("Enter model id").strip()
        if value:
            return value
        click.echo(click.style("Model id cannot be empty.", fg="yellow"))


def offer_shell_integration(environ: Optional[Mapping[str, str]] = None) -> None:
    shell = shell_integration.detect_shell_from_env(environ)
    if shell is None:
        return
    if not click.confirm(f"Install the `b` shell function into ~/{shell.rc_filename}?", default=False):
        return
    result = shell_integration.install(shell)
    state = "Installed" if result.updated else "Already up to date:"
    click.echo(f"{state} shell integration at {result.rc_path}")


def run_onboarding(
    client: httpx.Client,
    existing: Optional[FileConfig] = None,
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FileConfig:
    """Run the wizard and return the saved :class:`FileConfig`.

    :raises ConfigError: If the test request with the chosen settings fails.
    """
    existing = existing or FileConfig()
    click.echo(click.style("baish setup", bold=True))
    detected = detected_provider_keys(environ)
    if detected:
        names = ", ".join(p.value for p, _ in detected)
        click.echo(f"{click.style('Found keys:', fg='green')} {names}")
    else:
        click.echo(click.style("No keys found in env. We can paste one in.", fg="yellow"))

    _step("1/3", "Provider")
    provider = select_provider(existing.provider, detected)

    _step("2/3", "Credentials")
    api_key = select_api_key(provider, detected, existing)
    base_url = provider.default_base_url

    _step("3/3", "Model")
    existing_model = existing.model if existing.provider is provider else None
    model = select_model(client, provider, base_url, api_key, existing_model)
    click.echo(click.style(f"Base URL: {base_url}", dim=True))

    staged = ResolvedConfig(
        provider=provider,
        model=model,
        base_url=base_url,
        api_key=api_key,
        plain=True,
    )
    click.echo(click.style("Running a tiny test prompt... ", fg="cyan"), nl=False)
    try:
        generate_once(client, staged, TEST_PROMPT)
    except BaishError as exc:
        click.echo(click.style("nope, that didn't work.", fg="red"))
        raise ConfigError(f"provider test failed: {exc}") from exc
    click.echo(click.style("nice, connection looks good.", fg="green"))

    saved = FileConfig(
        provider=provider,
        model=model,
        base_url=base_url,
        api_key=api_key,
        no_fun=existing.no_fun if existing.no_fun is not None else False,
    )
    written = save_file_config(saved, path or config_file_path())
    click.echo()
    click.echo(click.style("Setup complete.", fg="green"))
    click.echo(click.style(f"Saved config: {written}", dim=True))
    offer_shell_integration(environ)
    return saved
