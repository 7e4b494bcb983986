"""Configuration loading and resolution.

Settings come from four places, highest precedence first:

1. command line flags,
2. environment variables (``BAISH_*`` and the provider's own
   ``*_API_KEY`` / ``*_MODEL`` / ``*_BASE_URL`` variables),
3. the YAML config file ``~/.baish/config.yaml``,
4. the provider's built-in defaults.

:func:`resolve_config` merges them into an immutable
:class:`~baish.models.ResolvedConfig`.  The config file holds only
``provider``, ``model``, ``base_url``, ``api_key`` and ``no_fun``; it is
written by the setup wizard.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .models import Provider, ResolvedConfig

logger = logging.getLogger(__name__)

PROVIDER_ENV = "BAISH_PROVIDER"
MODEL_ENV = "BAISH_MODEL"
BASE_URL_ENV = "BAISH_BASE_URL"
FUN_ENV = "BAISH_FUN"

API_KEY_ENVS: Dict[Provider, Tuple[str, ...]] = {
    Provider.OPENAI: ("OPENAI_API_KEY",),
    Provider.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    Provider.OPENROUTER: ("OPENROUTER_API_KEY",),
    Provider.VERCEL: ("VERCEL_AI_GATEWAY_API_KEY", "AI_GATEWAY_API_KEY"),
}
MODEL_ENVS: Dict[Provider, Tuple[str, ...]] = {
    Provider.OPENAI: ("OPENAI_MODEL",),
    Provider.ANTHROPIC: ("ANTHROPIC_MODEL",),
    Provider.OPENROUTER: ("OPENROUTER_MODEL",),
    Provider.VERCEL: ("VERCEL_AI_GATEWAY_MODEL",),
}
BASE_URL_ENVS: Dict[Provider, Tuple[str, ...]] = {
    Provider.OPENAI: ("OPENAI_BASE_URL",),
    Provider.ANTHROPIC: ("ANTHROPIC_BASE_URL",),
    Provider.OPENROUTER: ("OPENROUTER_BASE_URL",),
    Provider.VERCEL: ("VERCEL_AI_GATEWAY_BASE_URL", "AI_GATEWAY_BASE_URL"),
}


@dataclass(frozen=True)
class FileConfig:
    """Contents of the YAML config file.  Every field is optional."""

    provider: Optional[Provider] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    no_fun: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileConfig":
        provider = data.get("provider")
        parsed = None
        if provider is not None:
            parsed = Provider.parse(str(provider))
            if parsed is None:
                raise ConfigError(f"unsupported provider `{provider}` in config file")
        no_fun = data.get("no_fun")
        return cls(
            provider=parsed,
            model=_optional_str(data.get("model")),
            base_url=_optional_str(data.get("base_url")),
            api_key=_optional_str(data.get("api_key")),
            no_fun=bool(no_fun) if no_fun is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.provider is not None:
            data["provider"] = self.provider.value
        for key in ("model", "base_url", "api_key", "no_fun"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def config_dir() -> Path:
    """Return the path to the user's configuration directory (``~/.baish``)."""
    return Path.home() / ".baish"


def config_file_path() -> Path:
    return config_dir() / "config.yaml"


def load_file_config(path: Optional[Path] = None) -> FileConfig:
    """Load the YAML config file, returning an empty config if it is missing.

    :raises ConfigError: If the file is not valid YAML or not a mapping.
    """
    path = path or config_file_path()
    if not path.exists():
        return FileConfig()
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"could not parse {path}: {exc}") from exc
    if data is None:
        return FileConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return FileConfig.from_dict(data)


def save_file_config(config: FileConfig, path: Optional[Path] = None) -> Path:
    """Persist ``config`` to disk, creating the directory if needed."""
    path = path or config_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
    try:
        path.chmod(0o600)
    except OSError as exc:
        logger.debug("Could not restrict permissions on %s: %s", path, exc)
    return path


def _first_env(environ: Mapping[str, str], names: Tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value is not None:
            return value
    return None


def resolve_config(
    file_config: Optional[FileConfig] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
    explain: bool = False,
    json_mode: bool = False,
    plain: bool = False,
    no_fun: bool = False,
    output_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvedConfig:
    """Merge flags, environment, file config and defaults.

    :raises ConfigError: If a provider name from flags or environment
      is not one of the supported providers.
    """
    file_config = file_config or FileConfig()
    environ = environ if environ is not None else os.environ

    chosen: Optional[Provider] = None
    if provider is not None:
        chosen = Provider.parse(provider)
        if chosen is None:
            raise ConfigError(
                f"unsupported provider `{provider}` (use: openai, anthropic, openrouter, vercel)"
            )
    elif environ.get(PROVIDER_ENV):
        chosen = Provider.parse(environ[PROVIDER_ENV])
        if chosen is None:
            raise ConfigError(f"unsupported provider `{environ[PROVIDER_ENV]}` in {PROVIDER_ENV}")
    chosen = chosen or file_config.provider or Provider.OPENAI

    resolved_model = (
        model
        or environ.get(MODEL_ENV)
        or _first_env(environ, MODEL_ENVS[chosen])
        or file_config.model
        or chosen.default_model
    )
    resolved_base_url = (
        base_url
        or environ.get(BASE_URL_ENV)
        or _first_env(environ, BASE_URL_ENVS[chosen])
        or file_config.base_url
        or chosen.default_base_url
    )
    resolved_key = (
        api_key
        or _first_env(environ, API_KEY_ENVS[chosen])
        or file_config.api_key
        or ""
    )
    resolved_no_fun = no_fun or environ.get(FUN_ENV) == "0" or bool(file_config.no_fun)

    return ResolvedConfig(
        provider=chosen,
        model=resolved_model,
        base_url=resolved_base_url,
        api_key=resolved_key,
        explain=explain,
        json=json_mode,
        plain=plain,
        no_fun=resolved_no_fun,
        output_file=output_file,
    )


def detected_provider_keys(environ: Optional[Mapping[str, str]] = None) -> List[Tuple[Provider, str]]:
    """Return ``(provider, key)`` for every provider with a key in the environment."""
    environ = environ if environ is not None else os.environ
    found = []
    for provider in Provider:
        for name in API_KEY_ENVS[provider]:
            value = environ.get(name, "")
            if value.strip():
                found.append((provider, value))
                break
    return found


def merge_with_setup(config: ResolvedConfig, saved: FileConfig) -> ResolvedConfig:
    """Fold a freshly saved setup into an already resolved config.

    A provider chosen during setup replaces the resolved one together
    with its model and base URL.  Otherwise the key is taken from the
    setup when the resolved one is empty, and model and base URL are
    only replaced while they are still the provider defaults, so
    explicit flags survive onboarding.
    """
    if saved.provider is not None and saved.provider is not config.provider:
        config = replace(
            config,
            provider=saved.provider,
            model=saved.model or saved.provider.default_model,
            base_url=saved.base_url or saved.provider.default_base_url,
            api_key="",
        )
    if not config.api_key:
        if not saved.api_key:
            raise ConfigError("setup did not return an api key")
        config = replace(config, api_key=saved.api_key)
    if saved.model and config.model == config.provider.default_model:
        config = replace(config, model=saved.model)
    if saved.base_url and config.base_url == config.provider.default_base_url:
        config = replace(config, base_url=saved.base_url)
    return config
