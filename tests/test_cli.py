import json

import pytest
from click.testing import CliRunner

from baish import cli as cli_module
from baish.cli import cli
from baish.config import API_KEY_ENVS, BASE_URL_ENVS, MODEL_ENVS
from baish.errors import RequestFailed
from baish.models import GenerationOutput, Safety
from baish.shell_integration import BEGIN_MARKER


@pytest.fixture
def clean_env(monkeypatch, fake_home):
    for names in list(API_KEY_ENVS.values()) + list(MODEL_ENVS.values()) + list(BASE_URL_ENVS.values()):
        for name in names:
            monkeypatch.delenv(name, raising=False)
    for name in ("BAISH_PROVIDER", "BAISH_MODEL", "BAISH_BASE_URL", "BAISH_FUN", "SHELL"):
        monkeypatch.delenv(name, raising=False)
    return fake_home


@pytest.fixture
def prompts(monkeypatch):
    seen = []

    def fake_generate(client, config, prompt):
        seen.append((config, prompt))
        return GenerationOutput(command="du -sh .", explanation="size of cwd", safety=Safety.SAFE)

    monkeypatch.setattr(cli_module, "generate_once", fake_generate)
    return seen


def test_prompt_words_route_to_run(clean_env, monkeypatch, prompts) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    result = CliRunner().invoke(cli, ["--json", "how", "big", "is", "this"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert payload["command"] == "du -sh ."
    assert payload["provider"] == "openai"
    config, prompt = prompts[0]
    assert prompt == "how big is this"
    assert config.api_key == "sk-env"
    assert config.json


def test_prompt_from_stdin(clean_env, monkeypatch, prompts) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    result = CliRunner().invoke(cli, ["--plain"], input="show disk usage\n")
    assert result.exit_code == 0, result.output
    assert "du -sh ." in result.output
    assert prompts[0][1] == "show disk usage"


def test_flags_override_provider(clean_env, monkeypatch, prompts) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ak")
    result = CliRunner().invoke(cli, ["--provider", "anthropic", "--model", "claude-x", "--plain", "list", "files"])
    assert result.exit_code == 0, result.output
    config = prompts[0][0]
    assert config.provider.value == "anthropic"
    assert config.model == "claude-x"
    assert config.api_key == "ak"


def test_missing_key_is_an_error_when_piped(clean_env, prompts) -> None:
    result = CliRunner().invoke(cli, ["--plain", "list", "files"])
    assert result.exit_code == 1
    assert "error: missing API key" in result.output
    assert prompts == []


def test_unknown_provider(clean_env, prompts) -> None:
    result = CliRunner().invoke(cli, ["--provider", "ollama", "ls"])
    assert result.exit_code == 1
    assert "error: unsupported provider `ollama`" in result.output


def test_provider_failure_exits_one(clean_env, monkeypatch) -> None:
    def fail(client, config, prompt):
        raise RequestFailed("request failed with status 401: bad key", status_code=401)

    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setattr(cli_module, "generate_once", fail)
    result = CliRunner().invoke(cli, ["--plain", "ls"])
    assert result.exit_code == 1
    assert "error: request failed with status 401" in result.output


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_init_installs_once(clean_env) -> None:
    runner = CliRunner()
    first = runner.invoke(cli, ["init", "bash"])
    assert first.exit_code == 0, first.output
    assert "Installed shell integration for bash" in first.output
    rc = clean_env / ".bashrc"
    assert rc.read_text(encoding="utf-8").count(BEGIN_MARKER) == 1

    second = runner.invoke(cli, ["init", "bash"])
    assert second.exit_code == 0
    assert "already up to date" in second.output
    assert rc.read_text(encoding="utf-8").count(BEGIN_MARKER) == 1


def test_init_detects_shell_from_env(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("SHELL", "/usr/bin/zsh")
    result = CliRunner().invoke(cli, ["init"])
    assert result.exit_code == 0, result.output
    assert (clean_env / ".zshrc").exists()


def test_init_without_shell(clean_env) -> None:
    result = CliRunner().invoke(cli, ["init"])
    assert result.exit_code == 1
    assert "could not detect shell" in result.output


def test_list_models_marks_current(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setattr(cli_module, "list_models", lambda client, provider, base_url, api_key: ["gpt-4.1", "gpt-4o-mini"])
    result = CliRunner().invoke(cli, ["list-models"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["  gpt-4.1", "* gpt-4o-mini"]


def test_list_models_requires_key(clean_env) -> None:
    result = CliRunner().invoke(cli, ["list-models"])
    assert result.exit_code == 1
    assert "missing API key" in result.output


def test_interactive_run_passes_exit_status(clean_env, monkeypatch) -> None:
    seen = []

    def fake_interactive(client, config, prompt, terminal):
        seen.append(prompt)
        return 7

    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setattr(
        cli_module.TerminalContext,
        "detect",
        classmethod(lambda cls: cls(stdin_tty=True, stdout_tty=True, color=False)),
    )
    monkeypatch.setattr(cli_module, "run_interactive", fake_interactive)
    result = CliRunner().invoke(cli, ["false", "please"])
    assert result.exit_code == 7, result.output
    assert seen == ["false please"]


def test_invalid_base_url_reports_error(clean_env) -> None:
    result = CliRunner().invoke(cli, ["--api-key", "k", "--base-url", "http://exa mple.com\x00/v1", "--plain", "ls"])
    assert result.exit_code == 1
    assert "error: request failed" in result.output
