from __future__ import annotations

import pytest

from baish.models import Provider, ResolvedConfig, TerminalContext


@pytest.fixture
def make_config():
    def _make(**overrides) -> ResolvedConfig:
        values = dict(
            provider=Provider.OPENAI,
            model="gpt-4o-mini",
            base_url="https://api.example.test/v1",
            api_key="sk-test",
        )
        values.update(overrides)
        return ResolvedConfig(**values)

    return _make


@pytest.fixture
def terminal() -> TerminalContext:
    return TerminalContext(stdin_tty=True, stdout_tty=True, color=False)


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home
