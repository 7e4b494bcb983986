import json

from baish.models import GenerationOutput, Safety, TerminalContext
from baish.output import emit_non_interactive, json_payload, render_result_card

OUTPUT = GenerationOutput(command="  du -sh *  ", explanation=" sizes of entries ", safety=Safety.CAUTION)


def test_json_mode_prints_one_line(make_config, capsys) -> None:
    emit_non_interactive(make_config(json=True, explain=True), OUTPUT)
    captured = capsys.readouterr()
    lines = captured.out.splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0]) == {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "command": "  du -sh *  ",
        "explanation": " sizes of entries ",
        "safety": "caution",
    }
    assert captured.err == ""


def test_plain_prints_only_the_command(make_config, capsys) -> None:
    emit_non_interactive(make_config(plain=True), OUTPUT)
    captured = capsys.readouterr()
    assert captured.out == "du -sh *\n"
    assert captured.err == ""


def test_explanation_goes_to_stderr(make_config, capsys) -> None:
    emit_non_interactive(make_config(explain=True), OUTPUT)
    captured = capsys.readouterr()
    assert captured.out == "du -sh *\n"
    assert captured.err == "sizes of entries\n"


def test_json_payload_key_order(make_config) -> None:
    assert list(json_payload(make_config(), OUTPUT)) == ["provider", "model", "command", "explanation", "safety"]


def test_result_card_without_color(make_config, capsys) -> None:
    terminal = TerminalContext(stdin_tty=True, stdout_tty=True, color=False)
    render_result_card(make_config(explain=True), " how big ", OUTPUT, terminal)
    out = capsys.readouterr().out
    assert "\x1b[" not in out
    assert "Prompt: how big" in out
    assert "Command  [caution]" in out
    assert "du -sh *" in out
    assert "Explanation" in out and "sizes of entries" in out


def test_result_card_hides_explanation_by_default(make_config, capsys) -> None:
    terminal = TerminalContext(stdin_tty=True, stdout_tty=True, color=False)
    render_result_card(make_config(), "how big", OUTPUT, terminal)
    assert "sizes of entries" not in capsys.readouterr().out
