import json

import pytest

from baish.errors import EmptyOutput
from baish.models import Safety
from baish.normalizer import PLACEHOLDER_EXPLANATION, classify_safety, normalize


def _structured(command, explanation="lists files", safety="safe"):
    return json.dumps({"command": command, "explanation": explanation, "safety": safety})


@pytest.mark.parametrize("label", ["safe", "caution", "risky"])
def test_recognized_safety_is_kept(label) -> None:
    # deliberately mismatched with what the classifier would say
    out = normalize(_structured("ls -la", safety=label))
    assert out.safety is Safety(label)
    assert out.command == "ls -la"
    assert out.explanation == "lists files"


def test_safety_label_is_trimmed_and_lowercased() -> None:
    out = normalize(_structured("ls", safety="  CAUTION "))
    assert out.safety is Safety.CAUTION


def test_garbled_safety_is_reclassified() -> None:
    out = normalize(_structured("sudo rm -rf /tmp/x", safety="dangerous!!"))
    assert out.safety is Safety.RISKY


def test_missing_safety_is_reclassified() -> None:
    raw = json.dumps({"command": "sudo apt update", "explanation": "updates"})
    assert normalize(raw).safety is Safety.CAUTION


def test_missing_explanation_becomes_empty() -> None:
    raw = json.dumps({"command": "pwd", "safety": "safe"})
    assert normalize(raw).explanation == ""


def test_structured_blank_command_is_empty_output() -> None:
    with pytest.raises(EmptyOutput):
        normalize(_structured("   "))


def test_fenced_json_is_parsed_as_structured() -> None:
    raw = "```json\n" + _structured("du -sh *", explanation="sizes") + "\n```"
    out = normalize(raw)
    assert out.command == "du -sh *"
    assert out.explanation == "sizes"


def test_fallback_strips_fences() -> None:
    out = normalize("```\nls -la\n```")
    assert out.command == "ls -la"
    assert out.explanation == PLACEHOLDER_EXPLANATION
    assert out.safety is Safety.SAFE


def test_fallback_takes_first_non_blank_line() -> None:
    out = normalize("\n\n  df -h  \nshows disk usage\n")
    assert out.command == "df -h"


def test_fallback_classifies_command() -> None:
    assert normalize("chmod 777 file.txt").safety is Safety.CAUTION


@pytest.mark.parametrize("raw", ["", "   ", "\n\n", "``````", "``` \n ```"])
def test_blank_output_raises(raw) -> None:
    with pytest.raises(EmptyOutput):
        normalize(raw)


def test_json_without_command_falls_back_to_text() -> None:
    out = normalize('{"cmd": "ls"}')
    assert out.command == '{"cmd": "ls"}'
    assert out.explanation == PLACEHOLDER_EXPLANATION


def test_normalize_is_deterministic() -> None:
    raw = _structured("echo hi", safety="nope")
    assert normalize(raw) == normalize(raw)


@pytest.mark.parametrize(
    "command, expected",
    [
        ("sudo rm -rf /", Safety.RISKY),
        ("mkfs.ext4 /dev/sdb1", Safety.RISKY),
        ("dd if=/dev/zero of=/dev/sda", Safety.RISKY),
        ("sudo shutdown -h now", Safety.RISKY),
        ("REBOOT", Safety.RISKY),
        ("chmod 777 file.txt", Safety.CAUTION),
        ("sudo apt install jq", Safety.CAUTION),
        ("ls -la", Safety.SAFE),
        ("git status", Safety.SAFE),
    ],
)
def test_classify_safety(command, expected) -> None:
    assert classify_safety(command) is expected
