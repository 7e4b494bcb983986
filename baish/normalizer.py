"""Model output normalisation and safety classification.

Language models do not always follow the requested output contract.
This module turns whatever text came back into a
:class:`~baish.models.GenerationOutput`:

* If the text is a JSON object with ``command``, ``explanation`` and
  ``safety`` fields, it is used as-is, except that ``safety`` is
  re-validated and recomputed from the command when the model sent
  something other than ``safe``, ``caution`` or ``risky``.
* Otherwise the first non-blank line of the text (with surrounding
  backticks and whitespace removed) is taken as the command and an
  explanation placeholder is attached.

The safety classifier is a best-effort substring heuristic.  It is an
advisory label shown to the user, not a security boundary: plenty of
destructive commands will not match any pattern below.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Tuple

from .errors import EmptyOutput
from .models import GenerationOutput, Safety

logger = logging.getLogger(__name__)

PLACEHOLDER_EXPLANATION = "Model did not provide structured explanation."

# Checked in order: a risky match wins over a caution match.
RISKY_PATTERNS: Tuple[str, ...] = (
    "rm -rf",  # recursive force delete
    "mkfs",  # format filesystem
    "dd if=",  # raw disk copy
    "shutdown",
    "reboot",
)
CAUTION_PATTERNS: Tuple[str, ...] = (
    "sudo",  # privilege escalation
    "chmod 777",  # world-writable permissions
)


def classify_safety(command: str) -> Safety:
    """Return the advisory safety level for ``command``.

    :param command: Shell command text.
    :returns: :attr:`Safety.RISKY` when a destructive pattern occurs,
      :attr:`Safety.CAUTION` for privilege or permission patterns and
      :attr:`Safety.SAFE` otherwise.
    """
    lower = command.lower()
    if any(pattern in lower for pattern in RISKY_PATTERNS):
        return Safety.RISKY
    if any(pattern in lower for pattern in CAUTION_PATTERNS):
        return Safety.CAUTION
    return Safety.SAFE


def normalize_safety(raw: Any, command: str) -> Safety:
    """Validate a model-supplied safety label, reclassifying when invalid."""
    parsed = Safety.parse(raw)
    if parsed is not None:
        return parsed
    logger.debug("Invalid safety label %r; reclassifying command", raw)
    return classify_safety(command)


_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


def _parse_structured(raw_text: str) -> Optional[dict]:
    candidate = raw_text.strip()
    match = _JSON_FENCE_RE.fullmatch(candidate)
    if match:
        candidate = match.group(1)
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("command"), str):
        return None
    return data


def normalize(raw_text: str) -> GenerationOutput:
    """Turn raw model text into a :class:`GenerationOutput`.

    :param raw_text: Text content returned by the provider.
    :returns: The normalised output.
    :raises EmptyOutput: When no command can be extracted.
    """
    data = _parse_structured(raw_text)
    if data is not None:
        command = data["command"]
        if not command.strip():
            raise EmptyOutput("model returned an empty command")
        explanation = data.get("explanation")
        if not isinstance(explanation, str):
            explanation = ""
        return GenerationOutput(
            command=command,
            explanation=explanation,
            safety=normalize_safety(data.get("safety"), command),
        )

    logger.debug("Model output was not structured JSON; using first line")
    cleaned = raw_text.strip().strip("`").strip()
    command = ""
    for line in cleaned.splitlines():
        if line.strip():
            command = line.strip()
            break
    if not command:
        raise EmptyOutput("model returned empty output")
    return GenerationOutput(
        command=command,
        explanation=PLACEHOLDER_EXPLANATION,
        safety=classify_safety(command),
    )
