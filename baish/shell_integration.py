"""Parent-shell integration.

A child process cannot change its parent shell's state, so ``b init``
installs a small shell function named ``b`` in the user's profile.
The function runs the real ``b`` with ``--output-file`` pointing at a
temporary file; when the user accepts a command the CLI writes it there
and the function evaluates it in the interactive shell, after adding it
to the shell history.

The function is kept between two marker comments so it can be replaced
in place.  :func:`upsert_block` is idempotent: installing the same
block twice leaves the file byte-for-byte unchanged the second time.
The profile is read, patched and written without locking.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

BEGIN_MARKER = "# >>> baish integration >>>"
END_MARKER = "# <<< baish integration <<<"

# Invocations the wrapper must hand straight to the real binary.
PASSTHROUGH_TOKENS = ("setup", "init", "list-models", "serve", "-h", "--help", "--json", "--plain")

_WRAPPER_TEMPLATE = """b() {{
  if [[ ! -t 0 || ! -t 1 ]]; then
    command b "$@"
    return $?
  fi
  for arg in "$@"; do
    case "$arg" in
      {passthrough})
        command b "$@"
        return $?
        ;;
    esac
  done
  local __b_tmp
  __b_tmp="$(mktemp)" || return 1
  command b --output-file "$__b_tmp" "$@" || {{
    local __b_status=$?
    rm -f "$__b_tmp"
    return $__b_status
  }}
  local cmd
  cmd="$(cat "$__b_tmp")"
  rm -f "$__b_tmp"
  [[ -z "$cmd" ]] && return 1
  printf '%s\\n' "$cmd"
  {history}
  eval "$cmd"
}}"""


class ShellKind(str, Enum):
    BASH = "bash"
    ZSH = "zsh"

    @property
    def rc_filename(self) -> str:
        return ".zshrc" if self is ShellKind.ZSH else ".bashrc"

    @property
    def history_command(self) -> str:
        return 'print -s -- "$cmd"' if self is ShellKind.ZSH else 'history -s "$cmd"'


def wrapper_block(shell: ShellKind) -> str:
    """Return the marker-delimited profile block for ``shell``."""
    body = _WRAPPER_TEMPLATE.format(
        passthrough="|".join(PASSTHROUGH_TOKENS),
        history=shell.history_command,
    )
    return f"{BEGIN_MARKER}\n{body}\n{END_MARKER}\n"


def upsert_block(existing: str, block: str) -> Tuple[str, bool]:
    """Insert ``block`` into ``existing`` or replace the current one.

    :param existing: Current profile contents (may be empty).
    :param block: Block text, markers included.
    :returns: ``(new_content, changed)``.  When a marker pair is found,
      ``changed`` is true only if the text actually differs; appending
      always reports a change.
    """
    start = existing.find(BEGIN_MARKER)
    if start != -1:
        end_at = existing.find(END_MARKER, start)
        if end_at != -1:
            # a stray begin marker must not swallow text up to a later block
            start = existing.rfind(BEGIN_MARKER, start, end_at)
            end = end_at + len(END_MARKER)
            out = existing[:start]
            if out and not out.endswith("\n"):
                out += "\n"
            out += block
            if not out.endswith("\n"):
                out += "\n"
            trailing = existing[end:].lstrip("\n")
            if trailing:
                out += "\n" + trailing
                if not out.endswith("\n"):
                    out += "\n"
            return out, out != existing

    out = existing
    if out and not out.endswith("\n"):
        out += "\n"
    if out:
        out += "\n"
    out += block
    if not out.endswith("\n"):
        out += "\n"
    return out, True


@dataclass(frozen=True)
class InstallResult:
    shell: ShellKind
    rc_path: Path
    updated: bool


def parse_shell_name(name: str) -> Optional[ShellKind]:
    value = (name or "").strip().lower()
    for kind in ShellKind:
        if kind.value == value:
            return kind
    return None


def detect_shell_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[ShellKind]:
    """Guess the user's shell from the basename of ``$SHELL``."""
    environ = environ if environ is not None else os.environ
    shell = environ.get("SHELL")
    if not shell:
        return None
    return parse_shell_name(Path(shell).name)


def install(shell: ShellKind, home: Optional[Path] = None) -> InstallResult:
    """Install or refresh the wrapper block in the shell's rc file."""
    home = home if home is not None else Path.home()
    rc_path = home / shell.rc_filename
    existing = rc_path.read_text(encoding="utf-8") if rc_path.exists() else ""
    content, updated = upsert_block(existing, wrapper_block(shell))
    if updated:
        rc_path.write_text(content, encoding="utf-8")
        logger.debug("Updated %s", rc_path)
    return InstallResult(shell=shell, rc_path=rc_path, updated=updated)
