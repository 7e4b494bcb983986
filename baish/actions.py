"""Side effects triggered from the review loop: run a command, copy it."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Mapping, Optional, Sequence

from .errors import ClipboardUnsupported

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/bash"


def user_shell(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = environ if environ is not None else os.environ
    return environ.get("SHELL") or DEFAULT_SHELL


def run_command(command: str, shell: Optional[str] = None) -> int:
    """Run ``command`` through the user's login shell.

    The child inherits this process's stdin, stdout and stderr so the
    command behaves as if typed at the prompt.

    :returns: The child's exit status.
    """
    shell = shell or user_shell()
    logger.debug("Running command via %s", shell)
    proc = subprocess.run([shell, "-lc", command])
    return proc.returncode


def clipboard_commands(platform: Optional[str] = None) -> List[List[str]]:
    """Candidate clipboard helpers for ``platform``, in preference order."""
    platform = platform or sys.platform
    if platform == "darwin":
        return [["pbcopy"]]
    if platform.startswith("linux"):
        return [
            ["wl-copy"],
            ["xclip", "-selection", "clipboard"],
            ["xsel", "--clipboard", "--input"],
        ]
    if platform.startswith("win"):
        return [["clip"]]
    return []


def copy_to_clipboard(text: str, candidates: Optional[Sequence[Sequence[str]]] = None) -> None:
    """Place ``text`` on the system clipboard.

    :raises ClipboardUnsupported: When no helper is installed or every
      helper failed.
    """
    if candidates is None:
        candidates = clipboard_commands()
    for argv in candidates:
        if shutil.which(argv[0]) is None:
            continue
        try:
            subprocess.run(list(argv), input=text, text=True, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.debug("Clipboard helper %s failed: %s", argv[0], exc)
            continue
        return
    raise ClipboardUnsupported("Copy not supported on this system.")
