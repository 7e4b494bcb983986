"""Top-level package for baish.

This package implements a command line tool named ``b`` which turns a
natural-language request into a single shell command using a hosted
language model (OpenAI, Anthropic, OpenRouter or the Vercel AI
Gateway), then lets the user review, copy or run it.  The request
pipeline lives in :mod:`baish.providers` and :mod:`baish.normalizer`,
the spinner-driven worker in :mod:`baish.progress`, the keystroke
review loop in :mod:`baish.review` and the optional parent-shell
integration in :mod:`baish.shell_integration`.

When this package is installed via pip you can invoke the CLI from
your shell using the ``b`` entry point.  Alternatively you can run
``python -m baish`` for local development.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "errors",
    "models",
    "normalizer",
    "onboarding",
    "output",
    "progress",
    "prompt",
    "providers",
    "review",
    "server",
    "shell_integration",
]
