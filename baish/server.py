"""Local JSON endpoint for editor and script integrations.

``b serve`` exposes a single route::

    POST /generate  {"prompt": "list files by size"}

which answers with the same payload as ``b --json``.  The server only
generates; it never executes anything.  FastAPI and uvicorn are
imported lazily by the CLI so plain ``b`` usage does not pay for them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .errors import BaishError
from .models import ResolvedConfig
from .output import json_payload
from .providers import generate_once

logger = logging.getLogger(__name__)


def create_app(config: ResolvedConfig, client: httpx.Client, generate=generate_once) -> FastAPI:
    """Build the FastAPI application bound to ``config`` and ``client``."""
    app = FastAPI(title="baish", version="1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST"],
        allow_headers=["*"],
    )

    @app.post("/generate")
    def generate_command(request: Dict[str, Any]) -> Dict[str, str]:
        prompt = request.get("prompt") or request.get("input")
        if not isinstance(prompt, str) or not prompt.strip():
            raise HTTPException(status_code=400, detail="'prompt' field must be a non-empty string")
        try:
            output = generate(client, config, prompt.strip())
        except BaishError as exc:
            logger.warning("Generation failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc))
        return json_payload(config, output)

    return app
