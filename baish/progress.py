"""Run a generation request while animating a status line.

The network call happens on a background thread so the terminal keeps
moving during the round trip.  The foreground draws the first status
frame straight away, then polls the worker's result queue with a short
timeout.  Each timeout advances the spinner; the status word advances
on its own wall-clock schedule.  The line is always erased and
rewritten in place, never followed by a newline.

There is no cancellation.  Once started, the worker runs to completion
and reports exactly one result.  If the caller stops waiting (for
instance because the process is exiting), the daemon thread is simply
abandoned.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
import time
from typing import Any, Callable, Optional, TextIO, Tuple

import httpx

from .errors import WorkerDisconnected
from .models import GenerationOutput, ResolvedConfig
from .providers import generate_once

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.09
PHASE_INTERVAL = 0.85
SPINNER = ("|", "/", "-", "\\")
PHASES = ("thinking", "drafting", "refining", "finalizing")
PLAIN_PHASE = "working"
CLEAR_LINE = "\x1b[2K\r"

GenerateFn = Callable[[httpx.Client, ResolvedConfig, str], GenerationOutput]


class StatusLine:
    """A single terminal row redrawn in place."""

    def __init__(self, stream: TextIO, no_fun: bool = False) -> None:
        self.stream = stream
        self.phases = (PLAIN_PHASE,) if no_fun else PHASES
        self.spin_index = 0
        self.phase_index = 0
        self.frames = 0

    @property
    def phase(self) -> str:
        return self.phases[self.phase_index]

    def draw(self) -> None:
        self.stream.write(f"{CLEAR_LINE}{SPINNER[self.spin_index]} {self.phase}...")
        self.stream.flush()
        self.frames += 1

    def spin(self) -> None:
        self.spin_index = (self.spin_index + 1) % len(SPINNER)

    def next_phase(self) -> None:
        self.phase_index = (self.phase_index + 1) % len(self.phases)

    def clear(self) -> None:
        self.stream.write(CLEAR_LINE)
        self.stream.flush()


def _worker(
    results: "queue.Queue[Tuple[bool, Any]]",
    generate: GenerateFn,
    client: httpx.Client,
    config: ResolvedConfig,
    prompt: str,
) -> None:
    try:
        output = generate(client, config, prompt)
    except Exception as exc:
        results.put((False, exc))
    else:
        results.put((True, output))


def run_with_progress(
    client: httpx.Client,
    config: ResolvedConfig,
    prompt: str,
    stream: Optional[TextIO] = None,
    generate: GenerateFn = generate_once,
    poll_interval: float = POLL_INTERVAL,
    phase_interval: float = PHASE_INTERVAL,
    clock: Callable[[], float] = time.monotonic,
) -> GenerationOutput:
    """Generate a command on a worker thread while animating ``stream``.

    :param client: Shared HTTP client passed through to ``generate``.
    :param config: Resolved configuration for this invocation.
    :param prompt: Natural-language request.
    :param stream: Terminal stream for the status line (stdout by default).
    :param generate: Generation function run on the worker.
    :returns: The worker's :class:`GenerationOutput`.
    :raises WorkerDisconnected: If the worker exits without a result.
    :raises BaishError: Whatever the worker's generation raised.
    """
    stream = stream if stream is not None else sys.stdout
    results: "queue.Queue[Tuple[bool, Any]]" = queue.Queue(maxsize=1)
    worker = threading.Thread(
        target=_worker,
        args=(results, generate, client, config, prompt),
        name="baish-generate",
        daemon=True,
    )
    worker.start()

    status = StatusLine(stream, no_fun=config.no_fun)
    status.draw()
    last_phase_tick = clock()

    while True:
        try:
            ok, value = results.get(timeout=poll_interval)
        except queue.Empty:
            if not worker.is_alive() and results.empty():
                status.clear()
                raise WorkerDisconnected("worker disconnected")
            status.spin()
            now = clock()
            if now - last_phase_tick >= phase_interval:
                status.next_phase()
                last_phase_tick = now
            status.draw()
            continue
        status.clear()
        logger.debug("Generation finished after %d status frames", status.frames)
        if ok:
            return value
        raise value
