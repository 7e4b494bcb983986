import io
import threading
import time

import pytest

from baish.errors import RequestFailed, WorkerDisconnected
from baish.models import GenerationOutput, Safety
from baish.progress import CLEAR_LINE, PHASES, PLAIN_PHASE, SPINNER, run_with_progress

OUTPUT = GenerationOutput(command="ls -la", explanation="list", safety=Safety.SAFE)


def _frames(text: str):
    return [chunk for chunk in text.split(CLEAR_LINE) if chunk]


def test_slow_worker_renders_spinner_frames_in_place(make_config) -> None:
    def slow(client, config, prompt):
        time.sleep(0.5)
        return OUTPUT

    stream = io.StringIO()
    out = run_with_progress(None, make_config(), "list", stream=stream, generate=slow)

    assert out == OUTPUT
    text = stream.getvalue()
    assert "\n" not in text
    assert text.endswith(CLEAR_LINE)
    frames = _frames(text)
    assert 4 <= len(frames) <= 7
    assert all(frame[0] in SPINNER for frame in frames)
    assert frames[0] == f"{SPINNER[0]} {PHASES[0]}..."


def test_first_frame_is_drawn_before_result(make_config) -> None:
    release = threading.Event()
    stream = io.StringIO()
    snapshot = []

    def gated(client, config, prompt):
        release.wait(2)
        return OUTPUT

    def check_then_release():
        snapshot.append(stream.getvalue())
        release.set()

    timer = threading.Timer(0.2, check_then_release)
    timer.start()
    try:
        run_with_progress(None, make_config(), "list", stream=stream, generate=gated)
    finally:
        timer.cancel()
    assert f"{SPINNER[0]} thinking..." in snapshot[0]


def test_worker_error_is_reraised(make_config) -> None:
    def failing(client, config, prompt):
        raise RequestFailed("request failed: HTTP 500")

    stream = io.StringIO()
    with pytest.raises(RequestFailed, match="HTTP 500"):
        run_with_progress(None, make_config(), "list", stream=stream, generate=failing)
    assert stream.getvalue().endswith(CLEAR_LINE)


def test_worker_dying_without_result_is_disconnected(make_config) -> None:
    def dies(client, config, prompt):
        raise SystemExit(3)

    with pytest.raises(WorkerDisconnected):
        run_with_progress(None, make_config(), "list", stream=io.StringIO(), generate=dies)


def test_phase_advances_on_wall_clock_not_poll_count(make_config) -> None:
    ticks = iter(range(100))

    def clock():
        # each call advances a full second
        return float(next(ticks))

    def slow(client, config, prompt):
        time.sleep(0.25)
        return OUTPUT

    stream = io.StringIO()
    run_with_progress(
        None, make_config(), "list", stream=stream, generate=slow, poll_interval=0.05, clock=clock
    )
    frames = _frames(stream.getvalue())
    phases = [frame.split(" ", 1)[1] for frame in frames]
    assert phases[0] == "thinking..."
    assert phases[1] == "drafting..."
    assert phases[2] == "refining..."


def test_no_fun_keeps_a_plain_status_word(make_config) -> None:
    def slow(client, config, prompt):
        time.sleep(0.2)
        return OUTPUT

    stream = io.StringIO()
    run_with_progress(
        None, make_config(no_fun=True), "list", stream=stream, generate=slow, phase_interval=0.0
    )
    frames = _frames(stream.getvalue())
    assert frames
    assert all(frame.endswith(f"{PLAIN_PHASE}...") for frame in frames)


def test_worker_receives_client_config_and_prompt(make_config) -> None:
    received = []
    sentinel_client = object()
    config = make_config()

    def capture(client, cfg, prompt):
        received.append((client, cfg, prompt))
        return OUTPUT

    run_with_progress(sentinel_client, config, "find big files", stream=io.StringIO(), generate=capture)
    assert received == [(sentinel_client, config, "find big files")]
