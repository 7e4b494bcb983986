import io
import logging

from baish.logging_utils import configure_logging


def test_warning_level_by_default() -> None:
    stream = io.StringIO()
    logger = configure_logging(stream=stream)
    logging.getLogger("baish.providers").debug("hidden")
    logging.getLogger("baish.providers").warning("shown")
    assert logger.level == logging.WARNING
    assert "hidden" not in stream.getvalue()
    assert "[WARNING] baish.providers: shown" in stream.getvalue()


def test_debug_and_single_handler() -> None:
    configure_logging(stream=io.StringIO())
    stream = io.StringIO()
    logger = configure_logging(debug=True, stream=stream)
    logging.getLogger("baish.normalizer").debug("parsed")
    assert len(logger.handlers) == 1
    assert not logger.propagate
    assert "[DEBUG] baish.normalizer: parsed" in stream.getvalue()
