"""Console and log output with simple `{}` templates."""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Sequence
from datetime import datetime, timezone

logger = logging.getLogger("safepkt")

_PLACEHOLDER = "{}"
_HANDLER_NAME = "safepkt-json"


class TemplateError(ValueError):
    """Raised when a template's placeholders do not match its parameters."""


def render(template: str, params: Sequence[str] = ()) -> str:
    """Fill each `{}` placeholder in turn with a parameter."""
    placeholders = template.count(_PLACEHOLDER)
    if placeholders == 0:
        return template
    if placeholders != len(params):
        raise TemplateError(
            "The number of parameters should match the number of placeholders in the template"
        )
    output = template
    for param in params:
        output = output.replace(_PLACEHOLDER, str(param), 1)
    return output


def _emit(text: str, stream, no_linefeed: bool) -> None:
    stream.write(text if no_linefeed else text + "\n")
    if no_linefeed:
        stream.flush()


def print_out(template: str, params: Sequence[str] = (), no_linefeed: bool = False) -> None:
    """Print to stdout in command-line mode, otherwise log at info level."""
    text = render(template, params)
    if "CLI" not in os.environ:
        logger.info(text)
    else:
        _emit(text, sys.stdout, no_linefeed)


def print_err(template: str, params: Sequence[str] = (), no_linefeed: bool = False) -> None:
    """Print to stderr in command-line mode, otherwise log at error level."""
    text = render(template, params)
    if "CLI" not in os.environ:
        logger.error(text)
    else:
        _emit(text, sys.stderr, no_linefeed)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = {"message": record.getMessage()}
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "target": record.name,
            "fields": fields,
        }
        return json.dumps(payload)


def setup_logging() -> None:
    """Configure JSON logging at the level named by LOG_LEVEL (default info)."""
    level_name = os.environ.setdefault("LOG_LEVEL", "info")
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(_JsonFormatter())

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)