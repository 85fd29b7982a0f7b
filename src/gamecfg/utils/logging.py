"""Structured logging setup for the config editor.

structlog renders records emitted through plain ``logging.getLogger``
calls, so library modules never import structlog themselves.  Console
output is human-readable by default; ``log_json=True`` switches to one
JSON object per line, which is what the CLI uses when piped.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

ROOT_LOGGER = "gamecfg"


def _processors(log_json: bool) -> list:
    chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_json:
        # ConsoleRenderer formats tracebacks itself
        chain.append(structlog.processors.format_exc_info)
    return chain


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_json: bool = False,
) -> None:
    """Attach console (and optionally file) handlers to the ``gamecfg`` logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.  Parent directories are created.
        log_json: Render lines as JSON instead of the console format.

    Calling this again replaces the previous handlers.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))

    structlog.configure(
        processors=[
            *_processors(log_json),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_processors(log_json),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root = logging.getLogger(ROOT_LOGGER)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(numeric_level)
    for h in handlers:
        h.setLevel(numeric_level)
        h.setFormatter(formatter)
        root.addHandler(h)
    root.propagate = False
