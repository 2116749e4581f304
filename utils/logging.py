"""
Console logging setup for the runner scripts.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers; the scripts call :func:`get_logger` once to route the
``vertex_sampler`` messages to the console.
"""
from __future__ import annotations

import logging


def get_logger(name: str = "vertex_sampler", level: int = logging.INFO) -> logging.Logger:
    """
    Return a configured logger with concise formatter.

    Idempotent: installs at most one StreamHandler marked by _vertex_sampler_handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(int(level))
    logger.propagate = False  # avoid duplicate logs through root

    handler = next(
        (h for h in logger.handlers if getattr(h, "_vertex_sampler_handler", False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler._vertex_sampler_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(name)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        ))
        logger.addHandler(handler)
    handler.setLevel(int(level))
    return logger


__all__ = ["get_logger"]
