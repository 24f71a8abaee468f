"""Progress and warning sink threaded through the extraction pipeline."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class Diagnostics:
    """Wraps a logger and keeps the warnings raised during one extraction.

    Pass a logger to route messages somewhere visible (the CLI does this with
    ``--debug``); the default package logger has only a NullHandler.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger
        self.warnings: list[str] = []

    def debug(self, message: str, *args) -> None:
        self.log.debug(message, *args)

    def info(self, message: str, *args) -> None:
        self.log.info(message, *args)

    def warning(self, message: str, *args) -> None:
        text = message % args if args else message
        self.warnings.append(text)
        self.log.warning(text)
