"""Verbosity-gated console output."""

from __future__ import annotations

import logging


class Logger:
    """Print progress lines only when ``verbose`` is set.

    Messages go through the stdlib ``logging`` logger called ``name``.  The
    first time a verbose ``Logger`` is created for a logger with no handlers
    of its own or on any ancestor, a console handler is attached so the output
    is visible without the application configuring logging itself.
    """

    def __init__(self, verbose: bool = False, name: str = "syftlite"):
        self.verbose = bool(verbose)
        self._logger = logging.getLogger(name)
        if self.verbose:
            self._ensure_console_handler()

    def _ensure_console_handler(self) -> None:
        if self._logger.level == logging.NOTSET or self._logger.level > logging.INFO:
            self._logger.setLevel(logging.INFO)
        # Ancestors with handlers (e.g. a configured root logger) already print.
        if self._logger.hasHandlers():
            return
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
        self._logger.addHandler(handler)

    def log(self, message: str, *args) -> None:
        if not self.verbose:
            return
        self._logger.info(message, *args)
