from __future__ import annotations

import logging
from typing import Any, Optional

from .ports import LoggerPort

LOGGER_NAME = "grpcerr"


class StdlibLogger(LoggerPort):
    """
    LoggerPort backed by the standard `logging` module.
    Structured fields travel in `extra` under the "fields" key so formatters
    can pick them up without clashing with LogRecord attributes.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(LOGGER_NAME)

    def _log(self, level: int, msg: str, fields: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if fields:
            rendered = " ".join(f"{k}={v}" for k, v in fields.items())
            msg = f"{msg} {rendered}"
        self._logger.log(level, msg, extra={"fields": fields})

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._log(logging.ERROR, msg, fields)


__all__ = ["LOGGER_NAME", "StdlibLogger"]
