from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LoggerPort(Protocol):
    """
    Minimal structured logger port. Accepts a message and optional contextual fields.
    Components of grpcerr only log through a port handed to them explicitly.
    """

    def debug(self, msg: str, **fields: Any) -> None: ...
    def info(self, msg: str, **fields: Any) -> None: ...
    def warning(self, msg: str, **fields: Any) -> None: ...
    def error(self, msg: str, **fields: Any) -> None: ...
