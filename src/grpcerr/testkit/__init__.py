from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import grpc

from ..ports import LoggerPort


class CapturingLogger(LoggerPort):
    """
    Test logger that captures log records for assertions.
    """

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []

    def _push(self, level: str, msg: str, **fields: Any) -> None:
        rec = {"level": level, "msg": msg, **fields}
        self.records.append(rec)

    def debug(self, msg: str, **fields: Any) -> None:
        self._push("debug", msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._push("info", msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._push("warning", msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._push("error", msg, **fields)


class AbortedRpc(Exception):
    """Raised by the fake contexts when a handler aborts, like grpc does."""

    def __init__(self, code: grpc.StatusCode, details: str) -> None:
        super().__init__(f"{code.name}: {details}")
        self.code = code
        self.details = details


@dataclass
class FakeServicerContext:
    """
    Stand-in for `grpc.ServicerContext` recording how a handler ended the RPC.
    Only the abort surface is implemented.
    """

    code: Optional[grpc.StatusCode] = None
    details: Optional[str] = None
    trailing_metadata: Tuple[Tuple[str, Any], ...] = ()

    def abort(self, code: grpc.StatusCode, details: str) -> None:
        self.code = code
        self.details = details
        raise AbortedRpc(code, details)

    def abort_with_status(self, status: grpc.Status) -> None:
        self.trailing_metadata = tuple(status.trailing_metadata or ())
        self.abort(status.code, status.details)

    @property
    def aborted(self) -> bool:
        return self.code is not None

    def metadata_value(self, key: str) -> Any:
        for k, v in self.trailing_metadata:
            if k == key:
                return v
        return None


@dataclass
class FakeAsyncServicerContext:
    """
    Stand-in for `grpc.aio.ServicerContext`; `abort` is a coroutine.
    """

    code: Optional[grpc.StatusCode] = None
    details: Optional[str] = None
    trailing_metadata: Tuple[Tuple[str, Any], ...] = ()
    written: List[Any] = field(default_factory=list)

    async def abort(
        self,
        code: grpc.StatusCode,
        details: str = "",
        trailing_metadata: Sequence[Tuple[str, Any]] = (),
    ) -> None:
        self.code = code
        self.details = details
        self.trailing_metadata = tuple(trailing_metadata or ())
        raise AbortedRpc(code, details)

    async def write(self, message: Any) -> None:
        self.written.append(message)

    @property
    def aborted(self) -> bool:
        return self.code is not None

    def metadata_value(self, key: str) -> Any:
        for k, v in self.trailing_metadata:
            if k == key:
                return v
        return None


__all__ = [
    "CapturingLogger",
    "AbortedRpc",
    "FakeServicerContext",
    "FakeAsyncServicerContext",
]
