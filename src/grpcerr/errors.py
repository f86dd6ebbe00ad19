from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import grpc

from .fmt import MessageError
from .ports import LoggerPort
from .status import Code, Status, StatusDetailsError, to_status_code


@dataclass(eq=False)
class CodedError(Exception):
    """
    Error decorated with a gRPC status `code` and optional protobuf `details`.

    Renders exactly like its `cause`; the code only surfaces through
    `grpc_status()`, so it is kept out of logs but recovered by the RPC layer
    however deeply the error ends up wrapped:

        err = CodedError.from_message(grpc.StatusCode.INVALID_ARGUMENT, "place id is invalid")
        str(err)                  # "place id is invalid"
        err.grpc_status().code    # StatusCode.INVALID_ARGUMENT
    """

    code: grpc.StatusCode
    cause: BaseException
    details: Sequence[Any] = field(default=())

    def __post_init__(self) -> None:
        self.code = to_status_code(self.code)
        self.details = tuple(self.details)
        self.__cause__ = self.cause

    @classmethod
    def from_message(
        cls, code: Code, message: str, details: Sequence[Any] = ()
    ) -> "CodedError":
        return cls(code, MessageError(message), details)  # type: ignore[arg-type]

    def __str__(self) -> str:
        return str(self.cause)

    def unwrap(self) -> Optional[BaseException]:
        return self.cause

    def __reduce__(self) -> Any:
        return (type(self), (self.code, self.cause, tuple(self.details)))

    def grpc_status(self, logger: Optional[LoggerPort] = None) -> Status:
        """
        Status built from the code and the rendered cause, with details attached.
        If the details cannot be attached the status is returned without them.
        """
        st = Status.new(self.code, str(self.cause))
        if not self.details:
            return st
        try:
            return st.with_details(*self.details)
        except StatusDetailsError as exc:
            if logger is not None:
                logger.warning(
                    "dropping status details",
                    code=self.code.name,
                    details=len(self.details),
                    error=str(exc),
                )
            return st


__all__ = ["CodedError"]
