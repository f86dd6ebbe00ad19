from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import grpc
import grpc.aio
from google.protobuf import any_pb2, descriptor_pool, message_factory
from google.protobuf import message as pb_message
from google.rpc import status_pb2
from grpc_status import rpc_status

from .chain import walk

Code = Union[grpc.StatusCode, int]

DETAILS_METADATA_KEY = "grpc-status-details-bin"

_BY_NUMBER: Dict[int, grpc.StatusCode] = {c.value[0]: c for c in grpc.StatusCode}


def to_status_code(code: Code) -> grpc.StatusCode:
    """Normalize a code; unknown numbers map to UNKNOWN."""
    if isinstance(code, grpc.StatusCode):
        return code
    return _BY_NUMBER.get(int(code), grpc.StatusCode.UNKNOWN)


class StatusDetailsError(Exception):
    """Details could not be attached to a status."""


class DetailDecodeError(Exception):
    """
    A packed detail whose type is unknown or whose payload does not decode.
    Appears as an entry of `Status.details()`; never raised by this package.
    """

    def __init__(self, type_url: str, reason: str) -> None:
        super().__init__(f"cannot decode detail {type_url!r}: {reason}")
        self.type_url = type_url
        self.reason = reason

    def __reduce__(self) -> Any:
        return (type(self), (self.type_url, self.reason))


class Status:
    """
    Immutable view over a `google.rpc.Status` message.

    Usage:

        st = Status.new(grpc.StatusCode.NOT_FOUND, "place not found")
        st = st.with_details(error_details_pb2.ResourceInfo(resource_name="p1"))
        context.abort_with_status(st.to_rpc_status())
    """

    __slots__ = ("_proto",)

    def __init__(self, proto: status_pb2.Status) -> None:
        self._proto = status_pb2.Status()
        self._proto.CopyFrom(proto)

    @classmethod
    def new(cls, code: Code, message: str) -> "Status":
        return cls(
            status_pb2.Status(code=to_status_code(code).value[0], message=message)
        )

    @classmethod
    def from_proto(cls, proto: status_pb2.Status) -> "Status":
        return cls(proto)

    @property
    def code(self) -> grpc.StatusCode:
        return to_status_code(self._proto.code)

    @property
    def message(self) -> str:
        return self._proto.message

    def proto(self) -> status_pb2.Status:
        out = status_pb2.Status()
        out.CopyFrom(self._proto)
        return out

    def details(self) -> List[Any]:
        """
        Decoded detail messages, in order. Entries that cannot be decoded are
        returned as `DetailDecodeError` instances in their place.
        """
        pool = descriptor_pool.Default()
        out: List[Any] = []
        for packed in self._proto.details:
            try:
                desc = pool.FindMessageTypeByName(packed.TypeName())
            except KeyError:
                out.append(DetailDecodeError(packed.type_url, "unknown message type"))
                continue
            msg = message_factory.GetMessageClass(desc)()
            try:
                ok = packed.Unpack(msg)
            except pb_message.DecodeError as exc:
                out.append(DetailDecodeError(packed.type_url, str(exc)))
                continue
            if not ok:
                out.append(DetailDecodeError(packed.type_url, "type mismatch"))
                continue
            out.append(msg)
        return out

    def with_details(self, *details: Any) -> "Status":
        """
        Return a copy with `details` appended. Raises StatusDetailsError if the
        code is OK or a detail is not an encodable protobuf message.
        """
        if self.code is grpc.StatusCode.OK:
            raise StatusDetailsError("no error details for status with code OK")
        proto = self.proto()
        for detail in details:
            if not isinstance(detail, pb_message.Message):
                raise StatusDetailsError(
                    f"detail of type {type(detail).__name__} is not a protobuf message"
                )
            packed = any_pb2.Any()
            try:
                packed.Pack(detail)
            except pb_message.EncodeError as exc:
                raise StatusDetailsError(str(exc)) from exc
            proto.details.append(packed)
        return Status(proto)

    def with_message(self, msg: str) -> "Status":
        proto = self.proto()
        proto.message = msg
        return Status(proto)

    def err(self) -> Optional["StatusError"]:
        """The status as a raisable error; None for OK."""
        if self.code is grpc.StatusCode.OK:
            return None
        return StatusError(self)

    def to_rpc_status(self) -> grpc.Status:
        """`grpc.Status` for `context.abort_with_status`, details in the trailer."""
        return rpc_status.to_status(self._proto)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Status):
            return NotImplemented
        return self._proto == other._proto

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self) -> Any:
        return (type(self), (self._proto,))

    def __repr__(self) -> str:
        return (
            f"Status(code={self.code.name}, message={self.message!r}, "
            f"details={len(self._proto.details)})"
        )


class StatusError(Exception):
    """Error carrying a Status, e.g. from `Status.err()`."""

    def __init__(self, status: Status) -> None:
        super().__init__(status.message)
        self.status = status

    def __str__(self) -> str:
        return f"rpc error: code = {self.status.code.name} desc = {self.status.message}"

    def grpc_status(self) -> Status:
        return self.status

    def __reduce__(self) -> Any:
        return (type(self), (self.status,))


def from_error(err: Optional[BaseException]) -> Optional[Status]:
    """
    Recognize a status carried by `err` itself (no chain walk).

    - objects exposing `grpc_status()` (CodedError, StatusError, ...)
    - `grpc.RpcError` raised by a client call (sync or grpc.aio), including
      rich details sent in the `grpc-status-details-bin` trailer
    """
    if err is None:
        return None
    carrier = getattr(err, "grpc_status", None)
    if callable(carrier):
        st = carrier()
        if isinstance(st, Status):
            return st
    if isinstance(err, grpc.RpcError) and isinstance(
        err, (grpc.Call, grpc.aio.AioRpcError)
    ):
        return _from_rpc_error(err)
    return None


def _from_rpc_error(err: Any) -> Status:
    """
    Status of a failed client call (sync or grpc.aio). The rich status in the
    trailer is used only when it agrees with the call's own code and message;
    otherwise the call's code and message win and the details are dropped.
    """
    code = to_status_code(err.code())
    message = err.details() or ""
    for key, value in err.trailing_metadata() or ():
        if key != DETAILS_METADATA_KEY:
            continue
        try:
            rich = status_pb2.Status.FromString(value)
        except pb_message.DecodeError:
            break
        if rich.code == code.value[0] and rich.message == message:
            return Status(rich)
        break
    return Status.new(code, message)


def find_status(err: Optional[BaseException]) -> Optional[Status]:
    """
    Walk the chain of `err` and return the first recognized status.
    A status found below the top keeps its code and details but takes the
    full text of `err` as its message.
    """
    for cur in walk(err):
        st = from_error(cur)
        if st is None:
            continue
        if cur is err:
            return st
        return st.with_message(str(err))
    return None


def code_of(err: Optional[BaseException]) -> grpc.StatusCode:
    if err is None:
        return grpc.StatusCode.OK
    st = find_status(err)
    return grpc.StatusCode.UNKNOWN if st is None else st.code


def convert(err: BaseException) -> Status:
    """Status for any error; UNKNOWN with the error text if nothing is carried."""
    st = find_status(err)
    if st is None:
        return Status.new(grpc.StatusCode.UNKNOWN, str(err))
    return st


__all__ = [
    "Code",
    "Status",
    "StatusError",
    "StatusDetailsError",
    "DetailDecodeError",
    "to_status_code",
    "from_error",
    "find_status",
    "code_of",
    "convert",
]
