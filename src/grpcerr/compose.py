from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import grpc
from google.protobuf import message as pb_message

from . import fmt
from .chain import unwrap
from .errors import CodedError
from .status import Status, find_status, from_error


@dataclass(frozen=True)
class ChainConfig:
    """
    How `errorf` looks for a code beneath the newly wrapped error.

    deep=False inspects only the error the new wrap points at. An error
    wrapped twice by plain formatting loses its code at the next `errorf`.
    deep=True walks the whole chain below the wrap and uses the first status
    it finds.
    """

    deep: bool = False


DEFAULT_CONFIG = ChainConfig()


def _lookup(inner: BaseException, config: ChainConfig) -> Optional[Status]:
    if config.deep:
        return find_status(inner)
    return from_error(inner)


def _message_details(st: Status) -> Tuple[pb_message.Message, ...]:
    # undecodable entries come back as exceptions and are dropped
    kept: List[pb_message.Message] = []
    for detail in st.details():
        if isinstance(detail, BaseException):
            continue
        if isinstance(detail, pb_message.Message):
            kept.append(detail)
    return tuple(kept)


def errorf(
    template: str, *args: Any, config: ChainConfig = DEFAULT_CONFIG
) -> Exception:
    """
    Format an error like `fmt.errorf` and carry the status code of the error
    wrapped with `%w` up to the new error:

        base = CodedError.from_message(grpc.StatusCode.INVALID_ARGUMENT, "place id is invalid")
        err = errorf("failed to parse place name, %w", base)
        str(err)        # "failed to parse place name, place id is invalid"
        code_of(err)    # StatusCode.INVALID_ARGUMENT

    Without a single `%w` target the formatted error is returned unchanged.
    If the target carries no status the result is a CodedError with UNKNOWN.
    """
    formatted = fmt.errorf(template, *args)
    inner = unwrap(formatted)
    if inner is None:
        return formatted

    code = grpc.StatusCode.UNKNOWN
    details: Tuple[Any, ...] = ()
    st = _lookup(inner, config)
    if st is not None:
        code = st.code
        details = _message_details(st)
    return CodedError(code, formatted, details)


__all__ = ["ChainConfig", "DEFAULT_CONFIG", "errorf"]
