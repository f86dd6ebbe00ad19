from __future__ import annotations

import grpc
from google.protobuf import any_pb2
from google.rpc import error_details_pb2, status_pb2

from grpcerr import fmt
from grpcerr.chain import is_
from grpcerr.compose import ChainConfig, errorf
from grpcerr.errors import CodedError
from grpcerr.status import Status, code_of, from_error

INVALID = grpc.StatusCode.INVALID_ARGUMENT


def test_wrapping_mimics_fmt_and_retains_code():
    err = CodedError.from_message(INVALID, "place id is invalid")
    wrapped = errorf("failed to parse place name, %w", err)
    regular = fmt.errorf("failed to parse place name, %w", err)

    assert str(wrapped) == "failed to parse place name, place id is invalid"
    assert str(wrapped) == str(regular)
    st = from_error(wrapped)
    assert st is not None
    assert st.code is INVALID
    assert from_error(regular) is None


def test_code_survives_repeated_wrapping():
    base = CodedError.from_message(grpc.StatusCode.NOT_FOUND, "no such place")
    err = errorf("handler: %w", errorf("service: %w", errorf("repo: %w", base)))
    assert str(err) == "handler: service: repo: no such place"
    assert code_of(err) is grpc.StatusCode.NOT_FOUND
    assert is_(err, base)


def test_plain_cause_yields_unknown():
    err = errorf("context: %w", fmt.new("boom"))
    assert isinstance(err, CodedError)
    assert err.code is grpc.StatusCode.UNKNOWN
    assert err.details == ()
    assert str(err) == "context: boom"


def test_without_wrap_verb_returns_formatted_error():
    cause = CodedError.from_message(INVALID, "bad")
    err = errorf("context: %v", cause)
    assert not isinstance(err, CodedError)
    assert isinstance(err, fmt.MessageError)
    assert str(err) == "context: bad"
    assert code_of(err) is grpc.StatusCode.UNKNOWN


def test_multiple_wrap_verbs_return_formatted_error():
    a = CodedError.from_message(INVALID, "a")
    b = CodedError.from_message(grpc.StatusCode.NOT_FOUND, "b")
    err = errorf("%w and %w", a, b)
    assert isinstance(err, fmt.JoinedWrapError)
    assert str(err) == "a and b"
    assert is_(err, a) and is_(err, b)


def test_details_are_carried_forward():
    info = error_details_pb2.ErrorInfo(reason="PLACE_ID")
    base = CodedError.from_message(INVALID, "place id is invalid", details=[info])
    err = errorf("parse: %w", base)
    assert isinstance(err, CodedError)
    assert list(err.details) == [info]
    assert err.grpc_status().details() == [info]


def test_undecodable_details_are_filtered_out():
    info = error_details_pb2.ErrorInfo(reason="KEEP")
    good = any_pb2.Any()
    good.Pack(info)
    bad = any_pb2.Any(type_url="type.googleapis.com/does.not.Exist", value=b"\x08\x01")
    proto = status_pb2.Status(code=INVALID.value[0], message="mixed", details=[good, bad])
    carrier = Status.from_proto(proto).err()

    assert len(Status.from_proto(proto).details()) == 2
    err = errorf("ctx: %w", carrier)
    assert isinstance(err, CodedError)
    assert err.code is INVALID
    assert list(err.details) == [info]


def test_status_error_is_recognized():
    carrier = Status.new(grpc.StatusCode.PERMISSION_DENIED, "nope").err()
    err = errorf("ctx: %w", carrier)
    assert code_of(err) is grpc.StatusCode.PERMISSION_DENIED


def test_shallow_search_loses_code_behind_plain_wraps():
    base = CodedError.from_message(INVALID, "bad")
    err = errorf("outer: %w", fmt.errorf("middle: %w", base))
    assert isinstance(err, CodedError)
    assert err.code is grpc.StatusCode.UNKNOWN


def test_deep_search_finds_code_behind_plain_wraps():
    info = error_details_pb2.ErrorInfo(reason="DEEP")
    base = CodedError.from_message(INVALID, "bad", details=[info])
    err = errorf(
        "outer: %w", fmt.errorf("middle: %w", base), config=ChainConfig(deep=True)
    )
    assert isinstance(err, CodedError)
    assert err.code is INVALID
    assert list(err.details) == [info]
    assert str(err) == "outer: middle: bad"


def test_deep_search_follows_native_chaining():
    base = CodedError.from_message(grpc.StatusCode.NOT_FOUND, "gone")
    try:
        try:
            raise base
        except CodedError as exc:
            raise RuntimeError("lookup failed") from exc
    except RuntimeError as exc:
        native = exc

    assert errorf("ctx: %w", native).code is grpc.StatusCode.UNKNOWN
    deep = errorf("ctx: %w", native, config=ChainConfig(deep=True))
    assert deep.code is grpc.StatusCode.NOT_FOUND
