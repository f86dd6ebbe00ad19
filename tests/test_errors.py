from __future__ import annotations

import pickle

import grpc
import pytest
from google.rpc import error_details_pb2

from grpcerr import fmt
from grpcerr.chain import is_, unwrap
from grpcerr.compose import errorf
from grpcerr.errors import CodedError
from grpcerr.status import code_of, from_error

INVALID = grpc.StatusCode.INVALID_ARGUMENT


def test_code_is_omitted_from_str():
    errstr = "place id is invalid"
    err = CodedError(INVALID, fmt.new(errstr))
    assert str(err) == errstr


def test_from_message_builds_leaf():
    err = CodedError.from_message(INVALID, "place id is invalid")
    assert str(err) == "place id is invalid"
    assert isinstance(err.cause, fmt.MessageError)
    assert err.details == ()


def test_code_can_be_parsed_from_error():
    err = CodedError(INVALID, fmt.new("place id is invalid"))
    st = from_error(err)
    assert st is not None
    assert st.code is INVALID
    assert st.message == "place id is invalid"
    assert code_of(err) is INVALID


def test_int_codes_are_normalized():
    assert CodedError.from_message(5, "x").code is grpc.StatusCode.NOT_FOUND
    assert CodedError.from_message(999, "x").code is grpc.StatusCode.UNKNOWN


def test_nested_coded_errors_render_as_innermost_text():
    inner = CodedError.from_message(INVALID, "bad id")
    outer = CodedError(grpc.StatusCode.NOT_FOUND, CodedError(INVALID, inner))
    assert str(outer) == "bad id"


def test_unwrap_returns_cause_and_sets_native_cause():
    leaf = fmt.new("boom")
    err = CodedError(INVALID, leaf)
    assert unwrap(err) is leaf
    assert err.__cause__ is leaf


def test_regular_wrap_keeps_identity():
    base = CodedError.from_message(INVALID, "place id is invalid")
    wrapped = fmt.errorf("failed to parse place name, %w", base)
    assert is_(wrapped, base)


def test_raise_and_catch():
    with pytest.raises(CodedError) as ei:
        raise CodedError.from_message(grpc.StatusCode.NOT_FOUND, "gone")
    assert ei.value.code is grpc.StatusCode.NOT_FOUND
    assert str(ei.value) == "gone"


def test_grpc_status_carries_details():
    info = error_details_pb2.ErrorInfo(reason="PLACE_ID", domain="places.example.com")
    err = CodedError.from_message(INVALID, "place id is invalid", details=[info])
    st = err.grpc_status()
    assert st.code is INVALID
    assert st.message == "place id is invalid"
    assert st.details() == [info]


def test_grpc_status_drops_unencodable_details(capturing_logger):
    err = CodedError.from_message(INVALID, "bad", details=["not a message"])
    st = err.grpc_status(logger=capturing_logger)
    assert st.code is INVALID
    assert st.message == "bad"
    assert st.details() == []
    rec = capturing_logger.records[-1]
    assert rec["level"] == "warning"
    assert rec["code"] == "INVALID_ARGUMENT"


def test_grpc_status_ok_code_cannot_carry_details():
    info = error_details_pb2.ErrorInfo(reason="X")
    err = CodedError.from_message(grpc.StatusCode.OK, "fine", details=[info])
    st = err.grpc_status()
    assert st.code is grpc.StatusCode.OK
    assert st.details() == []


def test_details_are_stored_as_tuple():
    info = error_details_pb2.ErrorInfo(reason="X")
    details = [info]
    err = CodedError.from_message(INVALID, "bad", details=details)
    details.append(error_details_pb2.ErrorInfo(reason="Y"))
    assert err.details == (info,)


def test_details_assigned_after_construction_are_carried():
    info = error_details_pb2.ErrorInfo(reason="PLACE_ID")
    err = CodedError.from_message(INVALID, "place id is invalid")
    err.details = [info]

    assert err.grpc_status().details() == [info]
    wrapped = errorf("failed to parse place name, %w", err)
    assert isinstance(wrapped, CodedError)
    assert wrapped.code is INVALID
    assert list(wrapped.details) == [info]


def test_coded_error_pickles():
    info = error_details_pb2.ErrorInfo(reason="PLACE_ID")
    base = CodedError.from_message(INVALID, "place id is invalid", details=[info])
    err = errorf("failed to parse place name, %w", base)

    restored = pickle.loads(pickle.dumps(err))
    assert isinstance(restored, CodedError)
    assert str(restored) == "failed to parse place name, place id is invalid"
    assert restored.code is INVALID
    assert list(restored.details) == [info]
    assert code_of(restored) is INVALID
    assert isinstance(unwrap(restored), fmt.WrapError)
