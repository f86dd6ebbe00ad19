"""
Pytest fixtures for the grpcerr TestKit.

Usage:
    # conftest.py
    from grpcerr.testkit.fixtures import (
        capturing_logger,
        servicer_context,
        async_servicer_context,
    )

    def test_example(servicer_context, capturing_logger):
        handler = wrap_with_interceptor(...)
        with pytest.raises(AbortedRpc):
            handler(request, servicer_context)
        assert servicer_context.code is grpc.StatusCode.NOT_FOUND

Fixtures:
- capturing_logger: CapturingLogger
- servicer_context: FakeServicerContext
- async_servicer_context: FakeAsyncServicerContext
"""

from __future__ import annotations

import pytest

from grpcerr.testkit import (
    CapturingLogger,
    FakeAsyncServicerContext,
    FakeServicerContext,
)


@pytest.fixture
def capturing_logger() -> CapturingLogger:
    """Logger that records log entries for assertions."""
    return CapturingLogger()


@pytest.fixture
def servicer_context() -> FakeServicerContext:
    """Sync servicer context recording aborts."""
    return FakeServicerContext()


@pytest.fixture
def async_servicer_context() -> FakeAsyncServicerContext:
    """grpc.aio servicer context recording aborts and writes."""
    return FakeAsyncServicerContext()


__all__ = [
    "capturing_logger",
    "servicer_context",
    "async_servicer_context",
]
