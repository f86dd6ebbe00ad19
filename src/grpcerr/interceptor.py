from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

import grpc
import grpc.aio

from .ports import LoggerPort
from .status import Status, find_status

Behavior = Callable[..., Any]
Wrap = Callable[[Behavior], Behavior]


def _rebuild(
    handler: grpc.RpcMethodHandler, unary: Wrap, streaming: Wrap
) -> grpc.RpcMethodHandler:
    """Same method handler with its behavior wrapped."""
    kw = dict(
        request_deserializer=handler.request_deserializer,
        response_serializer=handler.response_serializer,
    )
    if handler.unary_unary is not None:
        return grpc.unary_unary_rpc_method_handler(unary(handler.unary_unary), **kw)
    if handler.unary_stream is not None:
        return grpc.unary_stream_rpc_method_handler(
            streaming(handler.unary_stream), **kw
        )
    if handler.stream_unary is not None:
        return grpc.stream_unary_rpc_method_handler(unary(handler.stream_unary), **kw)
    if handler.stream_stream is not None:
        return grpc.stream_stream_rpc_method_handler(
            streaming(handler.stream_stream), **kw
        )
    return handler


class _Reporting:
    def __init__(self, logger: Optional[LoggerPort] = None) -> None:
        self._logger = logger

    def _report(self, method: str, st: Status) -> None:
        if self._logger is not None:
            self._logger.info(
                "rpc failed with carried status",
                method=method,
                code=st.code.name,
                message=st.message,
            )


class StatusInterceptor(_Reporting, grpc.ServerInterceptor):
    """
    Server interceptor for `grpc.server`.

    Exceptions raised by a handler whose chain carries a status (CodedError,
    StatusError, a failed downstream call) abort the RPC with that status,
    details included in the `grpc-status-details-bin` trailer. Any other
    exception propagates and grpc reports it as UNKNOWN.

        server = grpc.server(executor, interceptors=[StatusInterceptor()])
    """

    def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], Optional[grpc.RpcMethodHandler]],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> Optional[grpc.RpcMethodHandler]:
        handler = continuation(handler_call_details)
        if handler is None:
            return None
        method = handler_call_details.method
        return _rebuild(
            handler,
            lambda b: self._unary(b, method),
            lambda b: self._streaming(b, method),
        )

    def _abort(self, context: grpc.ServicerContext, method: str, st: Status) -> None:
        self._report(method, st)
        context.abort_with_status(st.to_rpc_status())

    def _unary(self, behavior: Behavior, method: str) -> Behavior:
        def wrapper(request: Any, context: grpc.ServicerContext) -> Any:
            try:
                return behavior(request, context)
            except Exception as exc:
                st = find_status(exc)
                if st is None:
                    raise
                self._abort(context, method, st)
                raise

        return wrapper

    def _streaming(self, behavior: Behavior, method: str) -> Behavior:
        def wrapper(request: Any, context: grpc.ServicerContext) -> Any:
            try:
                yield from behavior(request, context)
            except Exception as exc:
                st = find_status(exc)
                if st is None:
                    raise
                self._abort(context, method, st)
                raise

        return wrapper


class AsyncStatusInterceptor(_Reporting, grpc.aio.ServerInterceptor):
    """
    Async counterpart of StatusInterceptor for `grpc.aio.server`.
    """

    async def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], Any],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> Optional[grpc.RpcMethodHandler]:
        handler = await continuation(handler_call_details)
        if handler is None:
            return None
        method = handler_call_details.method
        return _rebuild(
            handler,
            lambda b: self._unary(b, method),
            lambda b: self._streaming(b, method),
        )

    async def _abort(
        self, context: grpc.aio.ServicerContext, method: str, st: Status
    ) -> None:
        self._report(method, st)
        await context.abort(
            st.code,
            st.message,
            trailing_metadata=st.to_rpc_status().trailing_metadata,
        )

    def _unary(self, behavior: Behavior, method: str) -> Behavior:
        async def wrapper(request: Any, context: grpc.aio.ServicerContext) -> Any:
            try:
                return await behavior(request, context)
            except Exception as exc:
                st = find_status(exc)
                if st is None:
                    raise
                await self._abort(context, method, st)
                raise

        return wrapper

    def _streaming(self, behavior: Behavior, method: str) -> Behavior:
        # handlers may also be plain coroutines writing through context.write
        if not inspect.isasyncgenfunction(behavior):
            return self._unary(behavior, method)

        async def wrapper(request: Any, context: grpc.aio.ServicerContext) -> Any:
            try:
                async for response in behavior(request, context):
                    yield response
            except Exception as exc:
                st = find_status(exc)
                if st is None:
                    raise
                await self._abort(context, method, st)
                raise

        return wrapper


__all__ = ["StatusInterceptor", "AsyncStatusInterceptor"]
