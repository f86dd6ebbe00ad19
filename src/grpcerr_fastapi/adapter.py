from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type

import grpc
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from google.protobuf import json_format
from google.protobuf import message as pb_message
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_501_NOT_IMPLEMENTED,
    HTTP_503_SERVICE_UNAVAILABLE,
    HTTP_504_GATEWAY_TIMEOUT,
)

from grpcerr.errors import CodedError
from grpcerr.fmt import JoinedWrapError, WrapError
from grpcerr.ports import LoggerPort
from grpcerr.status import Status, StatusError, convert

# nginx's "client closed request"; starlette has no constant for it
HTTP_499_CLIENT_CLOSED_REQUEST = 499

ErrorMapper = Callable[[BaseException], JSONResponse]


@dataclass
class ErrorMapping:
    status_code: int
    code: Optional[str] = None


# Same table as grpc-gateway's HTTPStatusFromCode.
DEFAULT_ERROR_TABLE: Dict[grpc.StatusCode, ErrorMapping] = {
    grpc.StatusCode.OK: ErrorMapping(HTTP_200_OK),
    grpc.StatusCode.CANCELLED: ErrorMapping(HTTP_499_CLIENT_CLOSED_REQUEST),
    grpc.StatusCode.UNKNOWN: ErrorMapping(HTTP_500_INTERNAL_SERVER_ERROR),
    grpc.StatusCode.INVALID_ARGUMENT: ErrorMapping(HTTP_400_BAD_REQUEST),
    grpc.StatusCode.DEADLINE_EXCEEDED: ErrorMapping(HTTP_504_GATEWAY_TIMEOUT),
    grpc.StatusCode.NOT_FOUND: ErrorMapping(HTTP_404_NOT_FOUND),
    grpc.StatusCode.ALREADY_EXISTS: ErrorMapping(HTTP_409_CONFLICT),
    grpc.StatusCode.PERMISSION_DENIED: ErrorMapping(HTTP_403_FORBIDDEN),
    grpc.StatusCode.UNAUTHENTICATED: ErrorMapping(HTTP_401_UNAUTHORIZED),
    grpc.StatusCode.RESOURCE_EXHAUSTED: ErrorMapping(HTTP_429_TOO_MANY_REQUESTS),
    grpc.StatusCode.FAILED_PRECONDITION: ErrorMapping(HTTP_400_BAD_REQUEST),
    grpc.StatusCode.ABORTED: ErrorMapping(HTTP_409_CONFLICT),
    grpc.StatusCode.OUT_OF_RANGE: ErrorMapping(HTTP_400_BAD_REQUEST),
    grpc.StatusCode.UNIMPLEMENTED: ErrorMapping(HTTP_501_NOT_IMPLEMENTED),
    grpc.StatusCode.INTERNAL: ErrorMapping(HTTP_500_INTERNAL_SERVER_ERROR),
    grpc.StatusCode.UNAVAILABLE: ErrorMapping(HTTP_503_SERVICE_UNAVAILABLE),
    grpc.StatusCode.DATA_LOSS: ErrorMapping(HTTP_500_INTERNAL_SERVER_ERROR),
}

DEFAULT_EXCEPTION_TYPES: Sequence[Type[BaseException]] = (
    CodedError,
    StatusError,
    WrapError,
    JoinedWrapError,
)


def details_payload(st: Status) -> List[Dict[str, Any]]:
    """
    JSON form of the decodable details, each tagged with its "@type" URL the
    way google.protobuf.Any renders in JSON.
    """
    out: List[Dict[str, Any]] = []
    for detail in st.details():
        if not isinstance(detail, pb_message.Message):
            continue
        body = json_format.MessageToDict(detail)
        out.append(
            {"@type": f"type.googleapis.com/{detail.DESCRIPTOR.full_name}", **body}
        )
    return out


def status_response(
    st: Status,
    table: Mapping[grpc.StatusCode, ErrorMapping] = DEFAULT_ERROR_TABLE,
) -> JSONResponse:
    mapping = table.get(st.code) or ErrorMapping(HTTP_500_INTERNAL_SERVER_ERROR)
    payload = {
        "error": {
            "code": mapping.code or st.code.name,
            "message": st.message,
            "details": details_payload(st),
        }
    }
    return JSONResponse(status_code=mapping.status_code, content=payload)


def default_error_mapper(err: BaseException) -> JSONResponse:
    """
    Map any error to a JSON response using the status its chain carries
    (UNKNOWN -> 500 when it carries none).
    """
    return status_response(convert(err))


def install_error_handlers(
    app: FastAPI,
    *,
    error_mapper: ErrorMapper = default_error_mapper,
    exception_types: Sequence[Type[BaseException]] = DEFAULT_EXCEPTION_TYPES,
    logger: Optional[LoggerPort] = None,
) -> FastAPI:
    """
    Register exception handlers so route code can raise coded errors, or
    errors wrapping them, and have the code decide the HTTP response.

        app = FastAPI()
        install_error_handlers(app)

        @app.get("/places/{place_id}")
        def get_place(place_id: str):
            raise errorf("failed to load place, %w", CodedError.from_message(
                grpc.StatusCode.NOT_FOUND, f"no place {place_id}"))
    """

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        response = error_mapper(exc)
        if logger is not None:
            logger.info(
                "request failed",
                path=request.url.path,
                status_code=response.status_code,
                error=str(exc),
            )
        return response

    for etype in exception_types:
        app.add_exception_handler(etype, handler)
    return app
