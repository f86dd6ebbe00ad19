from .chain import Unwrapper, as_, is_, unwrap, walk
from .compose import ChainConfig, errorf
from .errors import CodedError
from .fmt import JoinedWrapError, MessageError, WrapError, new
from .interceptor import AsyncStatusInterceptor, StatusInterceptor
from .status import (
    DetailDecodeError,
    Status,
    StatusDetailsError,
    StatusError,
    code_of,
    convert,
    find_status,
    from_error,
)

__all__ = [
    "CodedError",
    "errorf",
    "ChainConfig",
    "new",
    "MessageError",
    "WrapError",
    "JoinedWrapError",
    "Status",
    "StatusError",
    "StatusDetailsError",
    "DetailDecodeError",
    "from_error",
    "find_status",
    "code_of",
    "convert",
    "Unwrapper",
    "unwrap",
    "walk",
    "is_",
    "as_",
    "StatusInterceptor",
    "AsyncStatusInterceptor",
]
