from .adapter import (
    DEFAULT_ERROR_TABLE,
    ErrorMapping,
    default_error_mapper,
    install_error_handlers,
    status_response,
)

__all__ = [
    "install_error_handlers",
    "default_error_mapper",
    "status_response",
    "ErrorMapping",
    "DEFAULT_ERROR_TABLE",
]
