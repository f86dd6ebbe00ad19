from grpcerr.testkit.fixtures import (  # noqa: F401
    async_servicer_context,
    capturing_logger,
    servicer_context,
)
