"""Exception handler for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import VaultException

logger = logging.getLogger(__name__)


async def vault_exception_handler(request: Request, exc: VaultException) -> JSONResponse:
    """Log a VaultException and render it as ``{"error", "message", "details"}``.

    4xx errors are expected client mistakes and logged at WARNING; 5xx errors
    mean an upstream (object store or database) failed and are logged at ERROR.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"VaultException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
