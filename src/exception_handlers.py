from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from src.errors import SerializationError
from src.logger import logger


def _get_lookup_key_from_request(request: Request) -> str:
    """Best-effort extraction of the lookup key for log lines."""
    return request.query_params.get("ip") or request.url.path.strip("/")


async def serialization_exception_handler(request: Request, exc: SerializationError) -> JSONResponse:
    """Fail only the affected request when its payload cannot be encoded."""
    key = _get_lookup_key_from_request(request)
    logger.error(f"Failed to encode lookup response path={request.url.path} key={key} error={exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"Error": "unable to encode response"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors to return a structured 500 response."""
    key = _get_lookup_key_from_request(request)
    logger.exception(
        "Unhandled exception while processing request: "
        f"{repr(exc)} path={request.url.path} method={request.method} key={key}"
    )
    content: dict[str, Any] = {"Error": "internal error"}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )
