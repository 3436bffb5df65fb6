"""
apibin REST API base library

Every error a client can see is rendered as ``APIError`` model by one of the
handlers in this module, except for ``304`` (Not Modified), which has no body.
"""

import time
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import schemas


logger = logging.getLogger(__name__)

startup = time.time()

BODYLESS_STATUS_CODES = (204, 304)


class APIWithoutValidationError(FastAPI):
    """
    FastAPI class hiding the 422 responses from the OpenAPI schema, since validation errors use 400
    """

    def openapi(self) -> Dict[str, Any]:
        if self.openapi_schema:
            return self.openapi_schema
        schema = super().openapi()
        for operations in schema.get("paths", {}).values():
            for operation in operations.values():
                operation.get("responses", {}).pop("422", None)
        return schema


def make_error_response(
        request: Request,
        status_code: int,
        message: str,
        details: str = "",
        repeat: bool = False,
        headers: Optional[Dict[str, str]] = None
) -> Response:
    if status_code in BODYLESS_STATUS_CODES:
        return Response(status_code=status_code, headers=headers)
    error = schemas.APIError(
        status=status_code,
        method=request.method,
        request=request.url.path,
        repeat=repeat,
        message=message,
        details=details
    )
    return JSONResponse(jsonable_encoder(error), status_code=status_code, headers=headers)


async def handle_generic_exception(request: Request, _: Exception) -> Response:
    logger.exception(f"Unhandled exception while handling '{request.method} {request.url.path}'!")
    return make_error_response(
        request,
        500,
        "Unexpected server error. The request has not been processed successfully."
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> Response:
    errors = exc.errors()
    summary = "; ".join(f"{'.'.join(map(str, e.get('loc', ())))}: {e.get('msg')}" for e in errors)
    logger.debug(f"Rejected invalid request '{request.method} {request.url.path}': {summary}")
    return make_error_response(
        request,
        400,
        f"Invalid request: {summary}",
        str(errors),
        repeat=True
    )


class APIException(HTTPException):
    """
    Base class for the exceptions interrupting a path operation with a defined status code

    The ``message`` is a short, user-friendly description of the problem
    while ``detail`` may carry technical information for debugging. The
    ``repeat`` flag tells the client whether sending the same request
    again (e.g. after fixing its content) could be successful.
    """

    def __init__(
            self,
            status_code: int,
            detail: Optional[str],
            repeat: bool = False,
            message: Optional[str] = None,
            headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.repeat = repeat
        self.message = message

    @classmethod
    async def handle(cls, request: Request, exc: StarletteHTTPException) -> Response:
        """
        Render any ``HTTPException`` (including routing errors raised by Starlette) as a response
        """

        message = getattr(exc, "message", None) or exc.__class__.__name__
        logger.debug(
            f"{type(exc).__name__} ({exc.status_code}) for '{request.method} "
            f"{request.url.path}': {message} (details: {exc.detail})"
        )
        return make_error_response(
            request,
            exc.status_code,
            message,
            "" if exc.detail is None else str(exc.detail),
            getattr(exc, "repeat", False),
            getattr(exc, "headers", None)
        )


class NotModified(APIException):
    """
    Exception when the user agent already has the most recent version of a resource

    This is no failure, but a regular outcome of conditional GET requests.
    The response is sent without body, but with the validator headers.
    """

    def __init__(self, resource: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=304, detail=resource, message="Not Modified", headers=headers)


class BadRequest(APIException):
    """
    Exception when the request itself is malformed, e.g. has invalid conditional headers
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(status_code=400, detail=detail, repeat=True, message=message)


class NotFound(APIException):
    """
    Exception when a requested resource doesn't exist (anymore)

    Books may disappear without any client deleting them, since the
    collection is reset periodically and the oldest books get evicted.
    """

    def __init__(self, resource: str, detail: Optional[str] = None):
        super().__init__(status_code=404, detail=detail, message=f"{resource!r} was not found.")


class PreconditionFailed(APIException):
    """
    Exception when the conditional headers of a request don't match the current resource

    For modifying requests, this detects mid-air collisions: the client
    tried to change a resource based on an outdated version of it.
    """

    def __init__(self, resource: str, detail: Optional[str] = None):
        super().__init__(status_code=412, detail=detail, message=f"Precondition failed for {resource!r}.")
