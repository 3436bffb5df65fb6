"""
apibin router module for static example endpoints
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response

from .echo import echo_request
from ..dependency import get_conditionals
from ..etag import Conditionals
from ... import schemas


router = APIRouter()


@router.get(
    "/types",
    tags=["Types"],
    response_model=schemas.TypesModel
)
def get_types_example():
    """
    Return example structured data showing off all kinds of data types.
    """

    now = datetime.datetime.now(datetime.timezone.utc)
    return schemas.TypesModel(
        boolean=True,
        integer=42,
        number=123.45,
        string="Hello, world!",
        tags=["example", "short"],
        object=schemas.SubObject(
            binary=bytes([222, 173, 192, 222]),
            binary_long=bytes(range(16)),
            date=now.date(),
            date_time=now,
            url="https://rest.sh/"
        )
    )


@router.put(
    "/types",
    tags=["Types"],
    response_model=schemas.EchoModel,
    responses={412: {"model": schemas.APIError}}
)
async def put_types_example(
        request: Request,
        status: int = Query(200, ge=200, le=599, description="Status code to return"),
        conditionals: Conditionals = Depends(get_conditionals)
):
    """
    Example write for edits, which echoes the request back to the client.
    """

    return await echo_request(request, status, conditionals)


@router.get(
    "/cached/{seconds}",
    tags=["Caching"],
    response_model=schemas.CachedModel
)
def get_cached(
        response: Response,
        seconds: int = Path(ge=1, le=300, description="Number of seconds to cache"),
        private: bool = Query(False, description="Disable shared caches like CDNs")
):
    """
    Return a response that may be cached by clients for the given number of seconds.
    """

    header = f"max-age={seconds}"
    if private:
        header = "private, " + header
    response.headers["Cache-Control"] = header

    now = datetime.datetime.now(datetime.timezone.utc)
    return schemas.CachedModel(generated=now, until=now + datetime.timedelta(seconds=seconds))


@router.get(
    "/status/{code}",
    tags=["Status"],
    response_class=Response
)
def get_status(
        code: int = Path(ge=200, le=599, description="Status code to return"),
        retry_after: Optional[str] = Query(None, alias="retry-after", description="Retry-After header value"),
        x_retry_in: Optional[str] = Query(None, alias="x-retry-in", description="X-Retry-In header value")
):
    """
    Return an empty response with the given status code and optional retry headers.
    """

    headers = {}
    if retry_after:
        headers["Retry-After"] = retry_after
    if x_retry_in:
        headers["X-Retry-In"] = x_retry_in
    return Response(status_code=code, headers=headers)
