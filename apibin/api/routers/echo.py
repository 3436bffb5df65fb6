"""
apibin router module for echo requests to /
"""

import base64
import logging
import datetime
from typing import Any, Dict, Optional

try:
    import ujson as json
except ImportError:
    import json

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ..base import BODYLESS_STATUS_CODES, BadRequest
from ..dependency import get_conditionals
from ..etag import Conditionals, ETag
from ... import schemas
from ...storage import fingerprint


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Echo"])

ECHO_LAST_MODIFIED = datetime.datetime(2022, 2, 1, 12, 34, 56, tzinfo=datetime.timezone.utc)

CONDITIONAL_HEADERS = ("if-match", "if-none-match", "if-modified-since", "if-unmodified-since")


def _wants_docs(request: Request) -> bool:
    if request.method != "GET" or "Mozilla" not in request.headers.get("User-Agent", ""):
        return False
    preferred = request.headers.get("Accept", "").split(",")[0]
    return preferred.split(";")[0].strip().lower() == "text/html"


def _parse_body(request: Request, raw: bytes) -> Optional[Any]:
    content_type = request.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if not raw or not (content_type == "application/json" or content_type.endswith("+json")):
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise BadRequest("Request body is not valid JSON.", str(exc)) from exc


async def make_echo(request: Request) -> schemas.EchoModel:
    """
    Build the model describing the given request
    """

    raw = await request.body()
    body = None
    if raw:
        try:
            body = raw.decode("UTF-8")
        except UnicodeDecodeError:
            body = base64.b64encode(raw).decode("ascii")

    headers: Dict[str, str] = {}
    for name, value in request.headers.items():
        headers[name] = headers[name] + ", " + value if name in headers else value

    host = request.headers.get("Host")
    scheme = request.headers.get("X-Forwarded-Proto") or "http"
    url = f"{scheme}://{host or request.url.netloc}{request.url.path}"
    if request.url.query:
        url += "?" + request.url.query

    return schemas.EchoModel(
        method=request.method,
        headers=headers,
        host=host,
        url=url,
        path=request.url.path,
        query={k: request.query_params.getlist(k)[0] for k in request.query_params.keys()} or None,
        body=body,
        parsed=_parse_body(request, raw)
    )


def echo_fingerprint(model: schemas.EchoModel) -> str:
    """
    Return the version of the echoed request, ignoring its own conditional headers
    """

    headers = {k: v for k, v in model.headers.items() if k.lower() not in CONDITIONAL_HEADERS}
    return fingerprint(model.model_copy(update={"headers": headers}))


async def echo_request(request: Request, status: int, conditionals: Conditionals) -> Response:
    """
    Echo the request back to the client, honoring its conditional headers
    """

    if _wants_docs(request):
        logger.debug("Redirecting browser to the API documentation")
        return RedirectResponse("./docs")

    model = await make_echo(request)
    version = echo_fingerprint(model)
    ETag(request, conditionals).compare(version, ECHO_LAST_MODIFIED)

    if status in BODYLESS_STATUS_CODES:
        response = Response(status_code=status)
    else:
        response = JSONResponse(model.model_dump(mode="json", exclude_none=True), status_code=status)
    ETag.add_headers(response, version, ECHO_LAST_MODIFIED, "no-store", "*")
    return response


@router.api_route(
    "/",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_model=schemas.EchoModel,
    responses={304: {"description": "Not Modified"}, 412: {"model": schemas.APIError}}
)
async def echo(
        request: Request,
        status: int = Query(200, ge=200, le=599, description="Status code to return"),
        conditionals: Conditionals = Depends(get_conditionals)
):
    """
    Echo back the request method, headers, URL, query and body.

    The raw body is returned as UTF-8 string or base64-encoded bytes, JSON bodies
    are parsed as well. The response carries an `ETag` computed from the echoed
    request, so conditional requests can be tried out with this endpoint.
    """

    return await echo_request(request, status, conditionals)
