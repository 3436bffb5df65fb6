"""
apibin error schemas
"""

from typing import Optional

import pydantic


class APIError(pydantic.BaseModel):
    """
    Body of every error response of the API, except for `304` (Not Modified)

    `status` repeats the HTTP status code, `method` and `request` identify
    the failed request (the path without query string). `repeat` tells
    whether sending the same request again might succeed, e.g. a `400`
    after fixing the content. `message` is a short human-readable summary,
    `details` holds debugging information of arbitrary length, if any.
    """

    error: bool = True
    status: Optional[pydantic.NonNegativeInt] = None
    method: pydantic.constr(max_length=255)
    request: str
    repeat: bool
    message: str
    details: str
