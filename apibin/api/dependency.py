"""
apibin API dependency library
"""

from typing import List, Optional

from fastapi import Depends, Header, Request, Response

from . import base
from .etag import Conditionals, ETag
from ..settings import Settings
from ..storage import OrderedBoundedStore


def get_conditionals(
        if_match: Optional[List[str]] = Header(
            None,
            description="Only proceed if the current version matches one of these entity tags"
        ),
        if_none_match: Optional[List[str]] = Header(
            None,
            description="Only proceed if the current version matches none of these entity tags"
        ),
        if_modified_since: Optional[str] = Header(
            None,
            description="Only proceed if the resource has been modified after this HTTP date"
        ),
        if_unmodified_since: Optional[str] = Header(
            None,
            description="Only proceed if the resource has not been modified after this HTTP date"
        )
) -> Conditionals:
    try:
        return Conditionals.parse(if_match, if_none_match, if_modified_since, if_unmodified_since)
    except ValueError as exc:
        raise base.BadRequest("Invalid date in conditional request headers.", str(exc)) from exc


class MinimalRequestData:
    """
    Collection of minimal dependencies used only for internal functionalities
    """

    def __init__(self, request: Request, response: Response):
        self.request = request
        self.response = response
        self.headers = request.headers

    @property
    def config(self) -> Settings:
        return self.request.app.state.settings

    @property
    def store(self) -> OrderedBoundedStore:
        return self.request.app.state.store


class LocalRequestData(MinimalRequestData):
    """
    Collection of core dependencies used by all path operations working with resource versions

    This class stores references to various important objects that
    will almost certainly be used by request handlers (path operations).
    Note that any dependency added here will be added to the OpenAPI
    definition, if it refers to a Query, Header, Path or Cookie.
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            conditionals: Conditionals = Depends(get_conditionals)
    ):
        super().__init__(request, response)
        self.conditionals = conditionals
        self.etag = ETag(request, conditionals)
