"""
ETag helper library for the REST API

This module implements the evaluation of conditional requests based on the
``If-Match``, ``If-None-Match``, ``If-Modified-Since`` and ``If-Unmodified-Since``
headers. The ``evaluate`` function is independent of the HTTP method and
performs no I/O, while the ``ETag`` class binds it to a request.
"""

import enum
import logging
import datetime
import email.utils
from typing import Iterable, List, Optional

from fastapi import Request, Response

from . import base


logger = logging.getLogger(__name__)

SAFE_METHODS = ("GET", "HEAD")

WILDCARD = "*"


@enum.unique
class Outcome(enum.Enum):
    PROCEED = enum.auto()
    NOT_MODIFIED = enum.auto()
    PRECONDITION_FAILED = enum.auto()


def parse_entity_tags(values: Optional[Iterable[str]]) -> List[str]:
    """
    Split the values of one or more ``If-Match`` or ``If-None-Match`` headers into entity tags

    The tags are kept as sent, i.e. with quotes and an optional weakness indicator.
    """

    tags = []
    for value in values or []:
        tags.extend(tag.strip() for tag in value.split(",") if tag.strip())
    return tags


def parse_http_date(value: Optional[str]) -> Optional[datetime.datetime]:
    """
    Parse an HTTP date into a timezone-aware datetime (empty values are ignored)

    :raises ValueError: if the value is not a valid HTTP date
    """

    if value is None or value.strip() == "":
        return None
    try:
        result = email.utils.parsedate_to_datetime(value.strip())
    except (TypeError, IndexError, ValueError) as exc:
        raise ValueError(f"Invalid HTTP date: {value!r}") from exc
    if result is None:
        raise ValueError(f"Invalid HTTP date: {value!r}")
    if result.tzinfo is None:
        result = result.replace(tzinfo=datetime.timezone.utc)
    return result


def format_http_date(timestamp: datetime.datetime) -> str:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=datetime.timezone.utc)
    return email.utils.format_datetime(timestamp.astimezone(datetime.timezone.utc), usegmt=True)


def quote(fingerprint: str) -> str:
    return f'"{fingerprint}"'


def _opaque(tag: str) -> str:
    if tag.startswith("W/"):
        tag = tag[2:]
    if len(tag) >= 2 and tag.startswith('"') and tag.endswith('"'):
        tag = tag[1:-1]
    return tag


def strong_match(tags: List[str], fingerprint: str) -> bool:
    return any(tag == WILDCARD or (not tag.startswith("W/") and _opaque(tag) == fingerprint) for tag in tags)


def weak_match(tags: List[str], fingerprint: str) -> bool:
    return any(tag == WILDCARD or _opaque(tag) == fingerprint for tag in tags)


class Conditionals:
    """
    Collection of the conditional headers of a single request
    """

    def __init__(
            self,
            if_match: Optional[List[str]] = None,
            if_none_match: Optional[List[str]] = None,
            if_modified_since: Optional[datetime.datetime] = None,
            if_unmodified_since: Optional[datetime.datetime] = None
    ):
        self.if_match = if_match or []
        self.if_none_match = if_none_match or []
        self.if_modified_since = if_modified_since
        self.if_unmodified_since = if_unmodified_since

    @classmethod
    def parse(
            cls,
            if_match: Optional[Iterable[str]] = None,
            if_none_match: Optional[Iterable[str]] = None,
            if_modified_since: Optional[str] = None,
            if_unmodified_since: Optional[str] = None
    ) -> "Conditionals":
        """
        Create a new instance from raw header values

        :raises ValueError: if one of the dates is not a valid HTTP date
        """

        return cls(
            parse_entity_tags(if_match),
            parse_entity_tags(if_none_match),
            parse_http_date(if_modified_since),
            parse_http_date(if_unmodified_since)
        )

    @property
    def present(self) -> bool:
        return bool(
            self.if_match
            or self.if_none_match
            or self.if_modified_since is not None
            or self.if_unmodified_since is not None
        )

    def __repr__(self) -> str:
        return (
            f"Conditionals(if_match={self.if_match!r}, if_none_match={self.if_none_match!r}, "
            f"if_modified_since={self.if_modified_since!r}, if_unmodified_since={self.if_unmodified_since!r})"
        )


def evaluate(
        conditionals: Conditionals,
        current_fingerprint: str,
        current_modified_at: datetime.datetime
) -> Outcome:
    """
    Decide whether a request may proceed given the current version of a resource

    ``If-Match`` and ``If-Unmodified-Since`` protect writes against stale
    reads, so a mismatch is a failed precondition. ``If-None-Match`` and
    ``If-Modified-Since`` revalidate caches, so a match means the client's
    copy is current. The caller translates ``NOT_MODIFIED`` into a failed
    precondition for unsafe methods. Dates are compared with whole seconds,
    the precision of HTTP dates.

    :param conditionals: parsed conditional headers of the request
    :param current_fingerprint: fingerprint of the current version of the resource
    :param current_modified_at: time of the last modification of the resource
    :return: outcome of the evaluation
    """

    if current_modified_at.tzinfo is None:
        current_modified_at = current_modified_at.replace(tzinfo=datetime.timezone.utc)
    modified = current_modified_at.replace(microsecond=0)

    if conditionals.if_match:
        if not strong_match(conditionals.if_match, current_fingerprint):
            return Outcome.PRECONDITION_FAILED
    elif conditionals.if_unmodified_since is not None and modified > conditionals.if_unmodified_since:
        return Outcome.PRECONDITION_FAILED

    if conditionals.if_none_match:
        if weak_match(conditionals.if_none_match, current_fingerprint):
            return Outcome.NOT_MODIFIED
    elif conditionals.if_modified_since is not None and not modified > conditionals.if_modified_since:
        return Outcome.NOT_MODIFIED

    return Outcome.PROCEED


class ETag:
    """
    Helper class applying conditional request handling to a single request
    """

    def __init__(self, request: Request, conditionals: Conditionals):
        self.request = request
        self.conditionals = conditionals

    @property
    def safe(self) -> bool:
        return self.request.method in SAFE_METHODS

    def compare(self, fingerprint: str, modified_at: datetime.datetime) -> bool:
        """
        Compare the current version of a resource with the conditional headers of the request

        This method raises appropriate exceptions to interrupt further
        processing. For GET requests, a match allows the client to use its
        cached version. For modifying requests, a mismatch is a mid-air collision.

        :param fingerprint: fingerprint of the current version of the resource
        :param modified_at: time of the last modification of the resource
        :return: ``True`` if the request may proceed
        :raises NotModified: if the user agent already has the most recent version of a resource
        :raises PreconditionFailed: if any of the preconditions were not met
        """

        outcome = evaluate(self.conditionals, fingerprint, modified_at)
        if outcome == Outcome.PROCEED:
            return True

        path = self.request.url.path
        logger.debug(
            f"Conditional request '{self.request.method} {path}' "
            f"ended with {outcome.name}: {self.conditionals!r}"
        )
        if outcome == Outcome.NOT_MODIFIED and self.safe:
            raise base.NotModified(path, headers={
                "ETag": quote(fingerprint),
                "Last-Modified": format_http_date(modified_at)
            })
        raise base.PreconditionFailed(
            path,
            f"Conditional request not matching current entity tag {fingerprint!r} "
            f"or modification time {format_http_date(modified_at)!r}"
        )

    @staticmethod
    def add_headers(
            response: Response,
            fingerprint: str,
            modified_at: datetime.datetime,
            cache_control: Optional[str] = None,
            vary: Optional[str] = None
    ):
        """
        Add the ETag and Last-Modified header fields (and optional caching headers) to the response
        """

        response.headers["ETag"] = quote(fingerprint)
        response.headers["Last-Modified"] = format_http_date(modified_at)
        if cache_control is not None:
            response.headers["Cache-Control"] = cache_control
        if vary is not None:
            response.headers["Vary"] = vary
