"""
Immutable baseline dataset the books store is periodically reset to
"""

import os
import types
import logging
from typing import Dict, Mapping, Optional

try:
    import ujson as json
except ImportError:
    import json

import pydantic

from .. import schemas
from .store import Document


logger = logging.getLogger(__name__)

BUNDLED_BASELINE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "books.json")


class BaselineError(Exception):
    """
    Exception raised when the baseline dataset can't be read or doesn't contain valid books
    """


def parse_baseline(content: str) -> Mapping[str, Document]:
    """
    Parse and validate the JSON content of a baseline file

    :param content: JSON object mapping book IDs to books
    :return: read-only mapping of book IDs to the normalized book documents
    :raises BaselineError: if the content is not a valid JSON object of books
    """

    try:
        raw = json.loads(content)
    except ValueError as exc:
        raise BaselineError(f"Baseline is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise BaselineError(f"Baseline must be a JSON object, got {type(raw).__name__}")

    books: Dict[str, Document] = {}
    for key, value in raw.items():
        if not key or "/" in key:
            raise BaselineError(f"Invalid book ID {key!r} in baseline")
        try:
            books[key] = schemas.Book.model_validate(value).to_payload()
        except pydantic.ValidationError as exc:
            raise BaselineError(f"Invalid book {key!r} in baseline: {exc}") from exc
    return types.MappingProxyType(books)


def load_baseline(path: Optional[str] = None) -> Mapping[str, Document]:
    """
    Load the baseline dataset from the given file or the bundled ``books.json``

    :raises BaselineError: if the file can't be read or is invalid
    """

    path = path or BUNDLED_BASELINE
    try:
        with open(path, "r", encoding="UTF-8") as f:
            content = f.read()
    except OSError as exc:
        raise BaselineError(f"Baseline file {path!r} couldn't be read: {exc}") from exc
    books = parse_baseline(content)
    logger.debug(f"Loaded {len(books)} books from baseline {path!r}")
    return books
