"""
apibin router module for /books requests

The books collection is capped at a maximum number of entries: the oldest
inserted books are silently evicted when clients add new ones. Furthermore,
the whole collection is reset to its baseline periodically.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, Response

from ..base import NotFound
from ..dependency import LocalRequestData, MinimalRequestData
from ... import schemas


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["Books"])

BOOK_CACHE_CONTROL = "max-age=0"
BOOK_VARY = "Accept, Accept-Encoding, Origin"


@router.get(
    "",
    response_model=List[schemas.BookSummary]
)
def list_books(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return a list of summaries with the URL, version and modification time of all books.

    The books are listed in the order they have been added.
    """

    return [
        schemas.BookSummary(id=key, url=f"/books/{key}", version=version, modified=modified)
        for key, version, modified in local.store.list()
    ]


@router.get(
    "/{book_id}",
    response_model=schemas.Book,
    response_model_exclude_none=True,
    responses={
        304: {"description": "Not Modified"},
        404: {"model": schemas.APIError}
    }
)
def get_book(
        book_id: str = Path(min_length=1, max_length=255),
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return the book specified by its ID.

    The response carries the `ETag` and `Last-Modified` headers of the book. A
    304 response without body is returned if the conditional headers show that
    the client's cached version is still current. A 404 error will be returned
    in case the ID is not found.
    """

    with local.store.reading() as view:
        entry = view.get(book_id)
        if entry is None:
            raise NotFound(f"Book {book_id}")
        version = entry.fingerprint
        local.etag.compare(version, entry.modified_at)

    local.etag.add_headers(local.response, version, entry.modified_at, BOOK_CACHE_CONTROL, BOOK_VARY)
    return entry.payload


@router.put(
    "/{book_id}",
    status_code=204,
    response_class=Response,
    responses={400: {"model": schemas.APIError}, 412: {"model": schemas.APIError}}
)
def put_book(
        book: schemas.Book,
        book_id: str = Path(min_length=1, max_length=255),
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Create or replace the book specified by its ID.

    If the book already exists and the request has conditional headers, they
    are checked against its current version; a 412 error will be returned on
    mismatch. Creating a new book is never rejected by conditional headers.
    Adding a book to a full collection evicts the oldest book.
    """

    payload = book.to_payload()
    with local.store.writing() as transaction:
        if local.conditionals.present:
            existing = transaction.get(book_id)
            if existing is not None:
                local.etag.compare(existing.fingerprint, existing.modified_at)
        transaction.put(book_id, payload)
        entry = transaction.get(book_id)

    response = Response(status_code=204)
    if entry is not None:
        local.etag.add_headers(response, entry.fingerprint, entry.modified_at)
    logger.debug(f"Stored book {book_id!r}")
    return response


@router.delete(
    "/{book_id}",
    status_code=204,
    response_class=Response,
    responses={412: {"model": schemas.APIError}}
)
def delete_book(
        book_id: str = Path(min_length=1, max_length=255),
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Delete the book specified by its ID.

    Deleting is idempotent, so deleting an absent book succeeds, too. If the
    book exists and the request has conditional headers, they are checked
    against its current version; a 412 error will be returned on mismatch.
    """

    with local.store.writing() as transaction:
        if local.conditionals.present:
            existing = transaction.get(book_id)
            if existing is not None:
                local.etag.compare(existing.fingerprint, existing.modified_at)
        removed = transaction.delete(book_id)

    if removed:
        logger.debug(f"Deleted book {book_id!r}")
    return Response(status_code=204)
