"""
apibin schemas for the books collection

A book is stored schema-free as a plain JSON document. These schemas
are only used at the API boundary to validate incoming books and to
describe the responses in the OpenAPI documentation.
"""

import datetime
from typing import List, Optional

import pydantic


class Rating(pydantic.BaseModel):
    date: datetime.datetime
    rating: pydantic.confloat(ge=0, le=5)


class Book(pydantic.BaseModel):
    title: pydantic.constr(min_length=1, max_length=255)
    author: Optional[pydantic.constr(max_length=255)] = None
    published: Optional[datetime.datetime] = None
    ratings: Optional[pydantic.NonNegativeInt] = None
    rating_average: Optional[pydantic.confloat(ge=0, le=5)] = None
    recent_ratings: Optional[List[Rating]] = None

    def to_payload(self) -> dict:
        """
        Return the JSON document of this book as it's kept in the store (unset fields omitted)
        """

        return self.model_dump(mode="json", exclude_none=True)


class BookSummary(pydantic.BaseModel):
    id: str
    url: str
    version: str
    modified: datetime.datetime
