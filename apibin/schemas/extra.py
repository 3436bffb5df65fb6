"""
apibin extra schemas

This module contains the schemas of the echo endpoint
and of the various static example endpoints.
"""

import datetime
from typing import Any, Dict, List, Optional

import pydantic


class EchoModel(pydantic.BaseModel):
    method: str = pydantic.Field(description="HTTP method used")
    headers: Dict[str, str] = pydantic.Field(description="HTTP headers")
    host: Optional[str] = pydantic.Field(None, description="Hostname and optional port")
    url: str = pydantic.Field(description="Full URL")
    path: str = pydantic.Field(description="URL path")
    query: Optional[Dict[str, str]] = pydantic.Field(None, description="URL query parameters")
    body: Optional[str] = pydantic.Field(
        None,
        description="Raw request body, either a UTF-8 string or base64-encoded bytes"
    )
    parsed: Optional[Any] = pydantic.Field(None, description="Parsed request body")


class SubObject(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(ser_json_bytes="base64")

    binary: bytes
    binary_long: bytes
    date: datetime.date
    date_time: datetime.datetime
    url: pydantic.AnyUrl


class TypesModel(pydantic.BaseModel):
    nullable: None = None
    boolean: bool
    integer: int
    number: float
    string: str
    tags: List[str]
    object: SubObject


class CachedModel(pydantic.BaseModel):
    generated: datetime.datetime = pydantic.Field(description="Time when this response was generated")
    until: datetime.datetime = pydantic.Field(description="When the cache will be invalidated")


class Health(pydantic.BaseModel):
    startup: pydantic.NonNegativeInt
    books: pydantic.NonNegativeInt
    max_books: pydantic.NonNegativeInt
    background_tasks: bool
