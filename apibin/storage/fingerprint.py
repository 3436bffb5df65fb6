"""
Fingerprint helper library deriving version tokens (ETags) from stored documents

The canonical JSON dump is hashed with md5 instead of a dedicated
non-cryptographic hash. The digest only serves as fast content checksum
and is not relied upon for security.
"""

# stdlib json only: ujson formats floats and separators differently, which would change the tokens
import json
import base64
import hashlib
from typing import Any

import pydantic
from fastapi.encoders import jsonable_encoder


def canonical_dump(value: Any) -> bytes:
    """
    Serialize a JSON-compatible value into its canonical binary form

    Object keys are sorted and no insignificant whitespace is emitted, so
    two values with equal content always produce the same byte sequence,
    regardless of the order in which their keys were inserted. Models are
    reduced to their public fields first.

    :param value: any object that can be JSON-serialized (including pydantic models)
    :return: UTF-8 encoded canonical JSON document
    :raises ValueError: if the value contains NaN or infinite numbers
    """

    if isinstance(value, pydantic.BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    dump = json.dumps(
        jsonable_encoder(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False
    )
    return dump.encode("UTF-8")


def fingerprint_bytes(data: bytes) -> str:
    """
    Hash the given bytes and encode the digest as URL-safe base64 without padding
    """

    digest = hashlib.md5(data).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def fingerprint(value: Any) -> str:
    """
    Create a static and unambiguous version token for the given value

    The token is a pure function of the content and is not meant to be
    secure against deliberate collisions. It's used as ETag value.

    :param value: any object that can be JSON-serialized (including pydantic models)
    :return: opaque 22 character token
    """

    return fingerprint_bytes(canonical_dump(value))
