"""
apibin router modules for handling requests to various endpoints

This module exports the ``router`` object which includes all known
endpoints and path operations of the API.
"""

from fastapi import APIRouter

# The order of the imports defines the order of the endpoints in the OpenAPI documentation
from . import echo, books, examples, generic


router = APIRouter()
for _module in (echo, books, examples, generic):
    router.include_router(_module.router)
