"""
apibin example REST API definitions

Provides a simple example API that offers these features:

- Conditional requests via `ETag` or `Last-Modified`
- Echo back request info to help debugging
- Cached responses to test proxy & client-side caching
- Example structured data showing off all kinds of data types
- A sample CRUD API for books with simulated server-side updates
- `gzip` content encoding for large responses
"""

import logging.config
import contextlib
from typing import Optional

import fastapi
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import base
from .routers import router
from .. import schemas, __version__
from ..settings import Settings
from ..storage import ConsistencyRefresher, OrderedBoundedStore, load_baseline


DEFAULT_EXCEPTION_HANDLERS = {
    StarletteHTTPException: base.APIException.handle,
    RequestValidationError: base.handle_request_validation_error,
    Exception: base.handle_generic_exception
}

LICENSE_INFO = {
    "name": "MIT License",
    "url": "https://opensource.org/licenses/MIT"
}

GZIP_MINIMUM_SIZE = 1000

API_DOC = """apibin example REST API

The books collection is a small in-memory CRUD API. Every book has a version,
which is returned in the `ETag` header together with the `Last-Modified` header.
Use `If-None-Match` or `If-Modified-Since` to revalidate cached books (yielding
`304` (Not Modified)) and `If-Match` or `If-Unmodified-Since` to protect updates
and deletions against mid-air collisions (yielding `412` (Precondition Failed)).

Note that the collection is capped at a maximum number of books, where the
oldest books get evicted silently. Furthermore, the whole collection is reset
to its initial state periodically, while one of the books gets updated by
the server every few seconds to simulate changes made by others.

All error responses use the schema of the `APIError`, except for `304`
(Not Modified), which never has a body.
"""


def create_app(
        settings: Optional[Settings] = None,
        configure_logging: bool = True,
        start_background_tasks: bool = True
) -> fastapi.FastAPI:
    """
    Create a new ``FastAPI`` instance using the specified settings and switches

    The application owns its books store and the background tasks operating
    on it. The store is loaded from the baseline immediately, so an invalid
    baseline aborts the creation. The background tasks are started with the
    application's lifespan and stopped on shutdown. Creating multiple
    independent instances in one program makes unit testing much easier.

    :param settings: optional Settings instance (would be created if not present)
    :param configure_logging: switch whether to configure logging
    :param start_background_tasks: switch whether to run the baseline reset and live updates
    :return: new ``FastAPI`` instance
    :raises BaselineError: if the baseline dataset couldn't be loaded
    """

    if settings is None:
        settings = Settings()

    if configure_logging:
        logging.config.dictConfig(settings.logging.model_dump())
    logger = logging.getLogger(__name__)
    logger.debug("Starting application...")

    store = OrderedBoundedStore(settings.store.max_size)
    refresher = ConsistencyRefresher(
        store,
        load_baseline(settings.store.baseline),
        refresh_interval=settings.store.refresh_interval,
        live_update_interval=settings.store.live_update_interval,
        live_update_key=settings.store.live_update_key
    )
    refresher.reset()

    @contextlib.asynccontextmanager
    async def lifespan(_: fastapi.FastAPI):
        logger.info("Starting API...")
        if start_background_tasks:
            refresher.start()
        try:
            yield
        finally:
            logger.info("Shutting down...")
            refresher.stop()

    servers = None
    if settings.server.public_base_url:
        servers = [{"url": str(settings.server.public_base_url)}]

    app = base.APIWithoutValidationError(
        title="apibin example REST API",
        version=__version__,
        description=API_DOC,
        license_info=LICENSE_INFO,
        servers=servers,
        responses={400: {"model": schemas.APIError}},
        lifespan=lifespan
    )

    for exc, handler in DEFAULT_EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc, handler)
    app.add_middleware(GZipMiddleware, minimum_size=GZIP_MINIMUM_SIZE)

    app.state.settings = settings
    app.state.store = store
    app.state.refresher = refresher

    app.include_router(router)
    return app


class APIWrapper:
    """
    Wrapper class around the FastAPI main object, accessible via the ``app`` property

    There should be only one global instance of this object, which should only
    export its functionality to hold the ``app`` property. This wrapper can be
    used to allow easy command-line usage via ``uvicorn`` calls. Example:

    .. code-block::

        uvicorn apibin.api:api.app
    """

    def __init__(self):
        self._app: Optional[fastapi.FastAPI] = None

    def get_app(self) -> fastapi.FastAPI:
        return self.app

    def set_app(self, application: fastapi.FastAPI):
        if not isinstance(application, fastapi.FastAPI):
            raise TypeError
        self._app = application

    @property
    def app(self) -> fastapi.FastAPI:
        """
        Return the ``app`` instance (or create it with default settings if it doesn't exist)
        """

        if self._app is not None:
            return self._app
        self._app = create_app()
        return self._app


api = APIWrapper()
