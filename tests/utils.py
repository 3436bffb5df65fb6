"""
Helper functions to make writing unit tests for apibin easier
"""

import os
import datetime
import tempfile
import unittest
from typing import Iterable, List, Mapping, Optional, Type, Union

import pydantic
from fastapi.testclient import TestClient
from httpx import Response

from apibin import settings as _settings
from apibin.api import create_app
from apibin.storage import OrderedBoundedStore


class FakeClock:
    """
    Deterministic replacement for the clock of a store, advancing one second per call by default
    """

    def __init__(self, start: Optional[datetime.datetime] = None, step: float = 1.0):
        self.now = start or datetime.datetime(2022, 2, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)
        self.step = datetime.timedelta(seconds=step)

    def __call__(self) -> datetime.datetime:
        now = self.now
        self.now += self.step
        return now


class BaseTest(unittest.TestCase):
    """
    A base class for unit tests which introduces simple setup and teardown of unit tests

    If a subclass needs special setup or teardown functionality, it **MUST**
    call the superclasses setup and teardown methods: the superclass setup
    method at the beginning of the subclass setup method, the superclass
    teardown method at the end of the subclass teardown method.
    """

    tmp_dir: Optional[tempfile.TemporaryDirectory] = None
    config_file: Optional[str] = None
    _old_config_paths: Optional[List[str]] = None

    def setUp(self) -> None:
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.config_file = os.path.join(self.tmp_dir.name, "config.json")
        self._old_config_paths = _settings.CONFIG_PATHS
        _settings.CONFIG_PATHS = [self.config_file]

    def tearDown(self) -> None:
        _settings.CONFIG_PATHS = self._old_config_paths
        self.tmp_dir.cleanup()

    def write_file(self, name: str, content: str) -> str:
        path = os.path.join(self.tmp_dir.name, name)
        with open(path, "w", encoding="UTF-8") as f:
            f.write(content)
        return path


class BaseStoreTests(BaseTest):
    store: OrderedBoundedStore
    clock: FakeClock

    def setUp(self) -> None:
        super().setUp()
        self.clock = FakeClock()
        self.store = OrderedBoundedStore(20, clock=self.clock)


class BaseAPITests(BaseTest):
    """
    Base class for tests of the REST API, using a fresh application for every test

    The background tasks are never started automatically, but the
    refresher's methods can be called directly to simulate them.
    """

    max_size: int = 20
    baseline: Optional[str] = None
    client: Optional[TestClient] = None

    def setUp(self) -> None:
        super().setUp()
        self.settings = _settings.Settings(
            store={"max_size": self.max_size, "baseline": self.baseline}
        )
        self.app = create_app(self.settings, configure_logging=False, start_background_tasks=False)
        self.client = TestClient(self.app, follow_redirects=False)

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    @property
    def store(self) -> OrderedBoundedStore:
        return self.app.state.store

    def assertQuery(
            self,
            endpoint: Union[tuple, List[str]],
            status_code: Union[int, Iterable[int]] = 200,
            json: Optional[Union[dict, pydantic.BaseModel]] = None,
            headers: Optional[dict] = None,
            r_none: bool = False,
            r_is_json: bool = True,
            r_headers: Optional[Union[Mapping, Iterable]] = None,
            r_schema: Optional[Type[pydantic.BaseModel]] = None,
            **kwargs
    ) -> Response:
        """
        Do a query to the specified endpoint and return the response

        Besides also carrying the optional JSON data, headers and other keyword arguments,
        this function asserts that the response has the specified status code. Furthermore,
        the optional asserted response headers and asserted response schema can be used,
        where the headers are either an iterable to only assert certain keys or a mapping
        to also assert values.

        :param endpoint: tuple of the method and the path of the endpoint
        :param status_code: asserted status code(s) of the final server's response
        :param json: optional dictionary or model holding the request data
        :param headers: optional set of headers to sent in the request
        :param r_none: switch to expect no (=empty) result and skip all other response content checks
        :param r_is_json: switch to check that the response contains JSON data
        :param r_headers: optional set of headers which are asserted in the response
        :param r_schema: optional class of a response schema to be asserted
        :param kwargs: dict of any further keyword arguments, passed to ``TestClient.request``
        :return: response to the requested resource
        """

        method, path = endpoint
        if isinstance(json, pydantic.BaseModel):
            json = json.model_dump(mode="json", exclude_none=True)
        response = self.client.request(method.upper(), path, json=json, headers=headers, **kwargs)

        if isinstance(status_code, int):
            self.assertEqual(status_code, response.status_code, response.text)
        else:
            self.assertIn(response.status_code, status_code, response.text)

        if r_headers is not None:
            for k in (r_headers.keys() if isinstance(r_headers, Mapping) else r_headers):
                self.assertIsNotNone(response.headers.get(k), response.headers)
                if isinstance(r_headers, Mapping):
                    self.assertEqual(r_headers[k], response.headers.get(k), response.headers)

        if r_none:
            self.assertEqual(b"", response.content)
        elif r_is_json:
            try:
                self.assertIsNotNone(response.json())
            except ValueError:
                self.fail(("No JSON content detected", response.headers, response.text))
            if r_schema is not None:
                self.assertTrue(r_schema.model_validate(response.json()), response.json())

        return response

    def get_version(self, book_id: str) -> str:
        return self.assertQuery(("GET", f"/books/{book_id}"), r_headers=["ETag"]).headers["ETag"]
