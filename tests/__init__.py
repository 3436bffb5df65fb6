"""
apibin unit tests
"""

import unittest
from .test_api import (
    BooksAPITests, CustomBaselineAPITests, EchoAPITests, ExamplesAPITests, SmallStoreAPITests
)
from .test_cli import StandaloneCLITests
from .test_etag import EvaluationTests, ParsingTests
from .test_fingerprint import FingerprintTests
from .test_refresher import BaselineTests, RecurringTaskTests, RefresherTests
from .test_settings import LoggingTests, SettingsTests
from .test_store import ReadWriteLockTests, StoreTests


TEST_CLASSES = [
    BaselineTests,
    BooksAPITests,
    CustomBaselineAPITests,
    EchoAPITests,
    EvaluationTests,
    ExamplesAPITests,
    FingerprintTests,
    LoggingTests,
    ParsingTests,
    ReadWriteLockTests,
    RecurringTaskTests,
    RefresherTests,
    SettingsTests,
    SmallStoreAPITests,
    StandaloneCLITests,
    StoreTests,
]


def get_suite() -> unittest.TestSuite:
    suite = unittest.TestSuite()
    for cls in TEST_CLASSES:
        for fixture in filter(lambda f: f.startswith("test_"), dir(cls)):
            suite.addTest(cls(fixture))
    return suite
