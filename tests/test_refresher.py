"""
apibin unit tests for the baseline and the background tasks of the books store
"""

import time
import threading
import unittest as _unittest

from apibin.storage import BaselineError, ConsistencyRefresher, load_baseline
from apibin.storage.baseline import parse_baseline
from apibin.storage.refresher import LIVE_UPDATE_RATING, RecurringTask

from . import utils


class BaselineTests(utils.BaseTest):
    def test_bundled_baseline(self):
        baseline = load_baseline()
        self.assertIn("sapiens", baseline)
        self.assertLessEqual(len(baseline), 20)
        for key, book in baseline.items():
            self.assertTrue(book["title"], key)
        with self.assertRaises(TypeError):
            baseline["new"] = {"title": "New"}  # noqa

    def test_custom_baseline(self):
        path = self.write_file("books.json", '{"b": {"title": "B", "ratings": 2}, "a": {"title": "A"}}')
        self.assertEqual({"a": {"title": "A"}, "b": {"title": "B", "ratings": 2}}, dict(load_baseline(path)))

    def test_invalid_baselines(self):
        for content in (
            "not json",
            "[]",
            '{"a": {"author": "no title"}}',
            '{"a": {"title": ""}}',
            '{"": {"title": "A"}}',
            '{"a/b": {"title": "A"}}',
            '{"a": {"title": "A", "ratings": -1}}'
        ):
            with self.assertRaises(BaselineError, msg=content):
                parse_baseline(content)

    def test_missing_baseline(self):
        with self.assertRaises(BaselineError):
            load_baseline(self.write_file("ignored", "") + ".missing")


class RefresherTests(utils.BaseStoreTests):
    baseline = {
        "sapiens": {"title": "Sapiens", "ratings": 3},
        "dune": {"title": "Dune"}
    }

    def setUp(self) -> None:
        super().setUp()
        self.refresher = ConsistencyRefresher(self.store, self.baseline, 0.05, 0.01, "sapiens")

    def tearDown(self) -> None:
        self.refresher.stop(2)
        super().tearDown()

    def test_reset_discards_changes(self):
        self.refresher.reset()
        self.store.put("new", {"title": "New"})
        self.store.delete("dune")
        self.store.put("sapiens", {"title": "Changed"})

        self.refresher.reset()
        self.assertEqual(["dune", "sapiens"], [key for key, _, _ in self.store.list()])
        self.assertEqual(self.baseline["sapiens"], self.store.get("sapiens").payload)

    def test_live_update(self):
        self.refresher.reset()
        before = self.store.get("sapiens")
        self.assertTrue(self.refresher.live_update())
        after = self.store.get("sapiens")

        self.assertNotEqual(before.fingerprint, after.fingerprint)
        self.assertGreater(after.modified_at, before.modified_at)
        self.assertEqual(3, after.payload["ratings"])
        self.assertEqual(1, len(after.payload["recent_ratings"]))
        self.assertEqual(LIVE_UPDATE_RATING, after.payload["recent_ratings"][0]["rating"])

        self.assertTrue(self.refresher.live_update())
        self.assertEqual(1, len(self.store.get("sapiens").payload["recent_ratings"]))
        self.assertNotEqual(after.fingerprint, self.store.get("sapiens").fingerprint)
        self.assertEqual(["dune", "sapiens"], [key for key, _, _ in self.store.list()])

    def test_live_update_of_absent_entry(self):
        self.refresher.reset()
        self.store.delete("sapiens")
        self.assertFalse(self.refresher.live_update())
        self.assertIsNone(self.store.get("sapiens"))
        self.assertEqual(1, len(self.store))

    def test_start_and_stop(self):
        self.store.put("new", {"title": "New"})
        self.assertFalse(self.refresher.running)
        self.refresher.start()
        self.assertTrue(self.refresher.running)
        with self.assertRaises(RuntimeError):
            self.refresher.start()

        deadline = time.monotonic() + 5
        while self.store.get("new") is not None and time.monotonic() < deadline:
            time.sleep(0.01)
        self.assertIsNone(self.store.get("new"))

        self.refresher.stop(2)
        self.assertFalse(self.refresher.running)


class RecurringTaskTests(_unittest.TestCase):
    def test_failures_do_not_stop_task(self):
        calls = []
        done = threading.Event()

        def function():
            calls.append(1)
            if len(calls) >= 3:
                done.set()
            raise ValueError("expected failure")

        task = RecurringTask("test", 0.01, function)
        task.start()
        self.assertTrue(done.wait(5))
        task.stop(2)
        self.assertFalse(task.is_alive())

    def test_stop_before_first_call(self):
        calls = []
        task = RecurringTask("test", 60, lambda: calls.append(1))
        task.start()
        task.stop(2)
        self.assertFalse(task.is_alive())
        self.assertEqual([], calls)


if __name__ == '__main__':
    _unittest.main()
