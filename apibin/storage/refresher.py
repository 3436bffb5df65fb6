"""
Background tasks resetting the books store and simulating server-side updates
"""

import logging
import threading
from typing import Callable, List, Mapping, Optional

from .. import schemas
from .store import Document, OrderedBoundedStore


logger = logging.getLogger(__name__)

LIVE_UPDATE_RATING = 4.6


class RecurringTask(threading.Thread):
    """
    Daemon thread calling a function every ``interval`` seconds until it's stopped

    The first call happens one interval after starting the thread.
    Failing calls are logged and don't stop further executions.
    """

    def __init__(self, name: str, interval: float, function: Callable[[], None]):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.function = function
        self.shutdown_event = threading.Event()

    def run(self):
        logger.debug(f"Started recurring task {self.name!r} with interval {self.interval}s")
        while not self.shutdown_event.wait(self.interval):
            try:
                self.function()
            except Exception:
                logger.exception(f"Recurring task {self.name!r} failed!")
        logger.debug(f"Stopped recurring task {self.name!r}")

    def stop(self, timeout: Optional[float] = None):
        self.shutdown_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)


class ConsistencyRefresher:
    """
    Owner of the two background tasks operating on a books store

    The baseline reset reloads the store from the immutable baseline every
    ``refresh_interval`` seconds, discarding all changes made by clients.
    The live-update simulator replaces the recent ratings of the book
    identified by ``live_update_key`` every ``live_update_interval`` seconds,
    if that book exists, so polling clients can observe changing versions.
    Both tasks use the same locking discipline as the request handlers.
    """

    def __init__(
            self,
            store: OrderedBoundedStore,
            baseline: Mapping[str, Document],
            refresh_interval: float = 600,
            live_update_interval: float = 10,
            live_update_key: str = "sapiens"
    ):
        self.store = store
        self.baseline = baseline
        self.refresh_interval = refresh_interval
        self.live_update_interval = live_update_interval
        self.live_update_key = live_update_key
        self._tasks: List[RecurringTask] = []

    @property
    def running(self) -> bool:
        return any(task.is_alive() for task in self._tasks)

    def reset(self) -> List[str]:
        """
        Reload the store from the baseline and return the keys evicted due to its size
        """

        evicted = self.store.reload(self.baseline)
        logger.info(f"Reset the store to its baseline of {len(self.baseline)} entries")
        return evicted

    def live_update(self) -> bool:
        """
        Replace the recent ratings of the live-updated entry, if it exists

        :return: whether the entry existed and has been updated
        """

        with self.store.writing() as transaction:
            entry = transaction.get(self.live_update_key)
            if entry is None:
                logger.debug(f"Skipping live update, {self.live_update_key!r} doesn't exist")
                return False
            rating = schemas.Rating(date=self.store.clock(), rating=LIVE_UPDATE_RATING)
            entry.payload["recent_ratings"] = [rating.model_dump(mode="json")]
            transaction.put(self.live_update_key, entry.payload)
        logger.debug(f"Updated recent ratings of {self.live_update_key!r}")
        return True

    def start(self):
        """
        Start both background tasks (the store should have been reset before)
        """

        if self.running:
            raise RuntimeError("Background tasks are already running")
        self._tasks = [
            RecurringTask("baseline-reset", self.refresh_interval, self.reset),
            RecurringTask("live-update", self.live_update_interval, self.live_update)
        ]
        for task in self._tasks:
            task.start()
        logger.info("Started background tasks of the books store")

    def stop(self, timeout: Optional[float] = None):
        """
        Signal both background tasks to stop and wait for them to finish
        """

        for task in self._tasks:
            task.stop(timeout)
        if self._tasks:
            logger.info("Stopped background tasks of the books store")
        self._tasks = []
