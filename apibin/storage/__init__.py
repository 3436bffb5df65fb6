"""
apibin storage package

This package contains the versioned in-memory store of the books
collection, the fingerprint generator for its entries, the immutable
baseline dataset and the background tasks keeping the store fresh.
"""

from .baseline import BaselineError, load_baseline
from .fingerprint import fingerprint
from .refresher import ConsistencyRefresher
from .store import OrderedBoundedStore, ResourceEntry
