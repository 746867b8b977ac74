"""
store.py — Durable Store Backends

The storefront persists three independent collections (products, reviews,
orders). Each collection is loaded in full and rewritten in full on every
mutation; the store makes no append or partial-write promises.

Backends:
    - JsonFileStore: one pretty-printed `<collection>.json` file per collection.
    - MemoryStore: in-process lists, used by the test suite and ephemeral runs.

Both backends replace a collection as a whole, so a concurrent reader sees
either the old or the new document, never a half-written one.
"""

import copy
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .errors import PersistenceFailure
from .logging_config import get_logger

PRODUCTS = "products"
REVIEWS = "reviews"
ORDERS = "orders"

log = get_logger(__name__)


class Store(ABC):
    """Interface of a durable store. Collections are lists of JSON objects."""

    @abstractmethod
    def load(self, collection: str) -> List[dict]:
        """Returns the full collection, or an empty list when it does not exist yet."""

    @abstractmethod
    def save(self, collection: str, records: List[dict]) -> None:
        """Replaces the full collection with `records`."""


class JsonFileStore(Store):
    """
    Stores every collection as a JSON array in `data_dir/<collection>.json`.

    When the products file does not exist yet and a `seed_dir` is given, the
    catalog is read from `seed_dir/products.json` instead. The seed is never
    written back until the first mutation saves the catalog.
    """

    def __init__(self, data_dir, seed_dir=None):
        self.data_dir = Path(data_dir)
        self.seed_dir = Path(seed_dir) if seed_dir else None

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def load(self, collection: str) -> List[dict]:
        path = self._path(collection)
        if not path.exists():
            seed = self.seed_dir / f"{collection}.json" if self.seed_dir else None
            if collection == PRODUCTS and seed is not None and seed.exists():
                log.info(f"[Store] {path} missing, loading seed catalog from {seed}.")
                path = seed
            else:
                return []
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            log.error(f"[Store] Cannot read {path}: {e}")
            raise PersistenceFailure(f"Failed to load {collection}") from e
        if not isinstance(data, list):
            log.error(f"[Store] {path} does not contain a JSON array.")
            raise PersistenceFailure(f"Failed to load {collection}")
        return data

    def save(self, collection: str, records: List[dict]) -> None:
        path = self._path(collection)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{collection}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, indent=2)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            log.error(f"[Store] Cannot write {path}: {e}")
            raise PersistenceFailure(f"Failed to save {collection}") from e


class MemoryStore(Store):
    """Keeps collections in memory. Loads and saves hand out deep copies."""

    def __init__(self, initial: Optional[Dict[str, List[dict]]] = None):
        self._lock = threading.Lock()
        self._collections = copy.deepcopy(initial) if initial else {}

    def load(self, collection: str) -> List[dict]:
        with self._lock:
            return copy.deepcopy(self._collections.get(collection, []))

    def save(self, collection: str, records: List[dict]) -> None:
        snapshot = copy.deepcopy(records)
        with self._lock:
            self._collections[collection] = snapshot
