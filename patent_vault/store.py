"""In-memory patent collection shared by the web UI and the API."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator

from .models import Patent

logger = logging.getLogger(__name__)


class PatentNotFoundError(KeyError):
    """Raised when no record carries the requested id."""


class DuplicateIdError(ValueError):
    """Raised when adding a record whose id is already stored."""


class PatentStore:
    """Ordered, memory-only collection of patents.

    Newest records sit at the front. Nothing is written to disk; a restart
    starts from an empty (or seeded) store.
    """

    def __init__(self, patents: Iterable[Patent] | None = None):
        self._patents: list[Patent] = []
        self._lock = threading.RLock()
        for patent in patents or []:
            self._check_new_id(patent)
            self._patents.append(patent)

    def __len__(self) -> int:
        with self._lock:
            return len(self._patents)

    def __iter__(self) -> Iterator[Patent]:
        return iter(self.list())

    @contextmanager
    def transaction(self):
        """Hold the store lock across several calls, e.g. check-then-insert.

        The lock is re-entrant, so store methods can be called inside the block.
        """
        with self._lock:
            yield self

    def list(self) -> list[Patent]:
        """Snapshot of all records in store order."""
        with self._lock:
            return list(self._patents)

    def get(self, patent_id) -> Patent | None:
        with self._lock:
            index = self._index_of(patent_id)
            return self._patents[index] if index is not None else None

    def add(self, patent: Patent) -> Patent:
        """Insert a single record at the front."""
        with self._lock:
            self._check_new_id(patent)
            self._patents.insert(0, patent)
        logger.info(f"Added patent {patent.id} ({patent.name})")
        return patent

    def prepend_many(self, patents: list[Patent]) -> None:
        """Insert a batch at the front, keeping the batch's own order."""
        if not patents:
            return
        with self._lock:
            seen = set()
            for patent in patents:
                self._check_new_id(patent)
                if str(patent.id) in seen:
                    raise DuplicateIdError(f"Duplicate id in batch: {patent.id}")
                seen.add(str(patent.id))
            self._patents[:0] = patents
        logger.info(f"Added {len(patents)} patents")

    def replace(self, patent: Patent) -> Patent:
        """Replace the record with the same id."""
        with self._lock:
            index = self._index_of(patent.id)
            if index is None:
                raise PatentNotFoundError(patent.id)
            self._patents[index] = patent
        logger.info(f"Updated patent {patent.id}")
        return patent

    def remove(self, patent_id) -> Patent:
        """Delete a record by id and return it."""
        with self._lock:
            index = self._index_of(patent_id)
            if index is None:
                raise PatentNotFoundError(patent_id)
            removed = self._patents.pop(index)
        logger.info(f"Deleted patent {removed.id} ({removed.name})")
        return removed

    def _index_of(self, patent_id) -> int | None:
        # Ids may arrive as numbers from spreadsheets and strings from URLs
        key = str(patent_id)
        for i, patent in enumerate(self._patents):
            if str(patent.id) == key:
                return i
        return None

    def _check_new_id(self, patent: Patent):
        if self._index_of(patent.id) is not None:
            raise DuplicateIdError(f"Patent id already stored: {patent.id}")
