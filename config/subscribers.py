"""
Subscriber Registry

Persists the set of subscriber ids (chat ids) as a JSON array of integers.
The file is the single source of truth: every read goes back to disk, and
mutations are serialized with a lock and written atomically.
"""

import json
import logging
import threading
from enum import Enum
from pathlib import Path

from utils.files import atomic_write

logger = logging.getLogger(__name__)


class RegistryIOError(Exception):
    """The registry file could not be read or written."""


class Outcome(str, Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    REMOVED = "removed"
    NOT_PRESENT = "not_present"


class SubscriberRegistry:
    """
    Persisted set of subscriber ids.

    ``add`` and ``remove`` are mutually exclusive (read-modify-write under a
    lock). ``list_ids`` takes no lock; atomic replacement of the file means it
    sees the state before or after any mutation, never a partial write.
    """

    def __init__(self, directory, filename="ids.json"):
        self.path = Path(directory) / filename
        self._lock = threading.Lock()

    def _read(self):
        if not self.path.exists():
            return set()

        try:
            raw = self.path.read_text(encoding="utf-8")
            data = json.loads(raw) if raw.strip() else []
        except (OSError, ValueError) as e:
            raise RegistryIOError(f"Could not read {self.path}: {e}") from e

        if not isinstance(data, list) or not all(
            isinstance(item, int) and not isinstance(item, bool) for item in data
        ):
            raise RegistryIOError(f"{self.path} does not contain a JSON array of integers")

        return set(data)

    def _write(self, ids):
        try:
            atomic_write(self.path, json.dumps(sorted(ids), indent=2))
        except OSError as e:
            raise RegistryIOError(f"Could not write {self.path}: {e}") from e

    def list_ids(self):
        """
        Get all subscriber ids.

        Returns:
            set: Current ids. Empty if the file is missing or unreadable.
        """
        try:
            return self._read()
        except RegistryIOError as e:
            logger.error(f"Subscriber registry unreadable, treating as empty: {e}")
            return set()

    def add(self, subscriber_id):
        """
        Add a subscriber.

        Returns:
            Outcome: ADDED, or ALREADY_PRESENT (no write performed).

        Raises:
            RegistryIOError: If the file cannot be read or written.
        """
        with self._lock:
            ids = self._read()
            if subscriber_id in ids:
                return Outcome.ALREADY_PRESENT
            ids.add(subscriber_id)
            self._write(ids)

        logger.info(f"Subscriber {subscriber_id} added ({len(ids)} total)")
        return Outcome.ADDED

    def remove(self, subscriber_id):
        """
        Remove a subscriber.

        Returns:
            Outcome: REMOVED, or NOT_PRESENT (no write performed).

        Raises:
            RegistryIOError: If the file cannot be read or written.
        """
        with self._lock:
            ids = self._read()
            if subscriber_id not in ids:
                return Outcome.NOT_PRESENT
            ids.discard(subscriber_id)
            self._write(ids)

        logger.info(f"Subscriber {subscriber_id} removed ({len(ids)} total)")
        return Outcome.REMOVED

    def count(self):
        return len(self.list_ids())
