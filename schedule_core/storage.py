"""
Persistent storage for events and labels.

Abstract base class and a JSON implementation. Records are plain dicts
in the stored (camelCase) schema, keyed by id, so the repositories can
be backed by any key-value store with the same shape.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import StorageError

logger = logging.getLogger(__name__)


COLLECTION_EVENTS = "events"
COLLECTION_LABELS = "labels"


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    A collection is a mapping of id -> record for one user.
    """

    @abstractmethod
    def load(self, collection: str) -> dict[str, dict]:
        """Load all records of a collection."""
        pass

    @abstractmethod
    def save(self, collection: str, records: dict[str, dict]) -> None:
        """Replace all records of a collection."""
        pass

    def get(self, collection: str, record_id: str) -> Optional[dict]:
        """Get a single record by id."""
        return self.load(collection).get(record_id)

    def put(self, collection: str, record_id: str, record: dict) -> None:
        """Save or update a single record."""
        records = self.load(collection)
        records[record_id] = record
        self.save(collection, records)

    def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        records = self.load(collection)
        if record_id not in records:
            return False
        del records[record_id]
        self.save(collection, records)
        return True


class MemoryStorage(StorageBackend):
    """In-memory storage, used for tests and one-shot command runs."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {}

    def load(self, collection: str) -> dict[str, dict]:
        return json.loads(json.dumps(self._collections.get(collection, {})))

    def save(self, collection: str, records: dict[str, dict]) -> None:
        self._collections[collection] = json.loads(json.dumps(records))


class JsonStorage(StorageBackend):
    """
    JSON file-based storage.

    Structure:
    - {storage_dir}/users/{user_id}/events.json
    - {storage_dir}/users/{user_id}/labels.json
    """

    def __init__(self, storage_dir: Path, user_id: str = "local"):
        self.storage_dir = Path(storage_dir)
        self.user_id = user_id
        self.user_dir = self.storage_dir / "users" / self._safe_name(user_id)

        try:
            self.user_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.user_dir}: {e}") from e

        logger.debug(f"Initialized JSON storage at {self.user_dir}")

    @staticmethod
    def _safe_name(name: str) -> str:
        """Convert an id to a safe file name component."""
        return name.replace(":", "_").replace("/", "_").replace("\\", "_")

    def _file(self, collection: str) -> Path:
        return self.user_dir / f"{self._safe_name(collection)}.json"

    def load(self, collection: str) -> dict[str, dict]:
        file_path = self._file(collection)
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading {collection} from {file_path}: {e}")
            raise StorageError(f"Failed to read {collection} from {file_path}.") from e

        records = data.get("records", {})
        if not isinstance(records, dict):
            raise StorageError(f"Stored {collection} in {file_path} are malformed.")
        return records

    def save(self, collection: str, records: dict[str, dict]) -> None:
        file_path = self._file(collection)
        data = {
            "collection": collection,
            "user_id": self.user_id,
            "updated": datetime.now().isoformat(),
            "records": records,
        }

        fd, tmp_name = tempfile.mkstemp(dir=self.user_dir, prefix=f".{collection}-", suffix=".json")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, file_path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Error saving {collection} to {file_path}: {e}")
            raise StorageError(f"Failed to save {collection}.") from e

        logger.debug(f"Saved {len(records)} {collection} for {self.user_id}")


def get_default_storage_dir() -> Path:
    """Get the default storage directory respecting XDG."""
    xdg_data = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))
    return Path(xdg_data) / 'schedule-events' / 'storage'


def create_storage_backend(storage_dir: Optional[Path] = None, user_id: str = "local") -> StorageBackend:
    """Factory function to create a storage backend."""
    if storage_dir is None:
        storage_dir = get_default_storage_dir()

    return JsonStorage(storage_dir, user_id)
