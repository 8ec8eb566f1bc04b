"""
Local JSON File Storage

One file per key inside a data directory. Writes go to a temporary
file first and are moved into place with os.replace, so a crash in the
middle of a write leaves the previous snapshot intact.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.services.storage.interface import (
    CorruptSnapshotError,
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(SnapshotStorageInterface):
    """Snapshot storage backed by JSON files on the local disk."""

    def __init__(self, data_dir: Union[str, Path], write_attempts: int = 3):
        self._data_dir = Path(data_dir).expanduser()
        self._write_attempts = write_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """File that holds the snapshot for a key."""
        return self._data_dir / f"{key}.json"

    def load(self, key: str) -> Optional[dict[str, Any]]:
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise CorruptSnapshotError(f"Snapshot {path} is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {path}: {e}")

        if not isinstance(data, dict):
            raise CorruptSnapshotError(
                f"Snapshot {path} holds {type(data).__name__}, expected an object"
            )
        return data

    def save(self, key: str, data: dict[str, Any]) -> None:
        path = self.path_for(key)
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, max=1),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write(path, data)
        except OSError as e:
            raise StorageError(f"Failed to write snapshot {path}: {e}")
        except (TypeError, ValueError) as e:
            raise StorageError(f"Snapshot for {key} is not JSON serializable: {e}")

        logger.debug("snapshot_written", key=key, path=str(path))

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete snapshot {key}: {e}")

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, path)
        finally:
            tmp.unlink(missing_ok=True)
