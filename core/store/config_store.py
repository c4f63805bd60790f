import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from core.exceptions import StoreError
from core.result import Result

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class ConfigStore:
    """
    Interface for the key-value backend holding proxy configuration.

    Both operations are atomic per key and never raise: failures come back as
    a failed ``Result`` wrapping a ``StoreError``.
    """

    def load(self, key: str, default: Any = None) -> Result:
        """Return the stored value for ``key``, or ``default`` if absent."""
        raise NotImplementedError

    def save(self, key: str, value: Any) -> Result:
        """Persist ``value`` under ``key``, replacing any previous value."""
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


class InMemoryConfigStore(ConfigStore):
    """In-process store. Values are kept as JSON text so callers never share objects with it."""

    def __init__(self):
        self.state: Dict[str, str] = {}

    def load(self, key, default=None):
        if key not in self.state:
            return Result.success(default)
        return Result.success(json.loads(self.state[key]))

    def save(self, key, value):
        try:
            self.state[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            return Result.failure(StoreError(f"Value is not JSON serializable: {e}", key))
        return Result.success()


class JsonFileConfigStore(ConfigStore):
    """
    Durable store keeping one ``<key>.json`` file per key under ``directory``.

    Writes land in a temp file that is renamed over the target, so readers see
    either the previous or the new document.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def describe(self):
        return f"{type(self).__name__}({self.directory})"

    def _path_for(self, key: str) -> Path:
        if not key or not _KEY_PATTERN.match(key):
            raise StoreError("Invalid store key", key)
        return self.directory / f"{key}.json"

    def load(self, key, default=None):
        try:
            path = self._path_for(key)
            with path.open("r", encoding="utf-8") as f:
                return Result.success(json.load(f))
        except FileNotFoundError:
            return Result.success(default)
        except StoreError as e:
            return Result.failure(e)
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to read {key}: {e}")
            return Result.failure(StoreError(f"Failed to read record: {e}", key))

    def save(self, key, value):
        try:
            path = self._path_for(key)
            payload = json.dumps(value, indent=2)
        except StoreError as e:
            return Result.failure(e)
        except (TypeError, ValueError) as e:
            return Result.failure(StoreError(f"Value is not JSON serializable: {e}", key))

        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            return Result.failure(StoreError(f"Failed to write record: {e}", key))
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    logger.warning(f"Could not remove temp file {tmp_name}: {e}")
        return Result.success()


def create_store(store_path: str = None) -> ConfigStore:
    """Pick the backend: a file store when a directory is configured, memory otherwise."""
    if store_path:
        return JsonFileConfigStore(store_path)
    return InMemoryConfigStore()
