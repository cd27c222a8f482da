"""
Key/value artifact stores for pipeline outputs.

Artifacts are JSON documents written under fixed keys and overwritten on
every run. A batch write either replaces every key or none of them.
"""

import copy
import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..models.config import StorageConfig
from ..models.snapshot import CatalogSnapshot
from ..utils.error_handling import ArtifactStoreError
from ..utils.logging import get_logger

logger = get_logger("artifact.store")


def _serialize(key: str, payload: Dict[str, Any]) -> bytes:
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ArtifactStoreError(f"Artifact '{key}' is not JSON serializable: {e}") from e


def version_id(data: bytes) -> str:
    """Content-derived version identifier for a stored artifact."""
    return hashlib.sha256(data).hexdigest()[:16]


class InMemoryArtifactStore:
    """Artifact store kept in a dictionary, used for tests and dry runs."""

    def __init__(self):
        self._artifacts: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        payload = self._artifacts.get(key)
        return copy.deepcopy(payload) if payload is not None else None

    def put(self, key: str, payload: Dict[str, Any]) -> str:
        return self.put_batch({key: payload})[key]

    def put_batch(self, artifacts: Dict[str, Dict[str, Any]]) -> Dict[str, str]:
        encoded = {key: _serialize(key, payload) for key, payload in artifacts.items()}

        versions = {}
        for key, data in encoded.items():
            self._artifacts[key] = json.loads(data)
            versions[key] = version_id(data)
        return versions

    def keys(self) -> List[str]:
        return sorted(self._artifacts)


class FileArtifactStore:
    """
    Directory-backed artifact store.

    Each artifact is written to a temp file in the target directory and then
    moved into place with ``os.replace``, so readers never see a partial file.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ArtifactStoreError(f"Invalid artifact key: {key!r}")
        return self.directory / key

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Read an artifact.

        Returns:
            Decoded payload, or None when the key was never written.

        Raises:
            ArtifactStoreError: If the artifact exists but cannot be read.
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ArtifactStoreError(f"Cannot read artifact '{key}': {e}") from e

    def put(self, key: str, payload: Dict[str, Any]) -> str:
        return self.put_batch({key: payload})[key]

    def put_batch(self, artifacts: Dict[str, Dict[str, Any]]) -> Dict[str, str]:
        """
        Write several artifacts together.

        Every payload is serialized and staged before any key is replaced;
        a failure while staging leaves all existing artifacts untouched.

        Raises:
            ArtifactStoreError: If serialization or writing fails.
        """
        encoded = {key: _serialize(key, payload) for key, payload in artifacts.items()}
        paths = {key: self._path(key) for key in encoded}

        staged: List[Tuple[str, str]] = []
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for key, data in encoded.items():
                fd, tmp = tempfile.mkstemp(dir=str(self.directory), suffix=".tmp")
                staged.append((key, tmp))
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
        except OSError as e:
            self._discard(staged)
            raise ArtifactStoreError(f"Failed to stage artifacts: {e}") from e

        try:
            for key, tmp in staged:
                os.replace(tmp, str(paths[key]))
        except OSError as e:
            self._discard(staged)
            raise ArtifactStoreError(f"Failed to publish artifacts: {e}") from e

        versions = {key: version_id(data) for key, data in encoded.items()}
        logger.info(
            f"Wrote {len(versions)} artifacts to {self.directory}",
            extra={"keys": list(versions)},
        )
        return versions

    def _discard(self, staged: List[Tuple[str, str]]) -> None:
        for _, tmp in staged:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not remove staged file {tmp}: {e}")


def create_artifact_store(config: StorageConfig):
    """Build the artifact store selected by configuration."""
    if config.backend == "memory":
        return InMemoryArtifactStore()
    return FileArtifactStore(config.directory)


def load_catalog(store, key: str = "deals.json") -> Optional[CatalogSnapshot]:
    """
    Read the persisted catalog for downstream consumers.

    Returns:
        CatalogSnapshot, or None when no catalog has been written yet.

    Raises:
        ArtifactStoreError: If the stored catalog is malformed.
    """
    payload = store.get(key)
    if payload is None:
        return None

    try:
        return CatalogSnapshot.from_dict(payload)
    except ValueError as e:
        raise ArtifactStoreError(f"Malformed catalog at '{key}': {e}") from e
