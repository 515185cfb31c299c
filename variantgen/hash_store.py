"""
HashStore - Persisted mapping of source-relative paths to content hashes.
"""

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from .type_manifest import TypeManifest


class HashStore:
    """
    Content-hash cache deciding whether a source image has changed.

    Keys are source-relative posix paths, values are lowercase MD5 hex
    digests. Every mutation is written through to disk immediately and
    regenerates the type manifest. Mutations are serialized with a lock
    so concurrent per-file completions never lose an update.
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        filepath: str,
        type_manifest: Optional[TypeManifest] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize hash store.

        Args:
            filepath: JSON file holding the persisted mapping
            type_manifest: Optional manifest regenerated on each mutation
            logger: Optional logger instance
        """
        self.filepath = filepath
        self.type_manifest = type_manifest
        self.logger = logger or logging.getLogger(__name__)
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self) -> 'HashStore':
        """
        Read the persisted mapping.

        A missing or malformed cache file is not fatal: the store starts
        empty and every source file is reprocessed.
        """
        path = Path(self.filepath)
        entries: Dict[str, str] = {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            self.logger.debug(f"No cache file at {self.filepath}, starting empty")
            data = {}
        except (OSError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable cache file {self.filepath}: {e}")
            data = {}

        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(key, str) and isinstance(value, str):
                    entries[key] = value
        else:
            self.logger.warning(f"Ignoring malformed cache file {self.filepath}")

        with self._lock:
            self._entries = entries
        return self

    @classmethod
    def hash_of(cls, filepath: str) -> str:
        """
        Compute the content hash of a file.

        Returns:
            Lowercase hex digest, or '' when the file cannot be read
        """
        digest = hashlib.md5()
        try:
            with open(filepath, 'rb') as f:
                for chunk in iter(lambda: f.read(cls.CHUNK_SIZE), b''):
                    digest.update(chunk)
        except OSError:
            return ''
        return digest.hexdigest()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def set(self, key: str, digest: str) -> None:
        """Record the hash for a source file and persist."""
        with self._lock:
            self._entries[key] = digest
            self._persist()

    def delete(self, key: str) -> None:
        """Remove the entry for a source file (if any) and persist."""
        with self._lock:
            self._entries.pop(key, None)
            self._persist()

    def discard(self, key: str) -> bool:
        """
        Remove an entry only if it is present.

        Returns:
            True if this call removed the entry
        """
        with self._lock:
            if key not in self._entries:
                return False
            del self._entries[key]
            self._persist()
            return True

    def _persist(self) -> None:
        # Caller holds the lock. Write failures propagate to the pass.
        path = Path(self.filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self._entries, f, indent=2, sort_keys=True)

        if self.type_manifest is not None:
            self.type_manifest.write(self._entries.keys())
