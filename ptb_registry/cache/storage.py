"""
Cache Storage: Named Slots for the Registry Snapshot

Storage backends:
- InMemoryCacheStorage: process memory (default, tests)
- DiskCacheStorage: one JSON file per slot, survives restarts

Backends store opaque text. Parsing and freshness checks belong to
RegistryCache; a backend only gets, sets and deletes.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger("ptb-registry")


class CacheStorage(Protocol):
    """
    Abstract slot store.

    Implement this protocol to keep the registry snapshot somewhere else
    (Redis, a shared volume, ...).
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored text, or None when the slot is empty."""
        ...

    def set(self, key: str, value: str) -> None:
        """Replace the slot content."""
        ...

    def delete(self, key: str) -> None:
        """Empty the slot. Deleting an empty slot is a no-op."""
        ...


class InMemoryCacheStorage:
    """Slots held in a dict for the life of the process."""

    def __init__(self):
        self._slots: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        self._slots[key] = value

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._slots


class DiskCacheStorage:
    """
    Filesystem-backed slots.

    Directory structure:
    root_dir/
        {safe_key}.json
    """

    def __init__(self, root_dir: str):
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"[CACHE] Initialized DiskCacheStorage at {self.root}")

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^\w\-]", "_", key) or "slot"
        return self.root / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[CACHE] Unreadable slot {path.name}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def __contains__(self, key: str) -> bool:
        return self._path(key).exists()
