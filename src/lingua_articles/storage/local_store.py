"""Local key-value persistence (one JSON file per key, fcntl.flock + atomic write).

This is the legacy store the browser client used before the table backend
existed: string values under flat keys namespaced by identity.
"""

import fcntl
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def articles_key(identity: str) -> str:
    return f"savedArticles_{identity}"


def stats_key(identity: str) -> str:
    return f"userStats_{identity}"


def settings_key(identity: str) -> str:
    return f"userSettings_{identity}"


def legacy_keys(identity: str) -> tuple[str, str, str]:
    """All keys the legacy client wrote for one identity."""
    return articles_key(identity), stats_key(identity), settings_key(identity)


class LocalStore:
    """Synchronous string key-value store rooted at a directory.

    Args:
        root: Directory holding one ``<key>.json`` file per key.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            value = f.read()
            fcntl.flock(f, fcntl.LOCK_UN)
        return value

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.root, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            tmp.write(value)
        os.replace(tmp.name, path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
        logger.debug("local_key_removed", key=key)

    def has(self, key: str) -> bool:
        return self._path(key).exists()

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a stored JSON value, or return ``default`` when absent.

        Raises:
            json.JSONDecodeError: The stored value is not valid JSON.
        """
        raw = self.get_item(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False, default=str))
