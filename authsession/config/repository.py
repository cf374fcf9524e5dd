from __future__ import annotations

import fcntl
import json
import logging
import os
import stat
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol


class KeyValueStorage(Protocol):
    """Origin-scoped string key/value medium (the local-storage analogue).

    Multi-key writes and deletes are applied as one operation so paired
    entries never become visible half-written.
    """

    def get(self, key: str) -> str | None: ...

    def set_many(self, items: Mapping[str, str]) -> None: ...

    def delete_many(self, keys: Iterable[str]) -> None: ...


class MemoryStorage:
    """In-process storage; contents live as long as the object."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set_many(self, items: Mapping[str, str]) -> None:
        self._data.update({k: str(v) for k, v in items.items()})

    def delete_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileStorage:
    """Key/value storage persisted in a JSON file, namespaced by origin.

    The file holds ``{namespace: {key: value}}`` so several origins can share
    one file without seeing each other's entries. Every mutation rewrites the
    file atomically under an advisory lock.
    """

    def __init__(self, path: str | os.PathLike[str], namespace: str = "default"):
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = os.path.expanduser(str(path))
        self.namespace = namespace

    def get(self, key: str) -> str | None:
        value = self._load_namespace().get(key)
        return value if isinstance(value, str) else None

    def set_many(self, items: Mapping[str, str]) -> None:
        with self._locked():
            data = self._load_all()
            ns = data.setdefault(self.namespace, {})
            ns.update({k: str(v) for k, v in items.items()})
            self._atomic_write(data)

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._locked():
            data = self._load_all()
            ns = data.get(self.namespace)
            if not ns:
                return
            changed = False
            for key in keys:
                if key in ns:
                    del ns[key]
                    changed = True
            if not ns:
                del data[self.namespace]
            if changed:
                self._atomic_write(data)

    def _load_namespace(self) -> dict[str, object]:
        ns = self._load_all().get(self.namespace)
        return ns if isinstance(ns, dict) else {}

    def _load_all(self) -> dict[str, dict[str, object]]:
        """Load the whole file, treating a missing or corrupt file as empty."""
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except ValueError as e:
            logging.error(f"💥 Storage file unreadable, ignoring contents: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, dict)}

    def _prepare_dir(self) -> None:
        """Create the storage directory if needed (owner-only access)."""
        storage_dir = os.path.dirname(self.path)
        if storage_dir and not os.path.exists(storage_dir):
            os.makedirs(storage_dir, exist_ok=True)
            try:
                if stat.S_IMODE(os.lstat(storage_dir).st_mode) != 0o700:
                    os.chmod(storage_dir, 0o700)
            except (PermissionError, FileNotFoundError):
                pass

    def _locked(self) -> _FileLock:
        self._prepare_dir()
        return _FileLock(Path(self.path).with_suffix(".lock"))

    def _atomic_write(self, data: dict[str, object]) -> None:
        """Write ``data`` to a temp file and rename it over the storage file."""
        storage_path = Path(self.path)
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=storage_path.parent,
                prefix=f".{storage_path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                json.dump(data, tmp, indent=2, sort_keys=True)
                tmp.flush()
                os.fsync(tmp.fileno())
                temp_path = tmp.name
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
            logging.debug("💾 Storage saved atomically")
        except (OSError, ValueError) as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            logging.error(f"💥 Atomic storage save failed: {type(e).__name__}")
            raise


class _FileLock:
    """Exclusive ``flock`` held for the duration of a ``with`` block."""

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        self._fh = None

    def __enter__(self) -> _FileLock:
        self._fh = open(self.lock_path, "w", encoding="utf-8")
        fcntl.flock(self._fh.fileno(), fcntl.LOCK_EX)
        return self

    def __exit__(self, *_exc: object) -> None:
        if self._fh is None:
            return
        try:
            fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
        finally:
            self._fh.close()
            self._fh = None
