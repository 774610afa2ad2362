"""
Atomic persistence for the chain state.

- atomic write (tmp file + fsync + os.replace + directory fsync)
- rolling backups (.bak1, .bak2, ...) rotated before every save
- load fallback: primary -> bak1 -> bak2 -> ...
- journal marker (.journal) present only while a save is in flight

State is stored as one canonical JSON snapshot; the chain keeps it
small enough that rewriting it per transaction is fine.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .codec import canonical_json_bytes

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PathLike = Union[str, Path]


def _fsync_dir(dir_path: Path) -> None:
    # not supported on every platform (e.g. Windows)
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except (AttributeError, OSError):
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp_path), str(path))
        _fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def read_json(path: Path) -> Optional[JsonDict]:
    if not path.exists():
        return None
    try:
        obj = json.loads(path.read_bytes().decode("utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.warning("Unreadable state file %s: %s", path, e)
        return None
    return obj if isinstance(obj, dict) else None


class AtomicStore:
    def __init__(self, path: PathLike, *, keep_backups: int = 2):
        self.path = Path(path)
        self.keep_backups = max(0, int(keep_backups))

    @property
    def journal_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".journal")

    def backup_path(self, i: int) -> Path:
        return self.path.with_suffix(self.path.suffix + f".bak{i}")

    def candidates(self) -> List[Path]:
        return [self.path] + [self.backup_path(i) for i in range(1, self.keep_backups + 1)]

    def exists(self) -> bool:
        return any(p.exists() for p in self.candidates())

    def interrupted(self) -> bool:
        """True if the last save never cleared its journal marker."""
        return self.journal_path.exists()

    def load(self) -> Optional[JsonDict]:
        if self.interrupted():
            log.warning("State journal present at %s; last save may be incomplete", self.journal_path)
        for p in self.candidates():
            obj = read_json(p)
            if obj is not None:
                if p != self.path:
                    log.warning("Loaded state from backup %s", p)
                return obj
        return None

    def _rotate_backups(self) -> None:
        if self.keep_backups <= 0:
            return
        for i in range(self.keep_backups, 1, -1):
            src = self.backup_path(i - 1)
            if src.exists():
                os.replace(str(src), str(self.backup_path(i)))
        if self.path.exists():
            os.replace(str(self.path), str(self.backup_path(1)))

    def save(self, state: JsonDict) -> None:
        data = canonical_json_bytes(state)
        atomic_write_bytes(self.journal_path, b"1")
        self._rotate_backups()
        atomic_write_bytes(self.path, data)
        self.journal_path.unlink()
