"""Record of filesystem changes made by one task, for rollback.

Tasks perform every mutation through a :class:`FileJournal`.  The journal
remembers directories and files it created and keeps a :class:`Snapshot` of
the original bytes of any file it overwrote, so :meth:`FileJournal.revert`
can put the tree back exactly as it was.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CreatedDir:
    path: Path

    def revert(self) -> None:
        if self.path.is_dir():
            shutil.rmtree(self.path)


@dataclass(frozen=True)
class CreatedFile:
    path: Path

    def revert(self) -> None:
        self.path.unlink(missing_ok=True)


@dataclass(frozen=True)
class Snapshot:
    """Original content of a file that was overwritten in place."""

    path: Path
    original: bytes

    def revert(self) -> None:
        self.path.write_bytes(self.original)


Change = CreatedDir | CreatedFile | Snapshot


class FileJournal:
    """Performs and records filesystem mutations."""

    def __init__(self) -> None:
        self._changes: list[Change] = []
        self._touched: set[Path] = set()

    @property
    def changes(self) -> list[Change]:
        return list(self._changes)

    @property
    def created_files(self) -> list[Path]:
        return [c.path for c in self._changes if isinstance(c, CreatedFile)]

    @property
    def created_dirs(self) -> list[Path]:
        return [c.path for c in self._changes if isinstance(c, CreatedDir)]

    @property
    def snapshots(self) -> list[Snapshot]:
        return [c for c in self._changes if isinstance(c, Snapshot)]

    # -- Mutations ---------------------------------------------------------

    def make_dirs(self, path: Path) -> Path:
        """Create *path* and any missing parents, recording each one created."""
        path = Path(path)
        missing: list[Path] = []
        current = path
        while not current.exists():
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent
        for directory in reversed(missing):
            directory.mkdir()
            self._changes.append(CreatedDir(directory))
        if not path.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
        return path

    def write_bytes(self, path: Path, content: bytes) -> Path:
        """Write *content* to *path*, snapshotting an existing file first."""
        path = Path(path)
        self.make_dirs(path.parent)
        if path.exists():
            if path not in self._touched:
                self._changes.append(Snapshot(path, path.read_bytes()))
        else:
            # Recorded before writing so a half-written file is still removed.
            self._changes.append(CreatedFile(path))
        self._touched.add(path)
        path.write_bytes(content)
        return path

    def write_text(self, path: Path, content: str) -> Path:
        return self.write_bytes(path, content.encode("utf-8"))

    # -- Rollback ----------------------------------------------------------

    def revert(self) -> None:
        """Undo every recorded change, newest first.

        All changes are attempted even if some fail; the first failure is
        raised afterwards.  The journal is empty once this returns.
        """
        errors: list[OSError] = []
        for change in reversed(self._changes):
            try:
                change.revert()
            except OSError as exc:
                errors.append(exc)
        self._changes.clear()
        self._touched.clear()
        if errors:
            raise errors[0]
