"""Read-only template store.

The store snapshots a template directory into an immutable mapping of
relative POSIX path -> bytes when it is created.  Nothing writes to it
afterwards, so one instance can be shared by any number of concurrent
scaffold invocations without locking.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from functools import lru_cache
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import NamedTuple

from extkit.config import Config
from extkit.errors import TemplateNotFoundError


class WalkEntry(NamedTuple):
    """One directory or file visited by :meth:`TemplateStore.walk`."""

    source: str
    target: Path
    is_dir: bool


def _normalise(path: str) -> str:
    """Turn ``"a/./b/"`` or ``"."`` into the store's key form (``"a/b"``, ``""``)."""
    parts = [p for p in PurePosixPath(path).parts if p not in (".", "/")]
    if ".." in parts:
        raise ValueError(f"Template paths must not escape the store: {path}")
    return "/".join(parts)


class TemplateStore:
    """Immutable tree of template files.

    Args:
        files: Mapping of relative POSIX path -> content.
        directories: Extra directory paths to keep, so that empty directories
            survive; parents of every file are always included.
    """

    def __init__(
        self,
        files: Mapping[str, bytes],
        directories: frozenset[str] | set[str] = frozenset(),
    ) -> None:
        normalised = {_normalise(path): bytes(content) for path, content in files.items()}
        self._files: Mapping[str, bytes] = MappingProxyType(dict(sorted(normalised.items())))

        dirs: set[str] = {_normalise(d) for d in directories}
        for path in self._files:
            parent = PurePosixPath(path).parent
            while str(parent) != ".":
                dirs.add(str(parent))
                parent = parent.parent
        dirs.discard("")
        self._dirs = frozenset(dirs)

    @classmethod
    def from_directory(cls, root: str | Path) -> "TemplateStore":
        """Load every file (and directory) below *root*."""
        root_path = Path(root)
        if not root_path.is_dir():
            raise TemplateNotFoundError(str(root_path))

        files: dict[str, bytes] = {}
        directories: set[str] = set()
        for path in sorted(root_path.rglob("*")):
            rel = path.relative_to(root_path).as_posix()
            if "__pycache__" in rel.split("/"):
                continue
            if path.is_dir():
                directories.add(rel)
            elif path.is_file():
                files[rel] = path.read_bytes()
        return cls(files, directories)

    # -- Lookup ------------------------------------------------------------

    def open(self, path: str) -> bytes:
        """Return the content stored at *path*."""
        key = _normalise(path)
        try:
            return self._files[key]
        except KeyError:
            raise TemplateNotFoundError(key) from None

    def exists(self, path: str) -> bool:
        key = _normalise(path)
        return key in self._files or self.is_dir(key)

    def is_dir(self, path: str) -> bool:
        key = _normalise(path)
        return key == "" or key in self._dirs

    def files(self, prefix: str = "") -> list[str]:
        """Sorted list of file paths under *prefix*."""
        key = _normalise(prefix)
        if not key:
            return list(self._files)
        return [p for p in self._files if p.startswith(f"{key}/")]

    def subdirectories(self, path: str = "") -> list[str]:
        """Names of the immediate subdirectories of *path*."""
        key = _normalise(path)
        depth = len(PurePosixPath(key).parts) if key else 0
        names = {
            PurePosixPath(d).parts[depth]
            for d in self._dirs
            if (not key or d.startswith(f"{key}/")) and len(PurePosixPath(d).parts) > depth
        }
        return sorted(names)

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and _normalise(path) in self._files

    # -- Traversal ---------------------------------------------------------

    def walk(
        self,
        subtree: str,
        target_root: str | Path,
        *,
        skip_empty_dirs: bool = False,
    ) -> Iterator[WalkEntry]:
        """Enumerate every directory and file below *subtree*.

        Each entry maps a store path to the matching path under
        *target_root*.  Directories are yielded before their contents and
        entries are sorted.  With ``skip_empty_dirs`` a directory containing
        no files (at any depth) is never yielded.

        An unknown *subtree* yields nothing.
        """
        key = _normalise(subtree)
        if not self.is_dir(key):
            return
        prefix = f"{key}/" if key else ""
        target_base = Path(target_root)

        dirs = sorted(d for d in self._dirs if d.startswith(prefix))
        if skip_empty_dirs:
            dirs = [d for d in dirs if any(f.startswith(f"{d}/") for f in self._files)]
        files = [f for f in self._files if f.startswith(prefix)]

        entries = [(d, True) for d in dirs] + [(f, False) for f in files]
        # Sorting on path parts keeps every directory ahead of its contents.
        entries.sort(key=lambda item: PurePosixPath(item[0]).parts)
        for source, is_dir in entries:
            rel = source[len(prefix):]
            yield WalkEntry(source, target_base.joinpath(*rel.split("/")), is_dir)


@lru_cache(maxsize=None)
def load_store(root: str) -> TemplateStore:
    """Load and cache the store for *root*; one snapshot per directory per process."""
    return TemplateStore.from_directory(root)


def default_store() -> TemplateStore:
    """The bundled template store, loaded on first use."""
    return load_store(str(Config().resolved_template_dir))
