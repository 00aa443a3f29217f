"""Merge strategies for files that already exist in the target directory.

Each strategy is a pure function ``(original, new, path) -> bytes`` combining
the bytes already on disk with the bytes coming from the template store.

* YAML is merged textually: the fragment is appended after the original.
* JSON package manifests are merged field by field.
* Code is replaced by the templated version.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from extkit.errors import MergeError

from .formatters import dump_json

MergeStrategy = Callable[[bytes, bytes, Path], bytes]

DEPENDENCY_FIELDS = ("dependencies", "devDependencies")

_LEADING_SEPARATOR = re.compile(rb"\A---[ \t]*(?:\r?\n|\Z)")


# ---------------------------------------------------------------------------
# YAML
# ---------------------------------------------------------------------------


def merge_yaml(original: bytes, new: bytes, path: Path = Path("manifest.yml")) -> bytes:
    """Append the *new* YAML fragment after *original*.

    A leading ``---`` document marker is removed from the fragment first, so
    ``b"x: 1\\n"`` merged with ``b"---\\ny: 2\\n"`` gives ``b"x: 1\\ny: 2\\n"``.
    No semantic merge happens; duplicated keys are left for the reader.
    """
    try:
        list(yaml.safe_load_all(original))
    except yaml.YAMLError as exc:
        raise MergeError(str(path), f"existing file is not valid YAML ({exc})") from exc

    fragment = _LEADING_SEPARATOR.sub(b"", new, count=1)
    if original and not original.endswith(b"\n"):
        original += b"\n"
    return original + fragment


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _load_object(content: bytes, path: Path, which: str) -> dict[str, Any]:
    try:
        data = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MergeError(str(path), f"{which} content is not valid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise MergeError(str(path), f"{which} content is not a JSON object")
    return data


def merge_json(original: bytes, new: bytes, path: Path = Path("package.json")) -> bytes:
    """Merge two package manifests.

    ``dependencies`` and ``devDependencies`` are unioned and the new version
    wins on a collision.  Every other top-level field keeps its original value
    and is only taken from *new* when the original does not have it.
    """
    merged = _load_object(original, path, "existing")
    incoming = _load_object(new, path, "template")

    for key, value in incoming.items():
        if key in DEPENDENCY_FIELDS:
            current = merged.get(key)
            if current is None:
                current = {}
            if not isinstance(current, dict) or not isinstance(value, dict):
                raise MergeError(str(path), f"'{key}' must be an object")
            merged[key] = {**current, **value}
        elif key not in merged:
            merged[key] = value

    return dump_json(merged).encode("utf-8")


# ---------------------------------------------------------------------------
# Code
# ---------------------------------------------------------------------------


def merge_code(original: bytes, new: bytes, path: Path = Path("index.js")) -> bytes:
    """Source files are emitted fresh; the templated content replaces the old."""
    return new


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

STRATEGIES: dict[str, MergeStrategy] = {
    ".yml": merge_yaml,
    ".yaml": merge_yaml,
    ".json": merge_json,
}


def strategy_for(path: Path) -> MergeStrategy:
    return STRATEGIES.get(Path(path).suffix.lower(), merge_code)


def merge_content(path: Path, original: bytes, new: bytes) -> bytes:
    """Merge *new* into *original* using the strategy for *path*'s file class."""
    return strategy_for(path)(original, new, Path(path))
