"""Content formatters keyed by file extension.

A formatter takes the generated text and the destination path and returns the
text to write, raising :class:`~extkit.errors.FormatError` when the content
is not valid for its file type.  Extensions with no registered formatter are
written unchanged.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from extkit.errors import FormatError

Formatter = Callable[[str, Path], str]

# Package manifest maps that npm keeps sorted by package name.
SORTED_MAPS = ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies")


def _normalise_text(content: str) -> str:
    lines = [line.rstrip() for line in content.splitlines()]
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) + "\n" if lines else ""


def dump_json(data: Any) -> str:
    """Serialise *data* the way every generated JSON file is written."""
    if isinstance(data, dict):
        data = {
            key: dict(sorted(value.items())) if key in SORTED_MAPS and isinstance(value, dict) else value
            for key, value in data.items()
        }
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def format_json(content: str, path: Path) -> str:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise FormatError(str(path), f"invalid JSON ({exc})") from exc
    return dump_json(data)


def format_yaml(content: str, path: Path) -> str:
    try:
        list(yaml.safe_load_all(content))
    except yaml.YAMLError as exc:
        raise FormatError(str(path), f"invalid YAML ({exc})") from exc
    return _normalise_text(content)


def format_source(content: str, path: Path) -> str:
    """Strip trailing whitespace and end with exactly one newline."""
    return _normalise_text(content)


DEFAULT_FORMATTERS: Mapping[str, Formatter] = {
    ".json": format_json,
    ".yml": format_yaml,
    ".yaml": format_yaml,
    ".js": format_source,
    ".jsx": format_source,
    ".ts": format_source,
    ".tsx": format_source,
    ".graphql": format_source,
    ".md": format_source,
}


class FormatterRegistry:
    """Formatters looked up by the suffix of the destination file."""

    def __init__(self, formatters: Mapping[str, Formatter] | None = None) -> None:
        self._formatters: dict[str, Formatter] = dict(
            DEFAULT_FORMATTERS if formatters is None else formatters
        )

    def register(self, suffix: str, formatter: Formatter) -> None:
        self._formatters[suffix.lower()] = formatter

    def get(self, path: Path) -> Formatter | None:
        return self._formatters.get(Path(path).suffix.lower())

    def format(self, path: Path, content: str) -> str:
        formatter = self.get(path)
        if formatter is None:
            return content
        return formatter(content, Path(path))

    def __contains__(self, suffix: object) -> bool:
        return suffix in self._formatters
