"""Shared pytest fixtures for the extkit test suite.

Provides reusable fixtures for:
- The bundled template store and a small hand-built store
- Scaffold requests and descriptors
- Recursive snapshots of a directory tree, for rollback assertions
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from extkit.config import Config
from extkit.models import ProjectDescriptor, ScaffoldRequest
from extkit.scaffolder.store import TemplateStore, default_store


# ---------------------------------------------------------------------------
# Tree snapshots
# ---------------------------------------------------------------------------

def snapshot_tree(root: Path) -> dict[str, Any]:
    """Capture every directory and file below *root* (and *root* itself).

    Directories map to ``None``, files to their bytes.  A missing root gives
    an empty dict, so comparing snapshots also checks the root's existence.
    """
    if not root.exists():
        return {}
    tree: dict[str, Any] = {".": None}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        tree[rel] = None if path.is_dir() else path.read_bytes()
    return tree


@pytest.fixture
def tree_snapshot():
    """The :func:`snapshot_tree` helper, as a fixture."""
    return snapshot_tree


# ---------------------------------------------------------------------------
# Template stores
# ---------------------------------------------------------------------------

SAMPLE_PACKAGE_JSON: dict[str, Any] = {
    "name": "widget-extension",
    "license": "MIT",
    "scripts": {"build": "bundle"},
    "dependencies": {"widget-sdk": "^1.0.0", "react": "^17.0.2"},
    "devDependencies": {"typescript": "^4.5.4"},
}


def make_sample_store() -> TemplateStore:
    """A small store with one ``widget`` type and a generic subtree."""
    return TemplateStore(
        {
            "generic/README.md.j2": b"# {{ type }}\n\nEntry: {{ main_entry }}\n",
            "generic/config/settings.yml.j2": b"type: {{ formatted_type }}\n",
            "generic/tsconfig.json.j2": (
                b"{% if uses_typescript %}{\"include\": [\"{{ source_dir }}\"]}{% endif %}\n"
            ),
            "generic/LICENSE": b"not a template\n",
            "widget/react.js": b"// widget react body\n",
            "widget/javascript.js": b"// widget javascript body\n",
            "widget/src/styles/main.css": b"body {}\n",
            "widget/src/util.js": b"export const util = 1;\n",
            "widget/package.json": json.dumps(SAMPLE_PACKAGE_JSON).encode(),
            "widget/widget.yml": b"---\nextension_points:\n  - Widget::Render\n",
            "widget/notes.txt": b"ignored by the manifest merge\n",
        },
        directories={"widget/src/empty", "generic/unused"},
    )


@pytest.fixture
def sample_store() -> TemplateStore:
    return make_sample_store()


@pytest.fixture
def sample_package_json() -> dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_PACKAGE_JSON))


@pytest.fixture
def bundled_store() -> TemplateStore:
    return default_store()


# ---------------------------------------------------------------------------
# Requests & descriptors
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Target directory for a scaffold (not created)."""
    return tmp_path / "workspace" / "ext1"


@pytest.fixture
def widget_request(project_root: Path) -> ScaffoldRequest:
    return ScaffoldRequest(
        type="widget",
        renderer_name="widget-react",
        template_id="typescript-react",
        root_dir=project_root,
    )


@pytest.fixture
def widget_descriptor(widget_request: ScaffoldRequest) -> ProjectDescriptor:
    return ProjectDescriptor.from_request(widget_request)


@pytest.fixture
def checkout_request(project_root: Path) -> dict[str, Any]:
    return {
        "type": "checkout-ui",
        "renderer_name": "@shopify/checkout-ui-extensions-react",
        "template_id": "typescript-react",
        "root_dir": str(project_root),
    }
