"""Tests for the individual scaffolding tasks (extkit.scaffolder.tasks).

Each task is exercised on its own against the sample store: its forward
action, its undo after success, its undo after a partial failure, and its
undo when it never ran.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from extkit.config import Config
from extkit.errors import FormatError, MergeError, TemplateNotFoundError
from extkit.models import ProjectDescriptor
from extkit.scaffolder.formatters import FormatterRegistry
from extkit.scaffolder.store import TemplateStore
from extkit.scaffolder.tasks import (
    CreateRoot,
    EmitSourceFiles,
    MergeManifests,
    RenderGenericTemplates,
)
from extkit.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit


def _render_task(
    store: TemplateStore,
    descriptor: ProjectDescriptor,
    formatters: FormatterRegistry | None = None,
) -> RenderGenericTemplates:
    return RenderGenericTemplates(
        store, TemplateRenderer(store), formatters or FormatterRegistry(), descriptor, Config()
    )


# ---------------------------------------------------------------------------
# CreateRoot
# ---------------------------------------------------------------------------

class TestCreateRoot:
    def test_creates_root_and_parents(self, project_root: Path):
        CreateRoot(project_root).do()
        assert project_root.is_dir()

    def test_undo_removes_created_parents(self, project_root: Path, tmp_path: Path):
        task = CreateRoot(project_root)
        task.do()
        (project_root / "file.txt").write_text("later")
        task.undo()
        assert not (tmp_path / "workspace").exists()

    def test_existing_root_left_alone(self, tmp_path: Path, tree_snapshot):
        (tmp_path / "existing.txt").write_text("keep")
        before = tree_snapshot(tmp_path)
        task = CreateRoot(tmp_path)
        task.do()
        task.undo()
        assert tree_snapshot(tmp_path) == before

    def test_undo_without_do(self, project_root: Path):
        CreateRoot(project_root).undo()
        assert not project_root.exists()


# ---------------------------------------------------------------------------
# EmitSourceFiles
# ---------------------------------------------------------------------------

class TestEmitSourceFiles:
    def test_writes_entry_point(self, sample_store, widget_descriptor, project_root):
        project_root.mkdir(parents=True)
        EmitSourceFiles(sample_store, widget_descriptor, Config()).do()

        entry = project_root / "src" / "index.tsx"
        assert entry.read_bytes() == b"// widget react body\n"
        assert widget_descriptor.entries["main"] == "src/index.tsx"

    def test_javascript_body_for_plain_template(self, sample_store, project_root):
        project_root.mkdir(parents=True)
        descriptor = ProjectDescriptor(
            type="widget", root_dir=project_root, template_id="typescript", renderer_name="r"
        )
        EmitSourceFiles(sample_store, descriptor, Config()).do()
        assert (project_root / "src" / "index.ts").read_bytes() == b"// widget javascript body\n"

    def test_copies_source_tree_skipping_empty_dirs(
        self, sample_store, widget_descriptor, project_root
    ):
        project_root.mkdir(parents=True)
        EmitSourceFiles(sample_store, widget_descriptor, Config()).do()

        src = project_root / "src"
        assert (src / "util.js").read_bytes() == b"export const util = 1;\n"
        assert (src / "styles" / "main.css").exists()
        assert not (src / "empty").exists()

    def test_undo_removes_src_and_entry(self, sample_store, widget_descriptor, project_root):
        project_root.mkdir(parents=True)
        task = EmitSourceFiles(sample_store, widget_descriptor, Config())
        task.do()
        task.undo()
        assert not (project_root / "src").exists()
        assert "main" not in widget_descriptor.entries
        assert project_root.is_dir()

    def test_undo_restores_existing_src(
        self, sample_store, widget_descriptor, project_root, tree_snapshot
    ):
        src = project_root / "src"
        src.mkdir(parents=True)
        (src / "util.js").write_text("// mine\n")
        (src / "keep.js").write_text("// untouched\n")
        before = tree_snapshot(project_root)

        task = EmitSourceFiles(sample_store, widget_descriptor, Config())
        task.do()
        assert (src / "util.js").read_text() == "export const util = 1;\n"
        task.undo()
        assert tree_snapshot(project_root) == before

    def test_missing_body_template(self, project_root):
        project_root.mkdir(parents=True)
        store = TemplateStore({"widget/src/a.js": b"a"})
        descriptor = ProjectDescriptor(
            type="widget", root_dir=project_root, template_id="react", renderer_name="r"
        )
        task = EmitSourceFiles(store, descriptor, Config())
        with pytest.raises(TemplateNotFoundError):
            task.do()
        task.undo()
        assert not (project_root / "src").exists()
        assert descriptor.entries == {}


# ---------------------------------------------------------------------------
# RenderGenericTemplates
# ---------------------------------------------------------------------------

class TestRenderGenericTemplates:
    def test_renders_marker_files(self, sample_store, widget_descriptor, project_root):
        project_root.mkdir(parents=True)
        widget_descriptor.entries["main"] = "src/index.tsx"
        task = _render_task(sample_store, widget_descriptor)
        task.do()

        readme = (project_root / "README.md").read_text()
        assert readme == "# widget\n\nEntry: src/index.tsx\n"
        assert (project_root / "config" / "settings.yml").read_text() == "type: WIDGET\n"
        assert json.loads((project_root / "tsconfig.json").read_text()) == {"include": ["src"]}

    def test_non_marker_files_ignored(self, sample_store, widget_descriptor, project_root):
        project_root.mkdir(parents=True)
        _render_task(sample_store, widget_descriptor).do()
        assert not (project_root / "LICENSE").exists()
        assert not (project_root / "unused").exists()

    def test_blank_output_skipped(self, sample_store, project_root):
        project_root.mkdir(parents=True)
        descriptor = ProjectDescriptor(
            type="widget", root_dir=project_root, template_id="react", renderer_name="r"
        )
        task = _render_task(sample_store, descriptor)
        task.do()
        assert not (project_root / "tsconfig.json").exists()
        assert project_root / "tsconfig.json" not in task.written

    def test_records_written_paths(self, sample_store, widget_descriptor, project_root):
        project_root.mkdir(parents=True)
        task = _render_task(sample_store, widget_descriptor)
        task.do()
        assert set(task.written) == {
            project_root / "README.md",
            project_root / "config" / "settings.yml",
            project_root / "tsconfig.json",
        }

    def test_undo_deletes_rendered_files(
        self, sample_store, widget_descriptor, project_root, tree_snapshot
    ):
        project_root.mkdir(parents=True)
        (project_root / "README.md").write_text("my readme\n")
        before = tree_snapshot(project_root)

        task = _render_task(sample_store, widget_descriptor)
        task.do()
        task.undo()
        assert tree_snapshot(project_root) == before
        assert task.written == []

    def test_format_error_leaves_nothing_behind(
        self, sample_store, widget_descriptor, project_root, tree_snapshot
    ):
        project_root.mkdir(parents=True)
        before = tree_snapshot(project_root)

        def reject(content: str, path: Path) -> str:
            raise FormatError(str(path), "rejected")

        formatters = FormatterRegistry()
        formatters.register(".yml", reject)
        task = _render_task(sample_store, widget_descriptor, formatters)
        with pytest.raises(FormatError):
            task.do()
        # README.md was written before settings.yml failed.
        assert (project_root / "README.md").exists()
        task.undo()
        assert tree_snapshot(project_root) == before


# ---------------------------------------------------------------------------
# MergeManifests
# ---------------------------------------------------------------------------

class TestMergeManifests:
    def test_copies_missing_manifests(
        self, sample_store, widget_descriptor, project_root, sample_package_json
    ):
        project_root.mkdir(parents=True)
        task = MergeManifests(sample_store, widget_descriptor, Config())
        task.do()

        assert json.loads((project_root / "package.json").read_text()) == sample_package_json
        assert (project_root / "widget.yml").read_bytes() == sample_store.open("widget/widget.yml")
        assert set(task.copied) == {project_root / "package.json", project_root / "widget.yml"}
        assert task.merged == []

    def test_ignores_non_manifest_and_source_files(
        self, sample_store, widget_descriptor, project_root
    ):
        project_root.mkdir(parents=True)
        MergeManifests(sample_store, widget_descriptor, Config()).do()
        assert not (project_root / "notes.txt").exists()
        assert not (project_root / "react.js").exists()
        assert not (project_root / "src").exists()

    def test_merges_existing_manifests(self, sample_store, widget_descriptor, project_root):
        project_root.mkdir(parents=True)
        (project_root / "package.json").write_text(
            json.dumps({"name": "mine", "dependencies": {"react": "^16.0.0", "lodash": "4"}})
        )
        (project_root / "widget.yml").write_text("name: mine\n")

        task = MergeManifests(sample_store, widget_descriptor, Config())
        task.do()

        manifest = json.loads((project_root / "package.json").read_text())
        assert manifest["name"] == "mine"
        assert manifest["dependencies"] == {
            "lodash": "4",
            "react": "^17.0.2",
            "widget-sdk": "^1.0.0",
        }
        assert manifest["license"] == "MIT"
        assert (project_root / "widget.yml").read_text() == (
            "name: mine\nextension_points:\n  - Widget::Render\n"
        )
        assert set(task.merged) == {project_root / "package.json", project_root / "widget.yml"}

    def test_undo_restores_every_snapshot(
        self, sample_store, widget_descriptor, project_root, tree_snapshot
    ):
        project_root.mkdir(parents=True)
        (project_root / "package.json").write_text('{"name": "mine"}')
        (project_root / "widget.yml").write_text("name: mine\n")
        before = tree_snapshot(project_root)

        task = MergeManifests(sample_store, widget_descriptor, Config())
        task.do()
        assert len(task.journal.snapshots) == 2
        task.undo()
        assert tree_snapshot(project_root) == before

    def test_malformed_manifest_rolls_back_partial_work(
        self, sample_store, widget_descriptor, project_root, tree_snapshot
    ):
        project_root.mkdir(parents=True)
        (project_root / "widget.yml").write_text("name: [broken\n")
        before = tree_snapshot(project_root)

        task = MergeManifests(sample_store, widget_descriptor, Config())
        with pytest.raises(MergeError):
            task.do()
        # package.json sorts before widget.yml and was already copied.
        assert (project_root / "package.json").exists()
        task.undo()
        assert tree_snapshot(project_root) == before

    def test_write_failure_rolls_back(
        self, sample_store, widget_descriptor, project_root, tree_snapshot
    ):
        project_root.mkdir(parents=True)
        (project_root / "widget.yml").write_text("name: mine\n")
        before = tree_snapshot(project_root)

        task = MergeManifests(sample_store, widget_descriptor, Config())
        with patch("extkit.scaffolder.tasks.merge_content", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                task.do()
        task.undo()
        assert tree_snapshot(project_root) == before
