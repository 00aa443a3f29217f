"""The four scaffolding steps, as reversible pipeline tasks.

Every task routes its filesystem writes through its own
:class:`~extkit.scaffolder.journal.FileJournal`; ``undo`` reverts that journal.
A task that never ran has an empty journal, so undoing it is a no-op.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from extkit.config import Config
from extkit.models import ProjectDescriptor
from extkit.pipeline import Task

from .formatters import FormatterRegistry
from .journal import FileJournal
from .merge import merge_content
from .store import TemplateStore
from .templates import TemplateRenderer


class JournaledTask(Task):
    """Base for tasks whose undo is "revert everything I wrote"."""

    def __init__(self) -> None:
        self.journal = FileJournal()

    def undo(self) -> None:
        self.journal.revert()


# ---------------------------------------------------------------------------
# 1. Root directory
# ---------------------------------------------------------------------------


class CreateRoot(JournaledTask):
    """Create the project root directory and any missing parents."""

    name = "create-root"

    def __init__(self, root_dir: Path) -> None:
        super().__init__()
        self.root_dir = Path(root_dir)

    def do(self) -> None:
        self.journal.make_dirs(self.root_dir)


# ---------------------------------------------------------------------------
# 2. Source files
# ---------------------------------------------------------------------------


class EmitSourceFiles(JournaledTask):
    """Copy the entry point and the type's source files into ``src/``."""

    name = "emit-source"

    def __init__(self, store: TemplateStore, descriptor: ProjectDescriptor, config: Config) -> None:
        super().__init__()
        self.store = store
        self.descriptor = descriptor
        self.source_dir = config.source_dir
        self._set_main_entry = False

    @property
    def source_path(self) -> Path:
        return self.descriptor.root_dir / self.source_dir

    def do(self) -> None:
        descriptor = self.descriptor
        self.journal.make_dirs(self.source_path)

        entry = descriptor.entry_point
        main_entry = f"{self.source_dir}/{entry.filename}"
        descriptor.entries["main"] = main_entry
        self._set_main_entry = True

        self.journal.write_bytes(
            descriptor.root_dir / main_entry,
            self.store.open(f"{descriptor.type}/{entry.body_template}"),
        )

        for item in self.store.walk(
            f"{descriptor.type}/{self.source_dir}", self.source_path, skip_empty_dirs=True
        ):
            if item.is_dir:
                self.journal.make_dirs(item.target)
            else:
                self.journal.write_bytes(item.target, self.store.open(item.source))

    def undo(self) -> None:
        if self._set_main_entry:
            self.descriptor.entries.pop("main", None)
            self._set_main_entry = False
        super().undo()


# ---------------------------------------------------------------------------
# 3. Generic templates
# ---------------------------------------------------------------------------


class RenderGenericTemplates(JournaledTask):
    """Render every marker-suffixed template of the generic subtree."""

    name = "render-templates"

    def __init__(
        self,
        store: TemplateStore,
        renderer: TemplateRenderer,
        formatters: FormatterRegistry,
        descriptor: ProjectDescriptor,
        config: Config,
    ) -> None:
        super().__init__()
        self.store = store
        self.renderer = renderer
        self.formatters = formatters
        self.descriptor = descriptor
        self.config = config
        self.written: list[Path] = []

    def do(self) -> None:
        suffix = self.config.template_suffix
        context = self.descriptor.template_context(self.config.source_dir)

        for item in self.store.walk(self.config.generic_dir, self.descriptor.root_dir):
            if item.is_dir or not item.source.endswith(suffix):
                continue

            target = item.target.with_name(item.target.name[: -len(suffix)])
            content = self.renderer.render(item.source, context)
            if not content.strip():
                # Conditional templates render to nothing when they do not apply.
                continue
            content = self.formatters.format(target, content)
            self.journal.write_text(target, content)
            self.written.append(target)

    def undo(self) -> None:
        super().undo()
        self.written.clear()


# ---------------------------------------------------------------------------
# 4. Manifests
# ---------------------------------------------------------------------------


class MergeManifests(JournaledTask):
    """Copy or merge the type's YAML/JSON manifests into the project root."""

    name = "merge-manifests"

    def __init__(self, store: TemplateStore, descriptor: ProjectDescriptor, config: Config) -> None:
        super().__init__()
        self.store = store
        self.descriptor = descriptor
        self.config = config
        self.merged: list[Path] = []
        self.copied: list[Path] = []

    def _is_manifest(self, source: str) -> bool:
        rel = PurePosixPath(source).relative_to(self.descriptor.type)
        if rel.parts and rel.parts[0] == self.config.source_dir:
            return False
        return rel.suffix.lower() in self.config.manifest_suffixes

    def do(self) -> None:
        for item in self.store.walk(self.descriptor.type, self.descriptor.root_dir):
            if item.is_dir or not self._is_manifest(item.source):
                continue

            content = self.store.open(item.source)
            if not item.target.exists():
                self.journal.write_bytes(item.target, content)
                self.copied.append(item.target)
                continue

            original = item.target.read_bytes()
            merged = merge_content(item.target, original, content)
            self.journal.write_bytes(item.target, merged)
            self.merged.append(item.target)

    def undo(self) -> None:
        super().undo()
        self.merged.clear()
        self.copied.clear()
