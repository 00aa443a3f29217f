"""Main scaffolding orchestrator.

Takes a ``ScaffoldRequest`` and materialises a new extension project by
running four reversible tasks as one transactional pipeline:

1. create the project root,
2. emit the entry point and source files into ``src/``,
3. render the generic templates,
4. copy or merge the type's package manifests.

If any step fails, every change made so far is rolled back and a single
:class:`~extkit.errors.PipelineError` naming the failed step is raised.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from rich.markup import escape

from extkit.config import Config
from extkit.errors import PipelineError, ValidationError
from extkit.models import ProjectDescriptor, ScaffoldRequest
from extkit.pipeline import Pipeline
from extkit.utils import format_duration, print_error, print_success, print_summary_table

from .formatters import Formatter, FormatterRegistry
from .store import TemplateStore, load_store
from .tasks import (
    CreateRoot,
    EmitSourceFiles,
    MergeManifests,
    RenderGenericTemplates,
)
from .templates import TemplateRenderer


class Scaffolder:
    """Builds extension projects from a template store.

    Args:
        store: Template store; defaults to the store for
            ``config.resolved_template_dir``.
        config: Scaffolder configuration.
        formatters: Formatters keyed by suffix, replacing the defaults.
    """

    def __init__(
        self,
        store: TemplateStore | None = None,
        config: Config | None = None,
        formatters: Mapping[str, Formatter] | FormatterRegistry | None = None,
    ) -> None:
        self.config = config or Config()
        if store is None:
            store = load_store(str(self.config.resolved_template_dir))
        self.store = store
        self.renderer = TemplateRenderer(self.store)
        if isinstance(formatters, FormatterRegistry):
            self.formatters = formatters
        else:
            self.formatters = FormatterRegistry(formatters)

    # -- Public API --------------------------------------------------------

    def extension_types(self) -> list[str]:
        """Extension types the store provides templates for."""
        return [
            name
            for name in self.store.subdirectories()
            if name != self.config.generic_dir
        ]

    def describe(self, request: ScaffoldRequest | Mapping[str, Any]) -> ProjectDescriptor:
        """Validate *request* and build its descriptor without touching disk.

        Raises:
            ValidationError: A field is missing/blank or the type is unknown.
        """
        if not isinstance(request, ScaffoldRequest):
            request = ScaffoldRequest.parse(dict(request))
        if request.type not in self.extension_types():
            known = ", ".join(self.extension_types()) or "none"
            raise ValidationError(
                f"Unknown extension type '{request.type}' (available: {known})"
            )
        return ProjectDescriptor.from_request(request, build_dir=self.config.build_dir)

    def build_pipeline(self, descriptor: ProjectDescriptor) -> Pipeline:
        """The four scaffolding tasks, bound to *descriptor*, in order."""
        return Pipeline(
            [
                CreateRoot(descriptor.root_dir),
                EmitSourceFiles(self.store, descriptor, self.config),
                RenderGenericTemplates(
                    self.store, self.renderer, self.formatters, descriptor, self.config
                ),
                MergeManifests(self.store, descriptor, self.config),
            ],
            verbose=self.config.verbose,
        )

    def scaffold(self, request: ScaffoldRequest | Mapping[str, Any]) -> ProjectDescriptor:
        """Create the project described by *request*.

        Returns:
            The descriptor, with ``entries["main"]`` filled in.

        Raises:
            ValidationError: The request is invalid; nothing was written.
            PipelineError: A step failed; the target has been restored.
        """
        descriptor = self.describe(request)
        pipeline = self.build_pipeline(descriptor)

        started = time.monotonic()
        try:
            pipeline.run()
        except PipelineError as exc:
            print_error(f"Failed to create {escape(descriptor.type)} extension: {escape(str(exc))}")
            raise

        if self.config.verbose:
            self._print_summary(descriptor, pipeline, time.monotonic() - started)
        return descriptor

    # -- Internal ----------------------------------------------------------

    def _print_summary(
        self, descriptor: ProjectDescriptor, pipeline: Pipeline, elapsed: float
    ) -> None:
        render = next(t for t in pipeline.tasks if isinstance(t, RenderGenericTemplates))
        merge = next(t for t in pipeline.tasks if isinstance(t, MergeManifests))
        root = descriptor.root_dir

        def _rel(paths: list[Path]) -> str:
            return ", ".join(str(p.relative_to(root)) for p in paths) or "-"

        print_summary_table(
            {
                "Type": descriptor.type,
                "Template": f"{descriptor.template_id} ({descriptor.flavor.value})",
                "Root": str(root),
                "Entry": descriptor.entries.get("main", "-"),
                "Rendered": _rel(render.written),
                "Copied": _rel(merge.copied),
                "Merged": _rel(merge.merged),
            },
            title="Extension project",
        )
        print_success(f"Created {escape(descriptor.type)} extension in {format_duration(elapsed)}")


def new_extension_project(
    type: str,
    renderer_name: str,
    template_id: str,
    root_dir: str | Path,
    *,
    config: Config | None = None,
) -> ProjectDescriptor:
    """Scaffold a project with the bundled templates."""
    return Scaffolder(config=config).scaffold(
        {
            "type": type,
            "renderer_name": renderer_name,
            "template_id": template_id,
            "root_dir": root_dir,
        }
    )
