"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates out of a
:class:`~extkit.scaffolder.store.TemplateStore` and renders them with the
project descriptor as context.  Undefined variables are errors, so a typo in
a template fails the scaffold instead of silently producing an empty value.
"""

from __future__ import annotations

import re
from typing import Any

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateError, TemplateNotFound

from extkit.errors import TemplateNotFoundError, TemplateRenderError

from .store import TemplateStore


# ---------------------------------------------------------------------------
# Store loader
# ---------------------------------------------------------------------------


class StoreLoader(BaseLoader):
    """Jinja2 loader reading template sources from a TemplateStore."""

    def __init__(self, store: TemplateStore) -> None:
        self.store = store

    def get_source(self, environment: Environment, template: str) -> tuple[str, str, Any]:
        try:
            source = self.store.open(template).decode("utf-8")
        except TemplateNotFoundError:
            raise TemplateNotFound(template) from None
        # The store never changes, so a loaded template is always up to date.
        return source, template, lambda: True

    def list_templates(self) -> list[str]:
        return self.store.files()


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates held in a template store.

    The context passed to :meth:`render` is usually
    ``ProjectDescriptor.template_context()``, giving templates access to
    fields such as ``type``, ``formatted_type`` and ``uses_typescript``.
    """

    def __init__(self, store: TemplateStore) -> None:
        self.store = store
        self.env = Environment(
            loader=StoreLoader(store),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pascal_case"] = _pascal_case_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path inside the store (e.g.
                ``"generic/README.md.j2"``).
            context: Dictionary of variables available inside the template.

        Raises:
            TemplateRenderError: The template is missing, cannot be parsed,
                or fails while rendering.
        """
        try:
            template = self.env.get_template(template_path)
            return template.render(**context)
        except TemplateError as exc:
            raise TemplateRenderError(template_path, exc.message or type(exc).__name__) from exc


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)
