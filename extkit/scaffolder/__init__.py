"""extkit scaffolder -- generates extension project structures.

Materialises a new extension project from the bundled template store and
merges package manifests into a target directory that may already exist.
All filesystem changes happen inside a transactional pipeline: a failure in
any step rolls every earlier step back.

Quick usage::

    from extkit.scaffolder import Scaffolder

    descriptor = Scaffolder().scaffold(
        {
            "type": "checkout-ui",
            "renderer_name": "@shopify/checkout-ui-extensions-react",
            "template_id": "typescript-react",
            "root_dir": "/tmp/ext1",
        }
    )
"""

from extkit.scaffolder.formatters import FormatterRegistry
from extkit.scaffolder.generator import Scaffolder, new_extension_project
from extkit.scaffolder.store import TemplateStore, default_store
from extkit.scaffolder.templates import TemplateRenderer

__all__ = [
    "FormatterRegistry",
    "Scaffolder",
    "TemplateRenderer",
    "TemplateStore",
    "default_store",
    "new_extension_project",
]
