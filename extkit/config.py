"""extkit configuration.

Typed configuration for the scaffolder.  Settings use Pydantic v2 models so
they are validated at construction time and can be serialised to/from JSON or
read from environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


_BUNDLED_TEMPLATE_DIR = Path(__file__).parent / "scaffolder" / "templates"

_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global scaffolder configuration.

    Instances are typically created once by the CLI entry point and passed to
    :class:`~extkit.scaffolder.generator.Scaffolder`.
    """

    template_dir: Path | None = Field(
        default=None,
        description="Template root; the bundled templates are used when unset",
    )
    source_dir: str = Field(default="src", description="Source directory inside a project")
    generic_dir: str = Field(
        default="generic",
        description="Template subtree rendered for every extension type",
    )
    template_suffix: str = Field(
        default=".j2", description="Marker suffix of files rendered through Jinja2"
    )
    build_dir: str = Field(default="build", description="Default build directory")
    manifest_suffixes: list[str] = Field(default=[".yml", ".yaml", ".json"])
    verbose: bool = Field(default=False)

    @field_validator("template_suffix")
    @classmethod
    def _suffix_has_dot(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("template_suffix must look like '.j2'")
        return value

    @field_validator("manifest_suffixes")
    @classmethod
    def _normalise_suffixes(cls, value: list[str]) -> list[str]:
        return [s.lower() if s.startswith(".") else f".{s.lower()}" for s in value]

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def resolved_template_dir(self) -> Path:
        """The directory the template store is loaded from."""
        return self.template_dir or _BUNDLED_TEMPLATE_DIR

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            EXTKIT_TEMPLATE_DIR, EXTKIT_BUILD_DIR, EXTKIT_VERBOSE.
        """
        template_dir = os.environ.get("EXTKIT_TEMPLATE_DIR")
        return cls(
            template_dir=Path(template_dir) if template_dir else None,
            build_dir=os.environ.get("EXTKIT_BUILD_DIR", "build"),
            verbose=os.environ.get("EXTKIT_VERBOSE", "").strip().lower() in _TRUTHY,
        )
