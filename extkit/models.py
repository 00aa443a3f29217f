"""Pydantic models describing a scaffold invocation.

``ScaffoldRequest`` is what a caller (usually the CLI) supplies.
``ProjectDescriptor`` is the record the scaffolding tasks work from and the
binding context for generic templates.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from extkit.errors import ValidationError


# ---------------------------------------------------------------------------
# Source flavors
# ---------------------------------------------------------------------------


class SourceFlavor(str, Enum):
    """Language/framework combination selected by a template id."""

    REACT_TYPESCRIPT = "react-typescript"
    REACT = "react"
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"


class EntryPoint(NamedTuple):
    filename: str
    body_template: str


FLAVORS: dict[tuple[bool, bool], SourceFlavor] = {
    (True, True): SourceFlavor.REACT_TYPESCRIPT,
    (True, False): SourceFlavor.REACT,
    (False, True): SourceFlavor.TYPESCRIPT,
    (False, False): SourceFlavor.JAVASCRIPT,
}

ENTRY_POINTS: dict[SourceFlavor, EntryPoint] = {
    SourceFlavor.REACT_TYPESCRIPT: EntryPoint("index.tsx", "react.js"),
    SourceFlavor.REACT: EntryPoint("index.js", "react.js"),
    SourceFlavor.TYPESCRIPT: EntryPoint("index.ts", "javascript.js"),
    SourceFlavor.JAVASCRIPT: EntryPoint("index.js", "javascript.js"),
}


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class ScaffoldRequest(BaseModel):
    """The four values a caller must provide to scaffold a project."""

    type: str
    renderer_name: str
    template_id: str
    root_dir: Path

    @field_validator("type", "renderer_name", "template_id", mode="before")
    @classmethod
    def _not_blank(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be empty")
        return value

    @field_validator("root_dir", mode="before")
    @classmethod
    def _root_not_blank(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "ScaffoldRequest":
        """Validate *data*, raising :class:`extkit.errors.ValidationError`.

        Accepts ``renderer`` / ``template`` as aliases for ``renderer_name`` /
        ``template_id``.
        """
        payload = dict(data)
        if "renderer" in payload and "renderer_name" not in payload:
            payload["renderer_name"] = payload.pop("renderer")
        if "template" in payload and "template_id" not in payload:
            payload["template_id"] = payload.pop("template")
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as exc:
            problems = ", ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise ValidationError(f"Invalid scaffold request ({problems})") from exc


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------


class ProjectDescriptor(BaseModel):
    """Everything the scaffolding tasks need to know about the new project.

    The derived fields (``formatted_type``, ``uses_react``,
    ``uses_typescript``, ``flavor``) are computed once from ``type`` and
    ``template_id`` when the descriptor is built.
    """

    type: str
    uuid: str = ""
    root_dir: Path
    build_dir: str = "build"
    template_id: str
    renderer_name: str
    renderer_version: str = ""
    entries: dict[str, str] = Field(default_factory=dict)

    formatted_type: str = ""
    uses_react: bool = False
    uses_typescript: bool = False
    flavor: SourceFlavor = SourceFlavor.JAVASCRIPT

    @model_validator(mode="before")
    @classmethod
    def _derive(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        template_id = str(data.get("template_id", ""))
        uses_react = "react" in template_id
        uses_typescript = "typescript" in template_id
        data["formatted_type"] = str(data.get("type", "")).upper()
        data["uses_react"] = uses_react
        data["uses_typescript"] = uses_typescript
        data["flavor"] = FLAVORS[(uses_react, uses_typescript)]
        return data

    @classmethod
    def from_request(
        cls,
        request: ScaffoldRequest,
        *,
        build_dir: str = "build",
        uuid: str = "",
    ) -> "ProjectDescriptor":
        return cls(
            type=request.type,
            uuid=uuid,
            root_dir=request.root_dir,
            build_dir=build_dir,
            template_id=request.template_id,
            renderer_name=request.renderer_name,
            entries={},
        )

    @property
    def entry_point(self) -> EntryPoint:
        return ENTRY_POINTS[self.flavor]

    def template_context(self, source_dir: str = "src") -> dict[str, Any]:
        """Return the variables available inside generic templates."""
        context = self.model_dump(mode="json")
        context["flavor"] = self.flavor.value
        context["source_dir"] = source_dir
        context["entry_filename"] = self.entry_point.filename
        context["main_entry"] = self.entries.get(
            "main", f"{source_dir}/{self.entry_point.filename}"
        )
        return context
