"""Exception hierarchy for extension scaffolding.

Every failure raised while scaffolding derives from :class:`ScaffoldError`,
except plain filesystem failures which surface as the builtin ``OSError``.
The pipeline wraps whichever error aborted a step in a :class:`PipelineError`
so callers only ever have one exception type to catch.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all scaffolding errors."""


class ValidationError(ScaffoldError):
    """Raised when a scaffold request is missing fields or names an unknown type."""


class TemplateNotFoundError(ScaffoldError, FileNotFoundError):
    """Raised when a path is not present in the template store."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Template not found: {path}")


class TemplateRenderError(ScaffoldError):
    """Raised when a generic template fails to parse or render."""

    def __init__(self, template: str, message: str) -> None:
        self.template = template
        super().__init__(f"{template}: {message}")


class FormatError(ScaffoldError):
    """Raised when a formatter rejects generated content."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Cannot format {path}: {message}")


class MergeError(ScaffoldError):
    """Raised when an existing manifest cannot be merged."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Cannot merge {path}: {message}")


class PipelineError(ScaffoldError):
    """Raised when a pipeline step fails and the run has been rolled back.

    Attributes:
        step: Name of the task whose ``do`` raised.
        cause: The originating exception.
        rollback_errors: Exceptions raised by ``undo`` calls during rollback.
            They are diagnostics only and never replace ``cause``.
    """

    def __init__(
        self,
        step: str,
        cause: BaseException,
        rollback_errors: list[BaseException] | None = None,
    ) -> None:
        self.step = step
        self.cause = cause
        self.rollback_errors = list(rollback_errors or [])
        message = f"Step '{step}' failed: {type(cause).__name__}: {cause}"
        if self.rollback_errors:
            message += f" ({len(self.rollback_errors)} rollback error(s))"
        super().__init__(message)
