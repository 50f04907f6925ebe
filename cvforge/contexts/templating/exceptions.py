"""Custom exceptions for templating context with template references."""

from pathlib import Path
from typing import Optional


class TemplateRenderError(Exception):
    """
    Exception raised when block template rendering fails.

    Attributes:
        message: Error description
        type_name: Name of the block type being rendered (e.g., 'work_experience')
        template_path: Path to the template file
        original_error: The original Jinja2 error
    """

    def __init__(
        self,
        message: str,
        type_name: Optional[str] = None,
        template_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.type_name = type_name
        self.template_path = template_path
        self.original_error = original_error

        parts = [message]

        if type_name and template_path:
            parts.append(f"\nTemplate: {template_path}")
            parts.append(f"Type: {type_name}")

        if original_error:
            parts.append(f"\nOriginal error: {str(original_error)}")

        super().__init__("\n".join(parts))


class InvalidCatalogError(ValueError):
    """
    Exception raised when the template catalog YAML is malformed.

    Unknown template or palette names are not errors (they fall back to the
    defaults); this is only raised for a catalog file missing required fields.
    """

    pass


class ContentTreeError(ValueError):
    """Raised when a content tree violates the block atomicity contract."""

    pass
