"""
Custom exceptions for the rendering context.

Every export failure is an ExportError: recoverable, reported to the user, and
never fatal to the editor. The document snapshot being exported is immutable,
so a failed export cannot leave it half-modified.
"""

from typing import Sequence


class ExportError(Exception):
    """Base class for export failures; the user may retry."""

    pass


class IncompleteAssetError(ExportError):
    """
    Raised when images or fonts are still loading after the asset timeout.

    Attributes:
        pending: Sources of the assets that did not finish loading
        timeout_s: Timeout that elapsed
    """

    def __init__(self, pending: Sequence[str], timeout_s: float):
        self.pending = list(pending)
        self.timeout_s = timeout_s
        shown = ", ".join(self.pending[:3]) + (" ..." if len(self.pending) > 3 else "")
        super().__init__(f"{len(self.pending)} asset(s) still loading after {timeout_s:.1f}s: {shown}")


class ExportInProgressError(ExportError):
    """Raised when an export is requested while another is still running."""

    def __init__(self):
        super().__init__("An export is already in progress")


class RasterizationError(ExportError):
    """
    Raised when the backend fails to lay out or print the document.

    Attributes:
        original_error: The backend exception
    """

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)
