"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from cvforge.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path) -> Path:
    """
    Setup logger for rendering context.

    Configures loguru with provenance tracking and rendering-specific context.

    Args:
        log_dir: Directory for this rendering session

    Returns:
        Path to log file

    Example:
        from cvforge.contexts.rendering.logger import setup_rendering_logger, _log_info

        log_file = setup_rendering_logger(log_dir)
        _log_info("Starting export...")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Headless": os.getenv("PLAYWRIGHT_HEADLESS", "true")},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_export_start(template_id: str, block_count: int, output_path: Path) -> None:
    """Log start of export with context."""
    _log_info(f"Starting export: template '{template_id}' ({block_count} blocks)")
    _log_debug(f"  Output: {output_path}")


def log_export_result(
    result,  # ExportResult
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log export result with diagnostics.

    Args:
        result: ExportResult from export_resume()
        elapsed_time: Time taken to export
        verbose: Show every layout issue (default: first 5)
    """
    if result.success:
        _log_success(f"Export succeeded: {result.page_count} page(s) ({elapsed_time:.2f}s)")
        if result.pdf_path:
            _log_info(f"  PDF: {result.pdf_path}")
    else:
        _log_error(f"Export failed ({elapsed_time:.2f}s)")
        for i, err in enumerate(result.errors, 1):
            _log_error(f"  Error {i}: {err}")

    if result.issues:
        _log_warning(f"{len(result.issues)} layout issue(s) detected")
        issue_limit = len(result.issues) if verbose else 5
        for i, issue in enumerate(result.issues[:issue_limit], 1):
            _log_warning(f"  Issue {i}: {issue}")
        if len(result.issues) > issue_limit:
            _log_warning(f"  ... and {len(result.issues) - issue_limit} more issues")
