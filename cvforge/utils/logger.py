"""
Session logging for cvforge.

Each CLI run or export gets its own directory under CVFORGE_LOGS_PATH
(e.g., outs/logs/export_20251114_123456/) holding a {context}.log file that
starts with a provenance header. Context-specific wrappers with a message
prefix live in contexts/{context}/logger.py.
"""

import os
import platform
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from cvforge import __version__
from cvforge.utils.timestamp import now

load_dotenv()

LOGS_PATH = Path(os.getenv("CVFORGE_LOGS_PATH", "outs/logs"))
CONSOLE_LOG_LEVEL = os.getenv("CVFORGE_CONSOLE_LOG_LEVEL", "INFO")

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"


def session_log_dir(kind: str, base: Path = None) -> Path:
    """
    Create a timestamped directory for one session.

    Args:
        kind: Session kind used as the directory prefix ('export', 'preview')
        base: Parent directory (default: CVFORGE_LOGS_PATH)

    Returns:
        Path to the created directory, e.g. outs/logs/export_20251114_123456
    """
    log_dir = Path(base or LOGS_PATH) / f"{kind}_{now()}"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: dict = None,
    console_level: str = CONSOLE_LOG_LEVEL,
) -> Path:
    """
    Route loguru output to a session log file and the console.

    The file receives every DEBUG message; the console shows console_level and
    above. Existing sinks are removed, so the latest session owns the output.

    Args:
        context_name: Context identifier ("render", "template"); names the log file
        log_dir: Session directory (see session_log_dir)
        extra_provenance: Additional key-value pairs for the provenance header
        console_level: Minimum console level (CVFORGE_CONSOLE_LOG_LEVEL)

    Returns:
        Path to log file

    Example:
        log_file = setup_logger("render", session_log_dir("export"), {"Headless": "true"})
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(context_name, extra_provenance)
    return log_file


def log_provenance(context_name: str, extra_context: dict = None) -> None:
    """Write the session header: command line, versions and any extra context."""
    logger.debug("=" * 80)
    logger.debug(f"cvforge {__version__} [{context_name}]")
    logger.debug(f"Command: {' '.join(sys.argv)}")
    logger.debug(f"Working directory: {Path.cwd()}")
    logger.debug(f"Python: {platform.python_version()} ({platform.system()})")
    for key, value in (extra_context or {}).items():
        logger.debug(f"{key}: {value}")
    logger.debug("=" * 80)
