"""
Logging Utilities for the structured generation core

Provides centralized logging configuration and structured failure logging
for provider calls, routing decisions and contract validation.
"""

import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from errors import AppError


def setup_core_logging(log_dir: Optional[str] = None, level: int = logging.INFO) -> Tuple[logging.Logger, Optional[str]]:
    """
    Configure root logging for a process that embeds the core.
    Configures the ROOT logger so all module loggers inherit the handlers.

    Args:
        log_dir: Directory for a timestamped debug log file. Console only when None.
        level: Console log level

    Returns:
        Tuple of (core logger instance, log_file_path or None)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    log_file_path = None
    if log_dir:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file_path = str(Path(log_dir) / f"core_log_{timestamp}.log")

        file_handler = logging.FileHandler(log_file_path, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    root_logger.addHandler(console_handler)

    core_logger = logging.getLogger('decision_core')
    core_logger.setLevel(logging.DEBUG)
    core_logger.info(f"Core logging started: {datetime.now().isoformat()}")
    if log_file_path:
        core_logger.info(f"Log File: {log_file_path}")

    return core_logger, log_file_path


def log_exception(logger: logging.Logger, exc: BaseException, context: str = "", **kwargs) -> None:
    """
    Log a failure with its kind, details and traceback.

    Args:
        logger: Logger instance to use
        exc: Exception that was raised
        context: Additional context string
        **kwargs: Additional context key-value pairs (provider, model, ...)
    """
    if isinstance(exc, AppError):
        error_msg = f"{exc.kind.value} ({exc.status}): {exc.message}"
    else:
        error_msg = f"Exception occurred: {type(exc).__name__}: {exc}"
    if context:
        error_msg = f"{context} - {error_msg}"

    logger.error(error_msg)

    if isinstance(exc, AppError) and exc.details:
        logger.error(f"Details: {exc.details}")
    if kwargs:
        logger.error(f"Context: {kwargs}")

    tb_str = traceback.format_exc()
    if tb_str and tb_str.strip() != "NoneType: None":
        logger.debug(f"Traceback:\n{tb_str}")


def get_error_info(exc: BaseException, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Extract structured error information from an exception.

    Args:
        exc: Exception that was raised
        context: Additional context dictionary

    Returns:
        Dictionary with error information
    """
    info: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
        "timestamp": datetime.now().isoformat(),
        "context": context or {},
    }
    if isinstance(exc, AppError):
        info.update(exc.to_dict())
    return info
