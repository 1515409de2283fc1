"""Structured logging utilities for annealing searches.

This module provides logging functions for search progress, so the engine
reports through the standard logging machinery instead of print statements.
"""

import logging
from typing import Dict, Any, Optional, Sequence
from pathlib import Path


def setup_logger(
    name: str = 'annealing_search',
    level: int = logging.INFO,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """Setup a logger with consistent formatting.

    Parameters
    ----------
    name : str, default='annealing_search'
        Logger name.
    level : int or str, default=logging.INFO
        Logging level.
    log_file : Path, optional
        Path to log file. If provided, logs will be written to both console and file.
        File will be overwritten (mode='w') to start fresh each run.

    Returns
    -------
    logger : logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear any existing handlers to start fresh
    logger.handlers.clear()

    # Format: [2025-12-10 10:30:45] INFO: Message
    formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (if requested) - use 'w' mode to overwrite and start fresh
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_phase_start(logger: logging.Logger, phase_name: str, details: str = "") -> None:
    """Log the start of a major phase.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    phase_name : str
        Name of the phase.
    details : str, optional
        Additional details.
    """
    separator = "=" * 80
    logger.info(separator)
    logger.info(f"{phase_name.upper()}")
    if details:
        logger.info(details)
    logger.info(separator)


def log_phase_end(logger: logging.Logger, phase_name: str, elapsed_time: float = None) -> None:
    """Log the end of a major phase.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    phase_name : str
        Name of the phase.
    elapsed_time : float, optional
        Time elapsed in seconds.
    """
    separator = "=" * 80
    logger.info(separator)
    msg = f"{phase_name.upper()} COMPLETE"
    if elapsed_time is not None:
        msg += f" ({elapsed_time:.1f}s)"
    logger.info(msg)
    logger.info(separator)


def log_iteration(
    logger: logging.Logger,
    iteration: int,
    new_best: bool,
    reason: str,
    metrics: Dict[str, Any]
) -> None:
    """Log the outcome of one search iteration.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    iteration : int
        Iteration number.
    new_best : bool
        Whether the iteration replaced the global best subset.
    reason : str
        Explanation of the comparison with the global best.
    metrics : dict
        Dictionary with metrics (e.g., merit, steps, subset_size, temperature).
    """
    status = "✓ NEW BEST" if new_best else "✗ KEPT BEST"
    logger.info(f"Iteration {iteration}: {status} - {reason}")

    if 'merit' in metrics:
        logger.info(f"  Merit: {metrics['merit']:.6f}")
    if 'subset_size' in metrics:
        logger.info(f"  Subset size: {metrics['subset_size']}")
    if 'steps' in metrics:
        logger.info(f"  Steps: {metrics['steps']}")
    if 'temperature' in metrics:
        logger.info(f"  Final temperature: {metrics['temperature']:.6g}")


def log_step(
    logger: logging.Logger,
    step: int,
    subset: Sequence[int],
    merit: float,
    reason: str = ""
) -> None:
    """Log an accepted annealing step.

    Attribute numbers are reported 1-based.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    step : int
        Step number within the iteration.
    subset : sequence of int
        0-based indices of the current subset.
    merit : float
        Merit of the current subset.
    reason : str, optional
        Acceptance reason.
    """
    members = " ".join(str(index + 1) for index in subset)
    logger.info(f"Step {step}: current subset is: {members}")
    logger.info(f"  Merit: {merit}")
    if reason:
        logger.debug(f"  {reason}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log an error with context.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    error : Exception
        The exception that occurred.
    context : str, optional
        Additional context about where the error occurred.
    """
    if context:
        logger.error(f"Error in {context}: {type(error).__name__}: {str(error)}")
    else:
        logger.error(f"{type(error).__name__}: {str(error)}")


def log_warning(logger: logging.Logger, message: str) -> None:
    """Log a warning message.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    message : str
        Warning message.
    """
    logger.warning(f"⚠️  {message}")


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a success message.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    message : str
        Success message.
    """
    logger.info(f"✓ {message}")
