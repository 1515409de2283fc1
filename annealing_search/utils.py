"""Utility functions for annealing searches."""

import hashlib
import json
from datetime import datetime
from typing import Optional

from annealing_search.config import AnnealingConfig


def compute_config_hash(config: AnnealingConfig, num_attributes: Optional[int] = None) -> str:
    """Compute a hash of the search configuration for tracking.

    Parameters
    ----------
    config : AnnealingConfig
        Annealing configuration.
    num_attributes : int, optional
        Number of attributes searched over.

    Returns
    -------
    hash_str : str
        Truncated SHA256 hash of the configuration.
    """
    config_str = json.dumps({
        'options': config.to_options(),
        'num_attributes': num_attributes
    }, sort_keys=True)

    return hashlib.sha256(config_str.encode()).hexdigest()[:16]


def compute_run_id(
    config: AnnealingConfig,
    num_attributes: Optional[int] = None,
    timestamp: Optional[datetime] = None
) -> str:
    """Build a unique run identifier from the config hash and a timestamp.

    Parameters
    ----------
    config : AnnealingConfig
        Annealing configuration.
    num_attributes : int, optional
        Number of attributes searched over.
    timestamp : datetime, optional
        Run start time, defaults to now.

    Returns
    -------
    run_id : str
        Identifier such as '3f2a9c0d1b7e4a55_20250101T120000123456'.
    """
    if timestamp is None:
        timestamp = datetime.now()

    return f"{compute_config_hash(config, num_attributes)}_{timestamp.strftime('%Y%m%dT%H%M%S%f')}"
