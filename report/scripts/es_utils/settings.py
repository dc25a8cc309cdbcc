"""
Runtime settings loader.
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from es_utils.thresholds import DEFAULT_LARGEST_SHARDS_LIMIT

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    'largest_shards_limit': DEFAULT_LARGEST_SHARDS_LIMIT,
    'report_formats': 'json,markdown',
    'log_level': 'INFO',
    'log_file': None,
}


def load_settings(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from a YAML file merged over the defaults.

    Returns settings dictionary.
    """
    settings = dict(DEFAULT_SETTINGS)

    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            logger.warning("Ignoring settings file %s: expected a mapping", config_path)
            return settings
        settings.update({k: v for k, v in loaded.items() if k in DEFAULT_SETTINGS})
        logger.debug("Loaded settings from %s", config_path)
    elif config_path:
        logger.warning("Settings file not found: %s, using defaults", config_path)

    return settings


def parse_report_formats(value: Union[str, List[str], None]) -> List[str]:
    """
    Normalize report formats given as 'json,markdown' or as a YAML list.

    Returns lower-case format names.
    """
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [str(v).strip().lower() for v in value if str(v).strip()]
