"""
YAML configuration loading shared by the engines
"""
import os
from typing import Any, Dict

import yaml

from utils.logger import setup_logger

logger = setup_logger(__name__)

CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config')


def load_yaml_config(name: str, config_dir: str = CONFIG_DIR) -> Dict[str, Any]:
    """
    Load a YAML file from the config directory.

    Args:
        name: File name without extension (e.g. 'simulation')
        config_dir: Directory holding the YAML files

    Returns:
        Parsed mapping, or an empty dict when the file is missing or unreadable
    """
    filepath = os.path.join(config_dir, f'{name}.yaml')
    if not os.path.exists(filepath):
        logger.debug(f"No config file at {filepath}, using defaults")
        return {}

    try:
        with open(filepath, 'r') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading {name} config: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Config {filepath} is not a mapping, ignoring")
        return {}
    return data
