"""
Utilities Module
Logging, configuration and helper functions
"""
from utils.logger import setup_logger, LogContext
from utils.config_loader import load_yaml_config

__all__ = [
    'setup_logger',
    'LogContext',
    'load_yaml_config'
]
