"""
Shared helper functions and utilities.

This module contains logging setup and configuration loading used across the
project.
"""

import copy
import json
import logging
from pathlib import Path

from .markers import marker_from_config


def setup_logging(level=logging.INFO):
    """Set up logging configuration.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized")


DEFAULT_CONFIG = {
    # Asset loading
    'asset_dir': 'resources',
    'decoder': 'opencv',  # 'opencv', 'pillow'
    'max_workers': 2,

    # Detection
    'detector': {
        'midpoint_rounding': 'exact',  # 'exact', 'floor'
    },

    # Marker colour ranges, inclusive (low, high) per channel.
    # None keeps the built-in tolerance box.
    'markers': {
        'qr': None,
        'referral': None,
    },

    # Composition
    'overlay': {
        'qr_data': 'https://yoursite.com',
        'referral_code': 'SKIBIDI',
        'qr_scale': 0.25,  # QR side as a fraction of poster width
        'text_scale': 0.04,  # Label height as a fraction of poster width
        'text_color': [0, 0, 0],  # RGB
        'no_marker_message': 'No dots detected',
    },
}


def _merge(base, override):
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def get_config(config_path=None):
    """Load configuration from file or return defaults.

    Nested sections in the file are merged into the defaults key by key.

    Args:
        config_path: Path to configuration file (optional)

    Returns:
        dict: Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path and Path(config_path).exists():
        try:
            with open(config_path, 'r') as f:
                loaded_config = json.load(f)
            _merge(config, loaded_config)
            logging.info("Configuration loaded from %s", config_path)
        except (OSError, ValueError) as e:
            logging.warning("Failed to load config from %s: %s", config_path, e)
    elif config_path:
        logging.warning("Config file %s not found, using defaults", config_path)

    return config


def save_config(config, config_path):
    """Save configuration to file.

    Args:
        config: Configuration dictionary
        config_path: Path to save configuration file

    Returns:
        bool: True if save successful, False otherwise
    """
    try:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=4)
        logging.info("Configuration saved to %s", config_path)
        return True
    except (OSError, TypeError) as e:
        logging.error("Failed to save config to %s: %s", config_path, e)
        return False


def validate_config(config):
    """Validate configuration parameters.

    Args:
        config: Configuration dictionary

    Returns:
        bool: True if valid, False otherwise
    """
    required_keys = ['asset_dir', 'decoder', 'detector', 'overlay']

    for key in required_keys:
        if key not in config:
            logging.error("Missing required config key: %s", key)
            return False

    for key in ('detector', 'overlay'):
        if not isinstance(config[key], dict):
            logging.error("Config section '%s' must be an object", key)
            return False

    markers = config.get('markers')
    if markers is None:
        markers = {}
    if not isinstance(markers, dict):
        logging.error("Config section 'markers' must be an object")
        return False
    for name, overrides in markers.items():
        if overrides is not None and not isinstance(overrides, dict):
            logging.error("markers.%s must be an object or null", name)
            return False
        try:
            marker_from_config(name, overrides)
        except (ValueError, TypeError) as e:
            logging.error("Invalid marker override markers.%s: %s", name, e)
            return False

    if config['decoder'] not in ('opencv', 'pillow'):
        logging.error("Unknown decoder: %s", config['decoder'])
        return False

    if config['detector'].get('midpoint_rounding', 'exact') not in ('exact', 'floor'):
        logging.error("midpoint_rounding must be 'exact' or 'floor'")
        return False

    if config.get('max_workers', 1) <= 0:
        logging.error("max_workers must be positive")
        return False

    overlay = config['overlay']
    for key in ('qr_scale', 'text_scale'):
        if not 0.0 < overlay.get(key, 0.1) <= 1.0:
            logging.error("overlay.%s must be in (0, 1]", key)
            return False

    logging.debug("Configuration validated successfully")
    return True
