"""
Configuration Package - Domain-Specific Configuration Modules

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── defaults.py              # Default values
    ├── vector_config.py         # ogr2ogr conversion
    ├── warehouse_config.py      # BigQuery staging / load / monitoring
    └── database_config.py       # PostGIS destination defaults

Usage:
    from config import get_config
    config = get_config()
    attempts = config.warehouse.max_poll_attempts

    from config import debug_config
    info = debug_config()  # No secrets are held in config
"""

from typing import Optional

from .database_config import DatabaseConfig
from .vector_config import VectorConfig
from .warehouse_config import WarehouseConfig
from .app_config import AppConfig


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get sanitized configuration for debugging.

    Returns:
        Dictionary with configuration values, or an 'error' key if the
        environment does not validate.
    """
    try:
        return get_config().debug_dict()
    except Exception as e:
        return {'error': f'Configuration validation failed: {e}'}


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'AppConfig',
    'get_config',
    'reset_config',
    'debug_config',
    'DatabaseConfig',
    'VectorConfig',
    'WarehouseConfig',
]
