"""
Environment variable loading utility.

This module provides functions to load environment variables from files.
"""
import os
import logging

logger = logging.getLogger(__name__)


def load_env_from_file(file_path, override=True):
    """
    Load environment variables from a file.

    Args:
        file_path: Path to the environment variable file.
        override: Replace variables that are already set in the process.

    Returns:
        True if file was loaded successfully, False otherwise.
    """
    if not os.path.exists(file_path):
        logger.debug(f"Environment file not found: {file_path}")
        return False

    try:
        with open(file_path, 'r') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#') or '=' not in line:
                    continue

                key, value = line.split('=', 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if not override and key in os.environ:
                    continue
                os.environ[key] = value

        logger.info(f"Loaded environment variables from {file_path}")
        return True
    except OSError as e:
        logger.error(f"Error loading environment variables from {file_path}: {str(e)}")
        return False


def env_bool(name, default=False):
    """Read a boolean flag such as DJANGO_DEBUG=true from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=None):
    """Read a comma separated list from the environment."""
    value = os.getenv(name)
    if not value:
        return list(default or [])
    return [item.strip() for item in value.split(',') if item.strip()]
