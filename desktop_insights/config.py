"""
Analytics Configuration

Reads the optional analytics_config module (copy analytics_config.example.py
to analytics_config.py) to build backends and control debug logging.
"""

import getpass
import logging
from pathlib import Path
from typing import Optional

from .telemetry import DEFAULT_MAX_BATCH_SIZE

logger = logging.getLogger(__name__)

DEBUG_LOG_FILE = Path.home() / "Desktop" / "desktop_insights_debug.log"


def _load_config():
    """Return the analytics_config module, or None if it is missing"""
    try:
        import analytics_config as config
    except ImportError as e:
        logger.info("analytics_config.py not found - telemetry backend disabled: %s", e)
        return None
    except Exception as e:
        logger.warning("Error loading analytics_config.py - telemetry backend disabled: %s", e)
        return None
    return config


def is_developer_mode() -> bool:
    """Check if debug mode should be enabled (TELEMETRY_DEBUG or developer user name)"""
    config = _load_config()
    if config is None:
        return False

    # Check if explicitly enabled
    if getattr(config, 'TELEMETRY_DEBUG', False):
        return True

    # Check if user is a developer
    developer_names = getattr(config, 'DEVELOPER_USER_NAMES', [])
    if developer_names:
        try:
            return getpass.getuser() in developer_names
        except Exception:
            return False
    return False


def configure_debug_logging(log_file: Path = DEBUG_LOG_FILE) -> Optional[logging.Handler]:
    """
    Mirror package logs to a file on the Desktop when in developer mode

    Returns:
        The installed handler, or None if debug mode is off or the file can't be opened
    """
    if not is_developer_mode():
        return None

    try:
        handler = logging.FileHandler(log_file, mode='a')
    except OSError:
        return None  # Can't write the log, carry on without it

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("[%(asctime)s] [%(name)s] %(message)s"))
    package_logger = logging.getLogger("desktop_insights")
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(handler)
    return handler


def get_max_batch_size() -> int:
    config = _load_config()
    if config is None:
        return DEFAULT_MAX_BATCH_SIZE
    value = getattr(config, 'MAX_BATCH_SIZE', DEFAULT_MAX_BATCH_SIZE)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid MAX_BATCH_SIZE %r, using %d", value, DEFAULT_MAX_BATCH_SIZE)
        return DEFAULT_MAX_BATCH_SIZE


def get_backend(backend_key: Optional[str] = None):
    """
    Load and return the configured backend from analytics_config.py

    Args:
        backend_key: Key the backend stamps on outgoing rows/requests

    Returns:
        Backend instance (SupabaseBackend or HTTPBackend) or None if not configured
    """
    config = _load_config()
    if config is None:
        return None

    from .backends.supabase import SupabaseBackend
    from .backends.http import HTTPBackend

    backend_type = getattr(config, 'BACKEND_TYPE', 'supabase')
    logger.debug("Backend type: %s", backend_type)

    if backend_type == 'supabase':
        url = getattr(config, 'SUPABASE_URL', None)
        key = getattr(config, 'SUPABASE_KEY', None)
        table_name = getattr(config, 'SUPABASE_TABLE', 'telemetry')
        logger.debug("Supabase URL configured: %s, Key configured: %s", bool(url), bool(key))
        return SupabaseBackend(url, key, table_name=table_name, backend_key=backend_key)
    elif backend_type == 'http':
        endpoint = getattr(config, 'HTTP_ENDPOINT_URL', None)
        api_key = getattr(config, 'HTTP_API_KEY', None)
        logger.debug("HTTP endpoint: %s", endpoint)
        return HTTPBackend(endpoint, api_key, backend_key=backend_key)

    logger.warning("Unknown backend type: %s", backend_type)
    return None
