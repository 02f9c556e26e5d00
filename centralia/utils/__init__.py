"""Utils package for Centralia."""

from centralia.utils.logger import configure_from_settings, get_logger, setup_logging

__all__ = ["configure_from_settings", "get_logger", "setup_logging"]
