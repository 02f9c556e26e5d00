"""
Centralia - Conversational orchestration engine for a personal-finance assistant.

Streams agent output, gates mutating actions behind explicit confirmation,
collects structured input on request and keeps conversations resumable
across restarts.
"""

__version__ = "0.1.0"
__author__ = "Centralia Team"

from centralia.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
