"""
Storage Layer.

This package handles local persistence: the INI configuration file and the
history of past harvest runs.
"""

from .config_manager import ConfigManager
from .history import save_session_stats

__all__ = ["ConfigManager", "save_session_stats"]
