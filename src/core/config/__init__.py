"""
Configuration subsystem for Habit Garden.

Static configuration is loaded from environment variables (with .env
support) when this package is imported.

Usage
-----
    from src.core.config import Config

    window = Config.ACTIVITY_WINDOW_DAYS
"""

from .config import Config, Environment

__all__ = ["Config", "Environment"]
