"""
Configuration Package
"""

from .config import Config, APP_DEFAULTS

__all__ = ['Config', 'APP_DEFAULTS']
