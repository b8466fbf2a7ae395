"""Utility modules for the application."""
from peep.utils.app_names import get_friendly_app_name
from peep.utils.logger import safe_print, safe_repr

__all__ = [
    'get_friendly_app_name',
    'safe_print',
    'safe_repr',
]
