"""
Core utilities and constants for the Hospital Cluster API.

Contains shared constants, configuration, logging and error helpers.
"""

from .constants import *

__all__ = [
    # Export all constants for easy import
    "API_TITLE",
    "API_VERSION",
    "API_PREFIX",
    "DEFAULT_HOST",
    "DEFAULT_SERVER_ID",
    "STARTUP_MESSAGE",
    "SHUTDOWN_MESSAGE",
    # ... other constants available for import
]
