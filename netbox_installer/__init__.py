"""
NetBox host installer.

This package provisions a NetBox stack (gunicorn, PostgreSQL, Redis, nginx)
on a single Debian/Ubuntu host as a fixed sequence of converging steps.
"""

from netbox_installer.config import SCRIPT_VERSION

__version__ = SCRIPT_VERSION

__all__ = ["__version__"]
