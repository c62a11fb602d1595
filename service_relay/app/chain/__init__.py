"""
Chain clients that run unmodified on top of a relay provider.
"""

from .icon_client import ICON_API_PATH, IconClient

__all__ = ["ICON_API_PATH", "IconClient"]
