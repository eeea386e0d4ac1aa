"""Domain ownership module."""

from .matcher import CATCH_ALL, can_read, can_write, matches, matches_any

__all__ = ["CATCH_ALL", "can_read", "can_write", "matches", "matches_any"]
