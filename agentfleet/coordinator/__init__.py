"""Coordinator module."""

from .coordinator import Coordinator, ICoordinator

__all__ = ["Coordinator", "ICoordinator"]
