"""Application services."""
from .lifecycle_coordinator import LifecycleCoordinator

__all__ = ["LifecycleCoordinator"]
