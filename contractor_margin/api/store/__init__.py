"""Owner-scoped record store for jobs, labor and material entries."""
from .sqlite import RecordNotFoundError, RecordStore, StoreError

__all__ = ["RecordNotFoundError", "RecordStore", "StoreError"]
