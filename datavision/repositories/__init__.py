"""Repository layer for datavision."""
from .dataset_repository import DatasetRegistry, ReadWriteLock, mint_dataset_id

__all__ = ["DatasetRegistry", "ReadWriteLock", "mint_dataset_id"]
