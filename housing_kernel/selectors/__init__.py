"""Read-only query selectors."""

from housing_kernel.selectors.base import BaseSelector
from housing_kernel.selectors.snapshot_selector import RentSnapshot, RentSnapshotSelector

__all__ = [
    "BaseSelector",
    "RentSnapshot",
    "RentSnapshotSelector",
]
