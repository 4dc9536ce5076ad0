"""Utility modules for the yacht harness."""

from .addresses import AddressPool, create_address_pool
from .filesystem import ensure_dir, recreate_dir, safe_remove

__all__ = [
    "AddressPool",
    "create_address_pool",
    "ensure_dir",
    "recreate_dir",
    "safe_remove",
]
