"""Versioned feature flag and segment stores, with caching over persistent backends."""

__version__ = "0.1.0"

__all__ = [
    "persistent_store",
    "persistent_store_builders",
    "persistent_store_cache",
    "persistent_store_wrapper",
    "store",
    "store_builders",
    "store_types",
    "version",
]