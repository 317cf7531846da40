"""
Tag store package.

Keeps organizations, their tag schemas and per-user tag assignments.
"""

from .tag_store import TagStore, TagStoreNotFound

__all__ = ["TagStore", "TagStoreNotFound"]
