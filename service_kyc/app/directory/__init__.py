"""
Organization directory package.

- state: Application state handle (store, service admin, event log).
- directory: Admin-checked registration, approval and tag management.
"""

from .state import KycState
from .directory import OrganizationDirectory

__all__ = ["KycState", "OrganizationDirectory"]
