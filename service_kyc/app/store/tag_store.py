"""
In-memory tag store for the KYC Service.

Holds three key spaces: organizations keyed by name, each organization's
tag schema (part of the organization record) and user tag records keyed
by ``(org_name, user)``. Every write replaces a whole record under the
store lock, so readers holding the lock always see complete records.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

from shared.logging import get_logger
from ..models import Organization, UserTagRecord, TagMap


class TagStoreNotFound(KeyError):
    """Raised when a key is absent from the store."""


class TagStore:
    """Thread-safe store of organizations and user tag records."""

    def __init__(self):
        self.logger = get_logger("kyc.store")
        self._orgs: Dict[str, Organization] = {}
        self._user_tags: Dict[Tuple[str, str], UserTagRecord] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator["TagStore"]:
        """Hold the store lock across several reads or writes."""
        with self._lock:
            yield self

    def org_exists(self, org_name: str) -> bool:
        with self._lock:
            return org_name in self._orgs

    def get_org(self, org_name: str) -> Organization:
        """Return a copy of an organization record."""
        with self._lock:
            org = self._orgs.get(org_name)
            if org is None:
                raise TagStoreNotFound(org_name)
            return org.copy()

    def put_org(self, org: Organization):
        """Insert or fully replace an organization record."""
        with self._lock:
            self._orgs[org.name] = org.copy()
        self.logger.debug("Organization stored", org_name=org.name, approved=org.approved)

    def list_orgs(self) -> List[str]:
        """Organization names in registration order."""
        with self._lock:
            return list(self._orgs)

    def get_supported_tags(self, org_name: str) -> List[str]:
        return self.get_org(org_name).supported_tags

    def get_user_tags(self, org_name: str, user: str) -> TagMap:
        """Return a copy of a user's tag map, empty if the user has no record."""
        with self._lock:
            record = self._user_tags.get((org_name, user))
            if record is None:
                return {}
            return record.copy().tags

    def get(self, org_name: str, user: str, tag: str) -> List[str]:
        """Return the distinct values stored for a user tag, in first-seen order."""
        with self._lock:
            record = self._user_tags.get((org_name, user))
            if record is None or tag not in record.tags:
                raise TagStoreNotFound((org_name, user, tag))
            return list(dict.fromkeys(record.tags[tag]))

    def put(self, org_name: str, user: str, tags: TagMap):
        """Replace a user's entire tag map for an organization."""
        record = UserTagRecord(
            org_name=org_name,
            user=user,
            tags={tag: list(values) for tag, values in tags.items()}
        )
        with self._lock:
            self._user_tags[(org_name, user)] = record
        self.logger.debug("User tags stored", org_name=org_name, user=user, tags=list(tags))

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "total_orgs": len(self._orgs),
                "approved_orgs": len([o for o in self._orgs.values() if o.approved]),
                "user_records": len(self._user_tags),
            }
