"""
Application state shared by every directory call.
"""

from collections import deque
from typing import Any, Deque, Dict, List, Optional

from shared.logging import get_logger
from ..models import KycEvent, validate_address
from ..store import TagStore

DEFAULT_MAX_EVENTS = 10000


class KycState:
    """Store, service admin and event log of one KYC service instance.

    The service admin is explicit state with a single mutation path
    (``set_service_admin``); callers must hold ``store.transaction()``
    while changing it. The event log keeps the latest ``max_events``
    events, oldest dropped first.
    """

    def __init__(
        self,
        service_admin: str,
        store: Optional[TagStore] = None,
        max_events: int = DEFAULT_MAX_EVENTS
    ):
        self.logger = get_logger("kyc.state")
        self.store = store or TagStore()
        self._service_admin = validate_address(service_admin, "service admin")
        self._events: Deque[KycEvent] = deque(maxlen=max_events)

    @property
    def service_admin(self) -> str:
        with self.store.transaction():
            return self._service_admin

    def set_service_admin(self, new_admin: str):
        with self.store.transaction():
            self._service_admin = new_admin

    def emit_event(self, topic: str, data: Dict[str, Any]) -> KycEvent:
        event = KycEvent(topic=topic, data=data)
        with self.store.transaction():
            self._events.append(event)
        self.logger.info("KYC event emitted", topic=topic)
        return event

    @property
    def events(self) -> List[KycEvent]:
        with self.store.transaction():
            return list(self._events)
