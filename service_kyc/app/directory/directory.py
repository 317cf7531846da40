"""
Organization directory for the KYC Service.

Every mutation runs as one unit under the store transaction: permission
and existence checks, then payload validation, then the write. A failed
check raises before anything is written.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..errors import (
    InvalidPayloadError, KycError, OrgAlreadyExistsError, OrgNotApprovedError, OrgNotFoundError,
    PermissionDeniedError, UnsupportedTagError
)
from ..expression import DEFAULT_MAX_EXPRESSION_LENGTH, eval_user_tag_expression
from ..models import (
    KycEvent, Organization, TagMap,
    validate_address, validate_description, validate_name,
    validate_tag_names, validate_tag_value
)
from ..store import TagStoreNotFound
from .state import KycState


class OrganizationDirectory:
    """Registration, approval and tag management of KYC organizations."""

    def __init__(
        self,
        state: KycState,
        metrics: Optional[MetricsCollector] = None,
        max_expression_length: int = DEFAULT_MAX_EXPRESSION_LENGTH
    ):
        self.state = state
        self.store = state.store
        self.metrics = metrics
        self.max_expression_length = max_expression_length
        self.logger = get_logger("kyc.directory")

    @contextmanager
    def _mutation(self, operation: str, caller: str) -> Iterator[None]:
        """Serialize a mutation and record its outcome."""
        try:
            with self.store.transaction():
                yield
        except PermissionDeniedError:
            self.logger.warning("Permission denied", operation=operation, caller=caller)
            self._record_mutation(operation, "denied")
            raise
        except KycError as e:
            self.logger.info("Mutation rejected", operation=operation, caller=caller, code=e.code)
            self._record_mutation(operation, "rejected")
            raise
        self._record_mutation(operation, "ok")

    def _record_mutation(self, operation: str, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("kyc_mutations_total", operation=operation, outcome=outcome)

    def _emit(self, topic: str, data: Dict) -> KycEvent:
        if self.metrics:
            self.metrics.record_business_event(topic)
        return self.state.emit_event(topic, data)

    def _require_org(self, name: str) -> Organization:
        try:
            return self.store.get_org(name)
        except TagStoreNotFound:
            raise OrgNotFoundError(name) from None

    def _require_service_admin(self, caller: str, operation: str):
        if caller != self.state.service_admin:
            raise PermissionDeniedError(caller, operation)

    def _require_org_admin(self, org: Organization, caller: str, operation: str):
        if caller != org.admin:
            raise PermissionDeniedError(caller, operation)

    # Genesis

    def init_genesis(
        self,
        name: str,
        description: str,
        admin: str,
        supported_tags: List[str]
    ) -> Organization:
        """Create an already approved organization at startup."""
        org = Organization(
            name=validate_name(name, "org name"),
            description=validate_description(description),
            admin=validate_address(admin, "admin"),
            supported_tags=validate_tag_names(supported_tags),
            approved=True
        )
        with self.store.transaction():
            if self.store.org_exists(name):
                raise OrgAlreadyExistsError(name)
            self.store.put_org(org)

        self.logger.info("Genesis organization created", org_name=name, admin=admin)
        return org.copy()

    # Reads

    def get_admin(self) -> str:
        return self.state.service_admin

    def get_orgs(self) -> List[str]:
        return self.store.list_orgs()

    def get_org_info(self, name: str) -> Organization:
        return self._require_org(name)

    def get_org_supported_tags(self, name: str) -> List[str]:
        return self._require_org(name).supported_tags

    def get_user_tags(self, name: str, user: str) -> TagMap:
        """A user's tags under an organization; empty when nothing was assigned."""
        validate_address(user, "user")
        with self.store.transaction():
            self._require_org(name)
            return self.store.get_user_tags(name, user)

    def get_events(self) -> List[KycEvent]:
        return self.state.events

    def eval_user_tag_expression(self, user: str, expression: str) -> bool:
        """Evaluate a tag expression for a user; only malformed expressions raise."""
        if self.metrics:
            with self.metrics.time_operation("kyc_evaluation_duration_seconds"):
                result = eval_user_tag_expression(
                    self.store, user, expression, self.max_expression_length
                )
            self.metrics.increment_counter("kyc_evaluations_total", result=str(result).lower())
            return result

        return eval_user_tag_expression(self.store, user, expression, self.max_expression_length)

    # Service admin operations

    def register_org(
        self,
        name: str,
        description: str,
        admin: str,
        supported_tags: List[str],
        caller: str
    ) -> str:
        """Register a new, unapproved organization. Returns its name."""
        with self._mutation("register_org", caller):
            self._require_service_admin(caller, "register_org")

            org = Organization(
                name=validate_name(name, "org name"),
                description=validate_description(description),
                admin=validate_address(admin, "admin"),
                supported_tags=validate_tag_names(supported_tags),
                approved=False
            )
            if self.store.org_exists(name):
                raise OrgAlreadyExistsError(name)

            self.store.put_org(org)
            self._emit("register_org", {"name": name, "supported_tags": list(org.supported_tags)})

        self.logger.info("Organization registered", org_name=name, admin=admin, caller=caller)
        return name

    def change_org_approved(self, name: str, approved: bool, caller: str):
        with self._mutation("change_org_approved", caller):
            self._require_service_admin(caller, "change_org_approved")
            org = self._require_org(name)

            org.approved = bool(approved)
            self.store.put_org(org)
            self._emit("change_org_approved", {"org_name": name, "approved": bool(approved)})

        self.logger.info(
            "Organization approval changed",
            org_name=name,
            approved=approved,
            caller=caller
        )

    def change_service_admin(self, new_admin: str, caller: str):
        with self._mutation("change_service_admin", caller):
            validate_address(new_admin, "new admin")
            self._require_service_admin(caller, "change_service_admin")

            self.state.set_service_admin(new_admin)

        self.logger.info("Service admin changed", new_admin=new_admin, caller=caller)

    # Organization admin operations

    def change_org_admin(self, name: str, new_admin: str, caller: str):
        with self._mutation("change_org_admin", caller):
            org = self._require_org(name)
            self._require_org_admin(org, caller, "change_org_admin")
            validate_address(new_admin, "new admin")

            org.admin = new_admin
            self.store.put_org(org)
            self._emit("change_org_admin", {"name": name, "new_admin": new_admin})

        self.logger.info(
            "Organization admin changed",
            org_name=name,
            new_admin=new_admin,
            caller=caller
        )

    def update_supported_tags(self, name: str, new_tags: List[str], caller: str):
        """Replace the tag schema; stored user tags are left untouched."""
        with self._mutation("update_supported_tags", caller):
            org = self._require_org(name)
            self._require_org_admin(org, caller, "update_supported_tags")

            org.supported_tags = validate_tag_names(new_tags)
            self.store.put_org(org)
            self._emit("update_supported_tags", {"org_name": name, "supported_tags": list(new_tags)})

        self.logger.info(
            "Supported tags updated",
            org_name=name,
            supported_tags=list(new_tags),
            caller=caller
        )

    def update_user_tags(self, name: str, user: str, tags: TagMap, caller: str):
        """Replace every tag the organization assigned to ``user``."""
        with self._mutation("update_user_tags", caller):
            org = self._require_org(name)
            if not org.approved:
                raise OrgNotApprovedError(name)
            self._require_org_admin(org, caller, "update_user_tags")

            unsupported = [tag for tag in tags if tag not in org.supported_tags]
            if unsupported:
                raise UnsupportedTagError(name, unsupported)

            validate_address(user, "user")
            for tag, values in tags.items():
                if not isinstance(values, (list, tuple)):
                    raise InvalidPayloadError(f"Values of tag {tag} must be a list", {"tag": tag})
                for value in values:
                    validate_tag_value(value)

            self.store.put(name, user, tags)
            self._emit("update_user_tags", {
                "org_name": name,
                "user": user,
                "tags": {tag: list(values) for tag, values in tags.items()}
            })

        self.logger.info(
            "User tags updated",
            org_name=name,
            user=user,
            tags=list(tags),
            caller=caller
        )
