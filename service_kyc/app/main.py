"""
KYC service for the KYC Registry.
"""

from typing import List, Optional
from datetime import datetime

from fastapi import Depends, Header

from shared.base_service import BaseService
from shared.logging import set_caller_context

from .config import KycConfig, get_kyc_config
from .directory import KycState, OrganizationDirectory
from .errors import SUCCESS_CODE
from .models import (
    Organization,
    RegisterOrgRequest, ChangeOrgApprovedRequest, UpdateSupportedTagsRequest,
    UpdateUserTagsRequest, ChangeAdminRequest, EvalUserTagExpressionRequest,
    OrgInfoResponse, OrgListResponse, SupportedTagsResponse, UserTagsResponse,
    AdminResponse, EvalUserTagExpressionResponse, OperationResponse, EventResponse
)


async def get_caller(x_caller: str = Header(..., description="Authenticated calling account")) -> str:
    """Calling account, authenticated upstream and forwarded in ``X-Caller``."""
    set_caller_context(x_caller)
    return x_caller


def _org_response(org: Organization) -> OrgInfoResponse:
    return OrgInfoResponse(**org.to_dict())


class KycService(BaseService):
    """KYC service implementation."""

    def __init__(self, config: Optional[KycConfig] = None):
        config = config or get_kyc_config()
        super().__init__("kyc", config=config)

        # Initialize components
        self.state = KycState(config.service_admin, max_events=config.max_events)
        self.directory = OrganizationDirectory(
            self.state,
            metrics=self.metrics,
            max_expression_length=config.max_expression_length
        )

        self._init_genesis()
        self._setup_kyc_routes()

    def _init_genesis(self):
        """Create the configured genesis organization, if any."""
        if not self.config.genesis_org_name:
            return

        self.directory.init_genesis(
            name=self.config.genesis_org_name,
            description=self.config.genesis_org_description,
            admin=self.config.genesis_org_admin or self.config.service_admin,
            supported_tags=self.config.genesis_supported_tags
        )

    def _setup_kyc_routes(self):
        """Set up KYC-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "kyc",
                "message": "KYC Registry - KYC Service",
                "version": "1.0.0",
                "capabilities": ["organization_directory", "tag_expressions", "events"]
            }

        @self.app.get("/kyc/admin", response_model=AdminResponse)
        async def get_admin():
            """Get the service admin."""
            return AdminResponse(admin=self.directory.get_admin())

        @self.app.put("/kyc/admin", response_model=OperationResponse)
        async def change_service_admin(request: ChangeAdminRequest, caller: str = Depends(get_caller)):
            """Transfer the service admin role."""
            self.directory.change_service_admin(request.new_admin, caller)
            return OperationResponse(code=SUCCESS_CODE, message="Service admin changed")

        @self.app.get("/kyc/orgs", response_model=OrgListResponse)
        async def get_orgs():
            """List organization names in registration order."""
            orgs = self.directory.get_orgs()
            return OrgListResponse(orgs=orgs, total=len(orgs))

        @self.app.post("/kyc/orgs", response_model=OrgInfoResponse, status_code=201)
        async def register_org(request: RegisterOrgRequest, caller: str = Depends(get_caller)):
            """Register a new organization."""
            name = self.directory.register_org(
                name=request.name,
                description=request.description,
                admin=request.admin,
                supported_tags=request.supported_tags,
                caller=caller
            )
            return _org_response(self.directory.get_org_info(name))

        @self.app.get("/kyc/orgs/{name}", response_model=OrgInfoResponse)
        async def get_org_info(name: str):
            """Get organization info."""
            return _org_response(self.directory.get_org_info(name))

        @self.app.get("/kyc/orgs/{name}/supported_tags", response_model=SupportedTagsResponse)
        async def get_org_supported_tags(name: str):
            """Get an organization's tag schema."""
            return SupportedTagsResponse(
                org_name=name,
                supported_tags=self.directory.get_org_supported_tags(name)
            )

        @self.app.put("/kyc/orgs/{name}/approved", response_model=OperationResponse)
        async def change_org_approved(
            name: str,
            request: ChangeOrgApprovedRequest,
            caller: str = Depends(get_caller)
        ):
            """Approve or disapprove an organization."""
            self.directory.change_org_approved(name, request.approved, caller)
            return OperationResponse(code=SUCCESS_CODE, message="Organization approval changed")

        @self.app.put("/kyc/orgs/{name}/supported_tags", response_model=OperationResponse)
        async def update_supported_tags(
            name: str,
            request: UpdateSupportedTagsRequest,
            caller: str = Depends(get_caller)
        ):
            """Replace an organization's tag schema."""
            self.directory.update_supported_tags(name, request.supported_tags, caller)
            return OperationResponse(code=SUCCESS_CODE, message="Supported tags updated")

        @self.app.put("/kyc/orgs/{name}/admin", response_model=OperationResponse)
        async def change_org_admin(
            name: str,
            request: ChangeAdminRequest,
            caller: str = Depends(get_caller)
        ):
            """Transfer an organization's admin role."""
            self.directory.change_org_admin(name, request.new_admin, caller)
            return OperationResponse(code=SUCCESS_CODE, message="Organization admin changed")

        @self.app.get("/kyc/orgs/{name}/users/{user}/tags", response_model=UserTagsResponse)
        async def get_user_tags(name: str, user: str):
            """Get the tags an organization assigned to a user."""
            return UserTagsResponse(
                org_name=name,
                user=user,
                tags=self.directory.get_user_tags(name, user)
            )

        @self.app.put("/kyc/orgs/{name}/users/{user}/tags", response_model=OperationResponse)
        async def update_user_tags(
            name: str,
            user: str,
            request: UpdateUserTagsRequest,
            caller: str = Depends(get_caller)
        ):
            """Replace the tags an organization assigned to a user."""
            self.directory.update_user_tags(name, user, request.tags, caller)
            return OperationResponse(code=SUCCESS_CODE, message="User tags updated")

        @self.app.post("/kyc/eval", response_model=EvalUserTagExpressionResponse)
        async def eval_user_tag_expression(request: EvalUserTagExpressionRequest):
            """Evaluate a tag expression for a user."""
            result = self.directory.eval_user_tag_expression(request.user, request.expression)
            return EvalUserTagExpressionResponse(
                user=request.user,
                expression=request.expression,
                result=result
            )

        @self.app.get("/kyc/events", response_model=List[EventResponse])
        async def get_events():
            """List emitted events in order."""
            return [EventResponse(topic=e.topic, data=e.data) for e in self.directory.get_events()]

        @self.app.get("/kyc/stats")
        async def get_stats():
            """Get KYC service statistics."""
            return {
                "store": self.state.store.stats(),
                "events": len(self.directory.get_events()),
                "timestamp": datetime.now().isoformat()
            }

    async def _check_dependencies(self):
        """Check KYC service dependencies."""
        self.state.store.stats()
        return {"tag_store": "ok"}


def create_app(config: Optional[KycConfig] = None):
    """Create KYC service application."""
    service = KycService(config)
    return service.app


if __name__ == "__main__":
    service = KycService()
    service.run()
