"""
Data models for the KYC Service.
"""

import re
from typing import Dict, Any, Optional, List, Iterable
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from .errors import InvalidPayloadError

MAX_NAME_LENGTH = 32
MAX_DESCRIPTION_LENGTH = 256
MAX_TAG_VALUE_LENGTH = 64
ZERO_ADDRESS = "0x" + "0" * 40

NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

# Tag name -> assigned values, in assignment order.
TagMap = Dict[str, List[str]]


@dataclass
class Organization:
    """Organization allowed to assert tags about users."""
    name: str
    description: str
    admin: str
    supported_tags: List[str] = field(default_factory=list)
    approved: bool = False

    def copy(self) -> "Organization":
        return Organization(
            name=self.name,
            description=self.description,
            admin=self.admin,
            supported_tags=list(self.supported_tags),
            approved=self.approved
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "admin": self.admin,
            "supported_tags": list(self.supported_tags),
            "approved": self.approved,
        }


@dataclass
class UserTagRecord:
    """Tags an organization assigned to one user."""
    org_name: str
    user: str
    tags: TagMap = field(default_factory=dict)

    def copy(self) -> "UserTagRecord":
        return UserTagRecord(
            org_name=self.org_name,
            user=self.user,
            tags={tag: list(values) for tag, values in self.tags.items()}
        )


@dataclass
class KycEvent:
    """Event emitted by a successful directory mutation."""
    topic: str
    data: Dict[str, Any] = field(default_factory=dict)


# Validation

def validate_name(value: str, kind: str = "name") -> str:
    """Validate an organization or tag name."""
    if not isinstance(value, str) or not value:
        raise InvalidPayloadError(f"Kyc {kind} must not be empty", {kind: value})
    if len(value) > MAX_NAME_LENGTH:
        raise InvalidPayloadError(
            f"Kyc {kind} {value} exceeds {MAX_NAME_LENGTH} characters", {kind: value}
        )
    if not NAME_PATTERN.match(value):
        raise InvalidPayloadError(
            f"Kyc {kind} {value} must start with a letter and contain only letters, digits and '_'",
            {kind: value}
        )
    return value


def validate_tag_names(tags: Iterable[str]) -> List[str]:
    """Validate a supported tag list; names must be unique."""
    names = [validate_name(tag, "tag name") for tag in tags]
    seen = set()
    for name in names:
        if name in seen:
            raise InvalidPayloadError(f"Duplicate tag name {name}", {"tag name": name})
        seen.add(name)
    return names


def validate_description(value: str) -> str:
    if not isinstance(value, str):
        raise InvalidPayloadError("Description must be a string")
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise InvalidPayloadError(
            f"Description exceeds {MAX_DESCRIPTION_LENGTH} characters",
            {"length": len(value)}
        )
    return value


def validate_address(value: str, kind: str = "address") -> str:
    """Account identifiers are opaque but must be set."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidPayloadError(f"Invalid {kind}: empty", {kind: value})
    if value.lower() == ZERO_ADDRESS:
        raise InvalidPayloadError(f"Invalid {kind}: zero address", {kind: value})
    return value


def validate_tag_value(value: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidPayloadError("Tag value must not be empty", {"value": value})
    if len(value) > MAX_TAG_VALUE_LENGTH:
        raise InvalidPayloadError(
            f"Tag value exceeds {MAX_TAG_VALUE_LENGTH} characters", {"value": value}
        )
    if "`" in value:
        raise InvalidPayloadError("Tag value must not contain a backtick", {"value": value})
    return value


# HTTP request/response models

class RegisterOrgRequest(BaseModel):
    """Request model for registering an organization."""
    name: str = Field(..., description="Unique organization name")
    description: str = Field("", description="Organization description")
    admin: str = Field(..., description="Organization admin account")
    supported_tags: List[str] = Field(default_factory=list, description="Tag schema")


class ChangeOrgApprovedRequest(BaseModel):
    """Request model for approving or disapproving an organization."""
    approved: bool = Field(..., description="New approval state")


class UpdateSupportedTagsRequest(BaseModel):
    """Request model for replacing an organization's tag schema."""
    supported_tags: List[str] = Field(..., description="New tag schema")


class UpdateUserTagsRequest(BaseModel):
    """Request model for replacing a user's tags."""
    tags: Dict[str, List[str]] = Field(default_factory=dict, description="Tag name to values")


class ChangeAdminRequest(BaseModel):
    """Request model for transferring an admin role."""
    new_admin: str = Field(..., description="New admin account")


class EvalUserTagExpressionRequest(BaseModel):
    """Request model for evaluating a tag expression."""
    user: str = Field(..., description="User account")
    expression: str = Field(..., description="Tag assertion expression")


class OrgInfoResponse(BaseModel):
    """Response model for organization info."""
    name: str
    description: str
    admin: str
    supported_tags: List[str]
    approved: bool


class OrgListResponse(BaseModel):
    """Response model for organization names."""
    orgs: List[str]
    total: int


class SupportedTagsResponse(BaseModel):
    """Response model for an organization's tag schema."""
    org_name: str
    supported_tags: List[str]


class UserTagsResponse(BaseModel):
    """Response model for a user's tags."""
    org_name: str
    user: str
    tags: Dict[str, List[str]]


class AdminResponse(BaseModel):
    """Response model for the service admin."""
    admin: str


class EvalUserTagExpressionResponse(BaseModel):
    """Response model for an expression evaluation."""
    user: str
    expression: str
    result: bool


class OperationResponse(BaseModel):
    """Response model for successful mutations."""
    success: bool = True
    code: int = 0
    message: Optional[str] = None


class EventResponse(BaseModel):
    """Response model for an emitted event."""
    topic: str
    data: Dict[str, Any]
