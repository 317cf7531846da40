"""
Error taxonomy for the KYC Service.

Every error carries a stable numeric ``service_code`` that callers of the
service can match on; success is reported as ``0``.
"""

from typing import Any, Dict, Optional

from shared.errors import ServiceException

SUCCESS_CODE = 0


class KycError(ServiceException):
    """Base class for KYC directory and expression errors."""

    code: str = "KYC_ERROR"
    service_code: int = 0
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            type(self).code,
            message,
            details,
            status_code=type(self).status_code,
            service_code=type(self).service_code
        )


class InvalidPayloadError(KycError):
    """A name, description, account or tag value failed validation."""

    code = "INVALID_PAYLOAD"
    service_code = 0x66


class OrgNotFoundError(KycError):
    """The referenced organization is not registered."""

    code = "ORG_NOT_FOUND"
    service_code = 0x67
    status_code = 404

    def __init__(self, org_name: str):
        super().__init__(f"Kyc org {org_name} not found", {"org_name": org_name})


class OrgAlreadyExistsError(KycError):
    """An organization with the same name is already registered."""

    code = "ORG_ALREADY_EXISTS"
    service_code = 0x68
    status_code = 409

    def __init__(self, org_name: str):
        super().__init__(f"Kyc org {org_name} already exists", {"org_name": org_name})


class ExpressionParseError(KycError):
    """A tag expression is malformed."""

    code = "EXPRESSION_PARSE_ERROR"
    service_code = 0x6a

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} at position {position}", {"position": position})


class OrgNotApprovedError(KycError):
    """User tags can only be assigned by approved organizations."""

    code = "ORG_NOT_APPROVED"
    service_code = 0x6c

    def __init__(self, org_name: str):
        super().__init__(f"Kyc org {org_name} is not approved", {"org_name": org_name})


class PermissionDeniedError(KycError):
    """The caller is not the admin required by the operation."""

    code = "NON_AUTHORIZED"
    service_code = 0x6d
    status_code = 403

    def __init__(self, caller: str, operation: str):
        super().__init__(
            "Non authorized",
            {"caller": caller, "operation": operation}
        )


class UnsupportedTagError(KycError):
    """A tag key is not part of the organization's supported tags."""

    code = "OUT_OF_SUPPORTED_TAGS"
    service_code = 110

    def __init__(self, org_name: str, tags):
        tags = list(tags)
        super().__init__(
            f"Tags {', '.join(tags)} are not supported by kyc org {org_name}",
            {"org_name": org_name, "tags": tags}
        )
