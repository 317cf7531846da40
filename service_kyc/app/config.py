"""
Configuration for the KYC Service.
"""

from typing import List, Optional

from pydantic import Field

from shared.config import ServiceConfig

DEFAULT_SERVICE_ADMIN = "0x755cdba6ae4f479f7164792b318b2a06c759833b"


class KycConfig(ServiceConfig):
    """KYC-specific configuration, read from ``KYC_*`` environment variables."""

    # Service admin at startup
    service_admin: str = Field(default=DEFAULT_SERVICE_ADMIN)

    # Optional genesis organization, created already approved
    genesis_org_name: Optional[str] = Field(default=None)
    genesis_org_description: str = Field(default="")
    genesis_org_admin: Optional[str] = Field(default=None)
    genesis_supported_tags: List[str] = Field(default_factory=list)

    # Expressions
    max_expression_length: int = Field(default=1024, gt=0)

    # Event log, oldest events dropped first
    max_events: int = Field(default=10000, gt=0)


def get_kyc_config(**overrides) -> KycConfig:
    """Get configuration for the KYC service."""
    return KycConfig(service_name="kyc", **overrides)
