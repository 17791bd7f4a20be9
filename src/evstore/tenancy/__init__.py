"""Tenancy – the Tenant aggregate and its repository."""
from evstore.tenancy.repository import TenantRepository, TenantSummary
from evstore.tenancy.tenant import (
    MAX_NAME_LENGTH,
    Tenant,
    TenantCreated,
    TenantDeleted,
    TenantRenamed,
    TenantStatus,
    TenantType,
)

__all__ = [
    "MAX_NAME_LENGTH",
    "Tenant",
    "TenantCreated",
    "TenantDeleted",
    "TenantRenamed",
    "TenantRepository",
    "TenantStatus",
    "TenantSummary",
    "TenantType",
]
