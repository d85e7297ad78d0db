"""
Ownership and invariant guards

Read-only checks composed by the lifecycle services before any write.
Each returns a ServiceResult; on success ``data`` carries the rows the
guard loaded so callers need not fetch them again.
"""
import logging
from typing import Optional
import uuid

from sqlalchemy import select

from bloomrent.models.property import Property, Unit
from bloomrent.models.tenant import Tenant, TenantStatus
from bloomrent.services.context import RequestContext
from bloomrent.services.results import ErrorKind, ServiceResult, fail, ok

logger = logging.getLogger(__name__)

UNIT_NOT_FOUND = "Unit not found."
UNIT_NOT_OWNED = "Access Denied. You do not own this unit."
PROPERTY_NOT_FOUND = "Property not found."
PROPERTY_NOT_OWNED = "Access Denied. You do not own this property."
UNIT_HAS_ACTIVE_TENANT = (
    "This unit already has an active tenant. Please end their lease first."
)


def verify_unit_ownership(
    ctx: RequestContext,
    unit_id: Optional[uuid.UUID],
    owner_id: Optional[uuid.UUID],
    not_found_message: str = UNIT_NOT_FOUND,
    not_owner_message: str = UNIT_NOT_OWNED,
) -> ServiceResult:
    """
    Confirm the unit's parent property belongs to ``owner_id``.

    Missing identifiers are a validation failure, distinct from the
    not-found and not-owned outcomes. Callers that must not reveal whether
    another owner's unit exists pass the same message for both.
    On success ``data`` is the ``(unit, property)`` pair.
    """
    if not unit_id:
        return fail(ErrorKind.VALIDATION, "Please provide a valid unit ID.")
    if not owner_id:
        return fail(ErrorKind.VALIDATION, "Please provide a valid owner ID.")

    row = ctx.db.execute(
        select(Unit, Property)
        .join(Property, Unit.property_id == Property.id)
        .where(Unit.id == unit_id)
        .limit(1)
    ).first()

    if row is None:
        return fail(ErrorKind.NOT_FOUND, not_found_message)

    unit, prop = row
    if prop.owner_id != owner_id:
        logger.warning(f"[GUARD] User {owner_id} denied access to unit {unit_id}")
        return fail(ErrorKind.PERMISSION_DENIED, not_owner_message)

    return ok((unit, prop))


def verify_property_ownership(
    ctx: RequestContext,
    property_id: Optional[uuid.UUID],
    owner_id: Optional[uuid.UUID],
    not_found_message: str = PROPERTY_NOT_FOUND,
    not_owner_message: str = PROPERTY_NOT_OWNED,
) -> ServiceResult:
    """Property-level counterpart of verify_unit_ownership; ``data`` is the property."""
    if not property_id:
        return fail(ErrorKind.VALIDATION, "Please provide a valid property ID.")
    if not owner_id:
        return fail(ErrorKind.VALIDATION, "Please provide a valid owner ID.")

    prop = ctx.db.get(Property, property_id)
    if prop is None:
        return fail(ErrorKind.NOT_FOUND, not_found_message)

    if prop.owner_id != owner_id:
        logger.warning(f"[GUARD] User {owner_id} denied access to property {property_id}")
        return fail(ErrorKind.PERMISSION_DENIED, not_owner_message)

    return ok(prop)


def ensure_unit_has_no_active_tenant(
    ctx: RequestContext,
    unit_id: Optional[uuid.UUID],
    tenant_status: Optional[TenantStatus] = None,
    message: str = UNIT_HAS_ACTIVE_TENANT,
) -> ServiceResult:
    """
    Fail with a conflict when the unit already has a tenant whose lease has
    no end date (optionally also matching ``tenant_status``).

    The partial unique index on tenants is the real enforcement point; this
    check only exists to produce a readable error before the write.
    """
    if not unit_id:
        return fail(ErrorKind.VALIDATION, "Please provide a valid unit ID.")

    query = select(Tenant.id).where(
        Tenant.unit_id == unit_id,
        Tenant.lease_end_date.is_(None),
    )
    if tenant_status is not None:
        query = query.where(Tenant.tenant_status == tenant_status)

    existing = ctx.db.execute(query.limit(1)).scalar_one_or_none()
    if existing is not None:
        return fail(ErrorKind.CONFLICT, message)

    return ok()
