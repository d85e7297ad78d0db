"""
Tenant lifecycle service

draft -> active. A draft holds the tenant's contact details and lease dates
while the owner walks through the add-tenant wizard; activation assigns the
unit once ownership and the one-active-tenant-per-unit rule both hold.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from bloomrent.core.permissions import Action, Resource
from bloomrent.db.base import as_utc, utcnow
from bloomrent.models.property import Property, Unit
from bloomrent.models.tenant import Tenant, TenantStatus
from bloomrent.services.context import ACCESS_DENIED, RequestContext, require
from bloomrent.services.errors import (
    ACTIVE_TENANT_CONFLICT, CONTACT_METHOD_REQUIRED, LEASE_DATES_ORDERED,
    service_boundary, translate_integrity_error,
)
from bloomrent.services.guards import (
    ensure_unit_has_no_active_tenant, verify_unit_ownership,
)
from bloomrent.services.results import ErrorKind, ServiceResult, fail, ok

logger = logging.getLogger(__name__)

TENANT_NOT_FOUND = "Tenant not found."
NOT_YOUR_TENANT = "Access Denied. You cannot see tenants that do not belong to you."

# Fields the draft-update path may touch
DRAFT_FIELDS = frozenset({"name", "email", "phone", "lease_start_date", "lease_end_date"})


class TenantDetails(NamedTuple):
    tenant: Tenant
    unit: Optional[Unit]
    property: Optional[Property]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _lease_dates_ordered(start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None or end is None:
        return True
    return as_utc(end) > as_utc(start)


def _details_query():
    # LEFT JOINs: drafts have no unit yet
    return (
        select(Tenant, Unit, Property)
        .outerjoin(Unit, Tenant.unit_id == Unit.id)
        .outerjoin(Property, Unit.property_id == Property.id)
    )


@service_boundary("Failed to create tenant draft.")
def create_tenant_draft(
    ctx: RequestContext,
    name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> ServiceResult:
    """Step 1 of the add-tenant wizard: name and at least one contact method."""
    denied = require(ctx, Resource.TENANT, Action.CREATE, "create a tenant")
    if denied is not None:
        return denied

    name = _clean(name)
    email = _clean(email)
    phone = _clean(phone)

    if not name:
        return fail(ErrorKind.VALIDATION, "Tenant name is required.")
    if not email and not phone:
        return fail(ErrorKind.VALIDATION, CONTACT_METHOD_REQUIRED)

    try:
        tenant = Tenant(
            name=name,
            email=email,
            phone=phone,
            tenant_status=TenantStatus.DRAFT,
            owner_id=ctx.user_id,
        )
        ctx.db.add(tenant)
        ctx.db.commit()
        ctx.db.refresh(tenant)

        logger.info(f"[TENANTS] Draft {tenant.id} created by {ctx.user_id}")
        return ok(tenant)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to create tenant draft.")


@service_boundary("Failed to update tenant draft.")
def update_tenant_draft(
    ctx: RequestContext, tenant_id: uuid.UUID, data: Dict[str, Any]
) -> ServiceResult:
    """
    Partial update of a draft (contact details, lease dates).

    Once the tenant has been activated this path refuses to write, so an
    active lease can't be changed through the wizard.
    """
    denied = require(ctx, Resource.TENANT, Action.UPDATE, "update a tenant")
    if denied is not None:
        return denied

    unknown = set(data) - DRAFT_FIELDS
    if unknown:
        return fail(
            ErrorKind.VALIDATION,
            f"Cannot update tenant field(s): {', '.join(sorted(unknown))}.",
        )

    try:
        tenant = ctx.db.get(Tenant, tenant_id)
        if tenant is None:
            return fail(ErrorKind.NOT_FOUND, TENANT_NOT_FOUND)

        if tenant.owner_id != ctx.user_id:
            return fail(
                ErrorKind.PERMISSION_DENIED,
                "Access Denied. You do not have permission to update this tenant.",
            )

        if tenant.tenant_status != TenantStatus.DRAFT:
            return fail(ErrorKind.CONFLICT, "Cannot update tenant where status is not draft.")

        changes = dict(data)
        for key in ("name", "email", "phone"):
            if key in changes:
                changes[key] = _clean(changes[key])

        if "name" in changes and not changes["name"]:
            return fail(ErrorKind.VALIDATION, "Tenant name is required.")

        email = changes.get("email", tenant.email)
        phone = changes.get("phone", tenant.phone)
        if not email and not phone:
            return fail(ErrorKind.VALIDATION, CONTACT_METHOD_REQUIRED)

        start = changes.get("lease_start_date", tenant.lease_start_date)
        end = changes.get("lease_end_date", tenant.lease_end_date)
        if not _lease_dates_ordered(start, end):
            return fail(ErrorKind.VALIDATION, LEASE_DATES_ORDERED)

        for key, value in changes.items():
            setattr(tenant, key, value)
        tenant.updated_at = utcnow()

        ctx.db.commit()
        ctx.db.refresh(tenant)
        logger.info(f"[TENANTS] Draft {tenant.id} updated: {sorted(changes)}")
        return ok(tenant)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to update tenant draft.")


@service_boundary("Failed to activate tenant.")
def activate_tenant_draft(
    ctx: RequestContext, tenant_id: uuid.UUID, unit_id: uuid.UUID
) -> ServiceResult:
    """
    Assign a draft tenant to a unit and mark it active.

    Runs the unit ownership guard (with "Access Denied." for both missing
    and foreign units), re-checks the tenant itself, then the active-tenant
    guard. The reads and the final write share one transaction; if a
    concurrent activation wins the race the partial unique index rejects
    this one and the violation is reported as the same conflict.
    """
    denied = require(
        ctx, Resource.TENANT, Action.CREATE, "activate a tenant",
        signed_in_message=ACCESS_DENIED,
    )
    if denied is not None:
        return denied

    try:
        ownership = verify_unit_ownership(
            ctx,
            unit_id,
            ctx.user_id,
            not_found_message=ACCESS_DENIED,
            not_owner_message=ACCESS_DENIED,
        )
        if not ownership.success:
            if ownership.error == ErrorKind.NOT_FOUND:
                # masked: report a missing unit exactly like a foreign one
                return fail(ErrorKind.PERMISSION_DENIED, ACCESS_DENIED)
            return ownership

        tenant = ctx.db.get(Tenant, tenant_id)
        if tenant is None:
            return fail(ErrorKind.NOT_FOUND, TENANT_NOT_FOUND)

        if tenant.owner_id != ctx.user_id:
            return fail(ErrorKind.PERMISSION_DENIED, ACCESS_DENIED)

        if tenant.tenant_status != TenantStatus.DRAFT:
            return fail(
                ErrorKind.CONFLICT,
                "Cannot activate a tenant that is not in draft status.",
            )

        availability = ensure_unit_has_no_active_tenant(
            ctx, unit_id, tenant_status=TenantStatus.ACTIVE, message=ACTIVE_TENANT_CONFLICT
        )
        if not availability.success:
            return availability

        tenant.unit_id = unit_id
        tenant.tenant_status = TenantStatus.ACTIVE
        tenant.updated_at = utcnow()

        ctx.db.commit()
        ctx.db.refresh(tenant)
        logger.info(f"[TENANTS] Tenant {tenant.id} activated on unit {unit_id}")
        return ok(tenant)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to activate tenant.")


@service_boundary("Failed to fetch tenant.")
def get_tenant(ctx: RequestContext, tenant_id: uuid.UUID) -> ServiceResult:
    """
    Tenant with its unit and property.

    Unit-assigned tenants are checked through the property's owner; drafts,
    which have no property yet, through the owner who created them.
    """
    denied = require(ctx, Resource.TENANT, Action.VIEW, "view a tenant")
    if denied is not None:
        return denied

    row = ctx.db.execute(
        _details_query().where(Tenant.id == tenant_id).limit(1)
    ).first()

    if row is None:
        return fail(ErrorKind.NOT_FOUND, TENANT_NOT_FOUND)

    tenant, unit, prop = row
    owner_id = prop.owner_id if prop is not None else tenant.owner_id
    if owner_id != ctx.user_id:
        return fail(ErrorKind.PERMISSION_DENIED, NOT_YOUR_TENANT)

    return ok(TenantDetails(tenant, unit, prop))


@service_boundary("Failed to fetch tenants.")
def list_tenants(ctx: RequestContext) -> ServiceResult:
    """All of the caller's tenants, drafts included, newest first."""
    denied = require(ctx, Resource.TENANT, Action.LIST, "list tenants")
    if denied is not None:
        return denied

    rows = ctx.db.execute(
        _details_query()
        .where(Tenant.owner_id == ctx.user_id)
        .order_by(Tenant.created_at.desc())
    ).all()

    tenants: List[TenantDetails] = [TenantDetails(*row) for row in rows]
    return ok(tenants)
