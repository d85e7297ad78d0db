"""
Property and unit service

Owners build a property through the add-property wizard (draft), add its
units, then publish it. Properties are archived rather than deleted.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, NamedTuple, Optional
import uuid

from sqlalchemy import and_, exists, func, select
from sqlalchemy.exc import IntegrityError

from bloomrent.core.permissions import Action, Resource
from bloomrent.db.base import utcnow
from bloomrent.models.property import Property, PropertyStatus, Unit
from bloomrent.models.tenant import Tenant
from bloomrent.services.context import ACCESS_DENIED, RequestContext, require
from bloomrent.services.errors import service_boundary, translate_integrity_error
from bloomrent.services.guards import verify_property_ownership, verify_unit_ownership
from bloomrent.services.results import ErrorKind, ServiceResult, fail, ok

logger = logging.getLogger(__name__)

PROPERTY_FIELDS = frozenset({
    "name", "description", "property_type", "unit_type", "contact_email",
    "contact_phone", "address_line_1", "address_line_2", "city", "state",
    "zip_code", "country", "year_built", "building_sq_ft", "lot_sq_ft",
})
UNIT_FIELDS = frozenset({
    "unit_number", "bedrooms", "bathrooms", "rent_amount", "deposit_amount",
})
REQUIRED_ADDRESS_FIELDS = ("name", "address_line_1", "city", "state", "zip_code")


class PropertyListRow(NamedTuple):
    property: Property
    units_count: int
    bedrooms: Optional[int]
    bathrooms: Optional[Decimal]


class DraftProperty(NamedTuple):
    property: Property
    units_count: int


class PropertyAvailability(NamedTuple):
    property: Property
    total_units: int
    available_units: int


def _unknown_fields(data: Dict[str, Any], allowed: Iterable[str]) -> Optional[ServiceResult]:
    unknown = set(data) - set(allowed)
    if unknown:
        return fail(ErrorKind.VALIDATION, f"Unknown field(s): {', '.join(sorted(unknown))}.")
    return None


def _has_open_lease():
    """Correlated EXISTS: the unit has a tenant whose lease has no end date."""
    return exists().where(
        Tenant.unit_id == Unit.id,
        Tenant.lease_end_date.is_(None),
    )


@service_boundary("Failed to create property. Please try again.")
def create_property_draft(ctx: RequestContext, data: Dict[str, Any]) -> ServiceResult:
    denied = require(ctx, Resource.PROPERTY, Action.CREATE, "create a property")
    if denied is not None:
        return denied

    invalid = _unknown_fields(data, PROPERTY_FIELDS)
    if invalid is not None:
        return invalid

    missing = [key for key in REQUIRED_ADDRESS_FIELDS if not data.get(key)]
    if missing:
        return fail(ErrorKind.VALIDATION, f"Missing required field(s): {', '.join(missing)}.")

    try:
        prop = Property(**data, owner_id=ctx.user_id, property_status=PropertyStatus.DRAFT)
        ctx.db.add(prop)
        ctx.db.commit()
        ctx.db.refresh(prop)

        logger.info(f"[PROPERTIES] Draft {prop.id} created by {ctx.user_id}")
        return ok(prop)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to create property. Please try again.")


@service_boundary("Failed to update property. Please try again.")
def update_property_draft(
    ctx: RequestContext, property_id: uuid.UUID, data: Dict[str, Any]
) -> ServiceResult:
    denied = require(ctx, Resource.PROPERTY, Action.UPDATE, "update a property")
    if denied is not None:
        return denied

    invalid = _unknown_fields(data, PROPERTY_FIELDS)
    if invalid is not None:
        return invalid

    try:
        owned = verify_property_ownership(
            ctx, property_id, ctx.user_id,
            not_owner_message="Access Denied. You do not have permission to update this property.",
        )
        if not owned.success:
            return owned
        prop: Property = owned.data

        if prop.property_status == PropertyStatus.ARCHIVED:
            return fail(ErrorKind.CONFLICT, "Cannot update an archived property.")

        for key, value in data.items():
            setattr(prop, key, value)
        prop.updated_at = utcnow()

        ctx.db.commit()
        ctx.db.refresh(prop)
        logger.info(f"[PROPERTIES] Property {prop.id} updated: {sorted(data)}")
        return ok(prop)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to update property. Please try again.")


@service_boundary("Failed to fetch property. Please try again.")
def get_property(ctx: RequestContext, property_id: uuid.UUID) -> ServiceResult:
    """Property with its units loaded; owner only."""
    denied = require(ctx, Resource.PROPERTY, Action.VIEW, "view a property")
    if denied is not None:
        return denied

    owned = verify_property_ownership(ctx, property_id, ctx.user_id)
    if not owned.success:
        return owned

    prop: Property = owned.data
    # touch the relationship so callers can serialize after the session closes
    prop.units
    return ok(prop)


@service_boundary("Failed to list properties. Please try again.")
def list_properties(ctx: RequestContext) -> ServiceResult:
    """Caller's properties with unit count and the largest unit's bed/bath figures."""
    denied = require(ctx, Resource.PROPERTY, Action.LIST, "list properties")
    if denied is not None:
        return denied

    rows = ctx.db.execute(
        select(
            Property,
            func.count(Unit.id),
            func.max(Unit.bedrooms),
            func.max(Unit.bathrooms),
        )
        .outerjoin(Unit, Unit.property_id == Property.id)
        .where(Property.owner_id == ctx.user_id)
        .group_by(Property.id)
        .order_by(Property.created_at.desc())
    ).all()

    return ok([PropertyListRow(prop, int(count), beds, baths) for prop, count, beds, baths in rows])


@service_boundary("Failed to fetch draft property. Please try again.")
def get_draft_property(ctx: RequestContext) -> ServiceResult:
    """The caller's newest draft, so the wizard can resume it; ``data`` is None if there is none."""
    denied = require(ctx, Resource.PROPERTY, Action.VIEW, "view a property")
    if denied is not None:
        return denied

    row = ctx.db.execute(
        select(Property, func.count(Unit.id))
        .outerjoin(Unit, Unit.property_id == Property.id)
        .where(
            Property.owner_id == ctx.user_id,
            Property.property_status == PropertyStatus.DRAFT,
        )
        .group_by(Property.id)
        .order_by(Property.created_at.desc())
        .limit(1)
    ).first()

    if row is None:
        return ok(None)

    prop, units_count = row
    return ok(DraftProperty(prop, int(units_count)))


@service_boundary("Failed to create units. Please try again.")
def create_units(
    ctx: RequestContext, property_id: uuid.UUID, units: List[Dict[str, Any]]
) -> ServiceResult:
    """Batch insert; either every unit is created or none is."""
    denied = require(ctx, Resource.UNIT, Action.CREATE, "create units")
    if denied is not None:
        return denied

    if not units:
        return fail(ErrorKind.VALIDATION, "Please provide at least one unit.")
    for unit_data in units:
        invalid = _unknown_fields(unit_data, UNIT_FIELDS)
        if invalid is not None:
            return invalid

    numbers = [str(u.get("unit_number", "")).strip() for u in units]
    if any(not n for n in numbers):
        return fail(ErrorKind.VALIDATION, "Every unit needs a unit number.")
    if len(set(numbers)) != len(numbers):
        return fail(
            ErrorKind.CONFLICT,
            "A unit with this name already exists for this property. "
            "Please choose a different name.",
        )

    try:
        owned = verify_property_ownership(ctx, property_id, ctx.user_id)
        if not owned.success:
            return owned

        created = []
        for unit_data, number in zip(units, numbers):
            unit = Unit(**{**unit_data, "unit_number": number}, property_id=property_id)
            ctx.db.add(unit)
            created.append(unit)

        ctx.db.commit()
        for unit in created:
            ctx.db.refresh(unit)

        logger.info(f"[PROPERTIES] {len(created)} unit(s) added to property {property_id}")
        return ok(created)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to create units. Please try again.")


@service_boundary("Failed to update unit. Please try again.")
def update_unit(ctx: RequestContext, unit_id: uuid.UUID, data: Dict[str, Any]) -> ServiceResult:
    denied = require(ctx, Resource.UNIT, Action.UPDATE, "update units")
    if denied is not None:
        return denied

    invalid = _unknown_fields(data, UNIT_FIELDS)
    if invalid is not None:
        return invalid

    try:
        owned = verify_unit_ownership(
            ctx, unit_id, ctx.user_id,
            not_owner_message="Access Denied. You do not have permission to update this unit.",
        )
        if not owned.success:
            return owned
        unit, _prop = owned.data

        for key, value in data.items():
            setattr(unit, key, value)
        unit.updated_at = utcnow()

        ctx.db.commit()
        ctx.db.refresh(unit)
        logger.info(f"[PROPERTIES] Unit {unit.id} updated: {sorted(data)}")
        return ok(unit)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to update unit. Please try again.")


@service_boundary("Failed to archive property. Please try again.")
def archive_property(ctx: RequestContext, property_id: uuid.UUID) -> ServiceResult:
    denied = require(ctx, Resource.PROPERTY, Action.ARCHIVE, "archive a property")
    if denied is not None:
        return denied

    owned = verify_property_ownership(
        ctx, property_id, ctx.user_id,
        not_owner_message="Access Denied. You do not have permission to archive this property.",
    )
    if not owned.success:
        return owned
    prop: Property = owned.data

    if prop.property_status == PropertyStatus.ARCHIVED:
        return fail(ErrorKind.CONFLICT, "Property is already archived.")

    prop.property_status = PropertyStatus.ARCHIVED
    prop.updated_at = utcnow()
    ctx.db.commit()
    ctx.db.refresh(prop)
    logger.info(f"[PROPERTIES] Property {prop.id} archived")
    return ok(prop)


@service_boundary("Failed to publish property. Please try again.")
def publish_property(ctx: RequestContext, property_id: uuid.UUID) -> ServiceResult:
    """Finish the wizard: draft -> active, once the property has a unit."""
    denied = require(ctx, Resource.PROPERTY, Action.UPDATE, "update a property")
    if denied is not None:
        return denied

    owned = verify_property_ownership(ctx, property_id, ctx.user_id)
    if not owned.success:
        return owned
    prop: Property = owned.data

    if prop.property_status != PropertyStatus.DRAFT:
        return fail(ErrorKind.CONFLICT, "Only draft properties can be published.")

    units_count = ctx.db.execute(
        select(func.count(Unit.id)).where(Unit.property_id == property_id)
    ).scalar_one()
    if not units_count:
        return fail(ErrorKind.VALIDATION, "Add at least one unit before publishing the property.")

    prop.property_status = PropertyStatus.ACTIVE
    prop.updated_at = utcnow()
    ctx.db.commit()
    ctx.db.refresh(prop)
    logger.info(f"[PROPERTIES] Property {prop.id} published with {units_count} unit(s)")
    return ok(prop)


@service_boundary("Failed to fetch properties.")
def list_properties_with_available_units(ctx: RequestContext) -> ServiceResult:
    """Per property: total units and units nobody currently leases. Feeds the tenant wizard."""
    denied = require(
        ctx, Resource.PROPERTY, Action.LIST, "list properties",
        signed_in_message=ACCESS_DENIED,
    )
    if denied is not None:
        return denied

    occupied = _has_open_lease()
    rows = ctx.db.execute(
        select(Property, Unit.id, occupied)
        .outerjoin(Unit, Unit.property_id == Property.id)
        .where(Property.owner_id == ctx.user_id)
        .order_by(Property.created_at.desc())
    ).all()

    summary: Dict[uuid.UUID, Dict[str, Any]] = {}
    for prop, unit_id, has_tenant in rows:
        entry = summary.setdefault(prop.id, {"property": prop, "total": 0, "available": 0})
        if unit_id is None:
            continue
        entry["total"] += 1
        if not has_tenant:
            entry["available"] += 1

    return ok([
        PropertyAvailability(e["property"], e["total"], e["available"])
        for e in summary.values()
    ])


@service_boundary("Failed to fetch available units.")
def list_available_units(ctx: RequestContext, property_id: uuid.UUID) -> ServiceResult:
    denied = require(
        ctx, Resource.UNIT, Action.LIST, "list units",
        signed_in_message=ACCESS_DENIED,
    )
    if denied is not None:
        return denied

    owned = verify_property_ownership(
        ctx, property_id, ctx.user_id, not_owner_message=ACCESS_DENIED,
    )
    if not owned.success:
        return owned

    units = ctx.db.execute(
        select(Unit)
        .outerjoin(
            Tenant,
            and_(Tenant.unit_id == Unit.id, Tenant.lease_end_date.is_(None)),
        )
        .where(Unit.property_id == property_id, Tenant.id.is_(None))
        .order_by(Unit.unit_number)
    ).scalars().all()

    return ok(list(units))
