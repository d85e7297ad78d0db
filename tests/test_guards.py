import uuid
from datetime import datetime, timezone

from bloomrent.models import TenantStatus
from bloomrent.services.guards import (
    UNIT_HAS_ACTIVE_TENANT, UNIT_NOT_FOUND, UNIT_NOT_OWNED,
    ensure_unit_has_no_active_tenant, verify_property_ownership, verify_unit_ownership,
)
from bloomrent.services.results import ErrorKind


# ==================== verify_unit_ownership ====================

def test_owner_passes_and_gets_unit_and_property(ctx_for, owner, make_property, make_unit):
    prop = make_property(owner)
    unit = make_unit(prop)

    result = verify_unit_ownership(ctx_for(owner), unit.id, owner.id)

    assert result.success
    found_unit, found_prop = result.data
    assert found_unit.id == unit.id
    assert found_prop.id == prop.id


def test_other_owner_is_denied(ctx_for, owner, other_owner, make_property, make_unit):
    unit = make_unit(make_property(owner))

    result = verify_unit_ownership(ctx_for(other_owner), unit.id, other_owner.id)

    assert not result.success
    assert result.error == ErrorKind.PERMISSION_DENIED
    assert result.message == UNIT_NOT_OWNED


def test_unknown_unit_is_not_found(ctx_for, owner):
    result = verify_unit_ownership(ctx_for(owner), uuid.uuid4(), owner.id)

    assert result.error == ErrorKind.NOT_FOUND
    assert result.message == UNIT_NOT_FOUND


def test_missing_ids_are_validation_errors(ctx_for, owner):
    ctx = ctx_for(owner)

    missing_unit = verify_unit_ownership(ctx, None, owner.id)
    missing_owner = verify_unit_ownership(ctx, uuid.uuid4(), None)

    assert missing_unit.error == ErrorKind.VALIDATION
    assert missing_unit.message == "Please provide a valid unit ID."
    assert missing_owner.error == ErrorKind.VALIDATION
    assert missing_owner.message == "Please provide a valid owner ID."


def test_messages_can_be_masked(ctx_for, owner, other_owner, make_property, make_unit):
    unit = make_unit(make_property(owner))
    ctx = ctx_for(other_owner)

    foreign = verify_unit_ownership(
        ctx, unit.id, other_owner.id,
        not_found_message="Access Denied.", not_owner_message="Access Denied.",
    )
    missing = verify_unit_ownership(
        ctx, uuid.uuid4(), other_owner.id,
        not_found_message="Access Denied.", not_owner_message="Access Denied.",
    )

    assert foreign.message == missing.message == "Access Denied."


def test_property_ownership(ctx_for, owner, other_owner, make_property):
    prop = make_property(owner)

    assert verify_property_ownership(ctx_for(owner), prop.id, owner.id).data.id == prop.id
    denied = verify_property_ownership(ctx_for(other_owner), prop.id, other_owner.id)
    assert denied.error == ErrorKind.PERMISSION_DENIED
    missing = verify_property_ownership(ctx_for(owner), uuid.uuid4(), owner.id)
    assert missing.error == ErrorKind.NOT_FOUND


# ==================== ensure_unit_has_no_active_tenant ====================

def test_empty_unit_is_available(ctx_for, owner, make_property, make_unit):
    unit = make_unit(make_property(owner))

    assert ensure_unit_has_no_active_tenant(ctx_for(owner), unit.id).success


def test_open_lease_is_a_conflict(ctx_for, owner, make_property, make_unit, make_tenant):
    unit = make_unit(make_property(owner))
    make_tenant(owner, unit=unit, status=TenantStatus.ACTIVE)

    result = ensure_unit_has_no_active_tenant(ctx_for(owner), unit.id)

    assert result.error == ErrorKind.CONFLICT
    assert result.message == UNIT_HAS_ACTIVE_TENANT


def test_ended_lease_frees_the_unit(ctx_for, owner, make_property, make_unit, make_tenant):
    unit = make_unit(make_property(owner))
    make_tenant(
        owner, unit=unit, status=TenantStatus.ACTIVE,
        lease_end_date=datetime(2025, 1, 31, tzinfo=timezone.utc),
    )

    assert ensure_unit_has_no_active_tenant(ctx_for(owner), unit.id).success


def test_status_filter_narrows_the_check(ctx_for, owner, make_property, make_unit, make_tenant):
    unit = make_unit(make_property(owner))
    make_tenant(owner, unit=unit, status=TenantStatus.INACTIVE)
    ctx = ctx_for(owner)

    assert not ensure_unit_has_no_active_tenant(ctx, unit.id).success
    assert ensure_unit_has_no_active_tenant(ctx, unit.id, tenant_status=TenantStatus.ACTIVE).success


def test_custom_conflict_message(ctx_for, owner, make_property, make_unit, make_tenant):
    unit = make_unit(make_property(owner))
    make_tenant(owner, unit=unit, status=TenantStatus.ACTIVE)

    result = ensure_unit_has_no_active_tenant(ctx_for(owner), unit.id, message="Taken.")

    assert result.message == "Taken."


def test_missing_unit_id_is_validation(ctx_for, owner):
    assert ensure_unit_has_no_active_tenant(ctx_for(owner), None).error == ErrorKind.VALIDATION
