import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from bloomrent.db.base import utcnow
from bloomrent.models import Invite, InviteStatus, Tenant, TenantStatus, UserRole
from bloomrent.services.invite_service import (
    INVITE_ALREADY_ACCEPTED, INVITE_EXPIRED, INVITE_NOT_FOUND_OR_EXPIRED,
    accept_invite, create_invite, get_invite, get_invite_by_tenant,
    get_invite_by_token, link_tenant_to_user, list_invites, revoke_invite,
    update_invite_status,
)
from bloomrent.services.results import ErrorKind


@pytest.fixture
def setup(owner, make_property, make_unit, make_tenant):
    prop = make_property(owner, name="Maple House", address_line_1="123 Main St")
    unit = make_unit(prop)
    tenant = make_tenant(owner, unit=unit, status=TenantStatus.ACTIVE, name="Jamie", email="jamie@example.com")
    return prop, unit, tenant


def _invites_for(db, prop, email):
    db.expire_all()
    return db.execute(
        select(Invite).where(Invite.property_id == prop.id, Invite.invitee_email == email)
    ).scalars().all()


# ==================== create_invite ====================

def test_create_invite(ctx_for, owner, setup):
    prop, _unit, tenant = setup

    result = create_invite(ctx_for(owner), prop.id, tenant.id, "  Jamie@Example.com ", "Jamie")

    assert result.success
    invite = result.data
    assert invite.invitee_email == "jamie@example.com"
    assert invite.status == InviteStatus.PENDING
    assert invite.token
    assert invite.expires_at is not None


def test_reinvite_rotates_token_in_place(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)

    first = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data
    first_token = first.token
    second = create_invite(ctx, prop.id, tenant.id, "JAMIE@example.com").data

    assert second.id == first.id
    assert second.token != first_token
    assert len(_invites_for(db, prop, "jamie@example.com")) == 1


def test_reinvite_after_acceptance_conflicts(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)

    invite = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data
    assert update_invite_status(ctx, invite.id, InviteStatus.ACCEPTED).success

    third = create_invite(ctx, prop.id, tenant.id, "jamie@example.com")

    assert third.error == ErrorKind.CONFLICT
    assert third.message == INVITE_ALREADY_ACCEPTED


def test_accepted_conflict_leaves_other_invites_untouched(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)

    accepted = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data
    update_invite_status(ctx, accepted.id, InviteStatus.ACCEPTED)
    other = create_invite(ctx, prop.id, tenant.id, "jamie.alt@example.com").data

    result = create_invite(ctx, prop.id, tenant.id, "jamie@example.com")

    assert result.error == ErrorKind.CONFLICT
    db.expire_all()
    assert db.get(Invite, other.id).status == InviteStatus.PENDING


def test_new_email_revokes_tenants_previous_pending_invite(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)

    old = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data
    new = create_invite(ctx, prop.id, tenant.id, "jamie.new@example.com").data

    db.expire_all()
    assert db.get(Invite, old.id).status == InviteStatus.REVOKED
    assert db.get(Invite, old.id).revoked_at is not None
    assert db.get(Invite, new.id).status == InviteStatus.PENDING


def test_create_checks_property_and_tenant_ownership(
    ctx_for, owner, other_owner, setup, make_property, make_tenant
):
    prop, _unit, tenant = setup
    theirs = make_tenant(other_owner, name="Theirs")
    their_prop = make_property(other_owner)
    ctx = ctx_for(owner)

    assert create_invite(ctx, their_prop.id, tenant.id, "a@example.com").error == ErrorKind.PERMISSION_DENIED
    assert create_invite(ctx, prop.id, theirs.id, "a@example.com").error == ErrorKind.PERMISSION_DENIED
    assert create_invite(ctx, uuid.uuid4(), tenant.id, "a@example.com").error == ErrorKind.NOT_FOUND
    assert create_invite(ctx, prop.id, uuid.uuid4(), "a@example.com").error == ErrorKind.NOT_FOUND


def test_create_requires_session_and_permission(ctx_for, tenant_user, setup):
    prop, _unit, tenant = setup

    anonymous = create_invite(ctx_for(None), prop.id, tenant.id, "a@example.com")
    assert anonymous.error == ErrorKind.AUTHENTICATION_REQUIRED
    assert anonymous.message == "You must be signed in to create an invitation."

    assert create_invite(ctx_for(tenant_user), prop.id, tenant.id, "a@example.com").error == ErrorKind.PERMISSION_DENIED


# ==================== token lookup ====================

def test_lookup_by_token_returns_public_fields(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com", "Jamie").data

    result = get_invite_by_token(db, invite.token)

    assert result.success
    dto = result.data
    assert dto.id == invite.id
    assert dto.tenant_id == tenant.id
    assert dto.property.name == "Maple House"
    assert dto.property.address == "123 Main St, Springfield, IL 62701"
    assert dto.tenant.name == "Jamie"


def test_lookup_address_includes_second_line(ctx_for, db, owner, make_property, make_unit, make_tenant):
    prop = make_property(owner, address_line_1="9 Elm St", address_line_2="Apt 4")
    tenant = make_tenant(owner, unit=make_unit(prop), status=TenantStatus.ACTIVE, email="jamie@example.com")
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data

    dto = get_invite_by_token(db, invite.token).data

    assert dto.property.address == "9 Elm St, Apt 4, Springfield, IL 62701"


def test_lookup_expired_invite_flips_status(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data
    invite.expires_at = utcnow() - timedelta(days=1)
    db.commit()

    result = get_invite_by_token(db, invite.token)

    assert not result.success
    assert result.message == INVITE_EXPIRED
    db.expire_all()
    assert db.get(Invite, invite.id).status == InviteStatus.EXPIRED


def test_lookup_revoked_invite(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)
    invite = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data
    revoke_invite(ctx, invite.id)

    result = get_invite_by_token(db, invite.token)

    assert result.message.startswith("This invitation has been revoked.")


def test_lookup_unknown_token(db):
    result = get_invite_by_token(db, "no-such-token")

    assert result.error == ErrorKind.NOT_FOUND
    assert result.message == INVITE_NOT_FOUND_OR_EXPIRED


# ==================== reads ====================

def test_get_and_list_are_owner_scoped(ctx_for, owner, other_owner, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data

    details = get_invite(ctx_for(owner), invite.id).data
    assert details.property.id == prop.id
    assert details.tenant.id == tenant.id

    assert get_invite(ctx_for(other_owner), invite.id).error == ErrorKind.PERMISSION_DENIED
    assert [d.invite.id for d in list_invites(ctx_for(owner)).data] == [invite.id]
    assert list_invites(ctx_for(other_owner)).data == []


def test_get_invite_by_tenant(ctx_for, owner, setup, make_tenant):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data
    never_invited = make_tenant(owner, name="Never Invited")

    assert get_invite_by_tenant(ctx_for(owner), tenant.id).data.invite.id == invite.id
    none = get_invite_by_tenant(ctx_for(owner), never_invited.id)
    assert none.success and none.data is None


# ==================== status changes ====================

def test_revoke_sets_timestamp(ctx_for, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)
    invite = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data

    result = revoke_invite(ctx, invite.id)

    assert result.data.status == InviteStatus.REVOKED
    assert result.data.revoked_at is not None


def test_only_pending_invites_change_status(ctx_for, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)
    invite = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data
    revoke_invite(ctx, invite.id)

    assert update_invite_status(ctx, invite.id, InviteStatus.ACCEPTED).error == ErrorKind.CONFLICT
    assert update_invite_status(ctx, invite.id, InviteStatus.PENDING).error == ErrorKind.VALIDATION


def test_expired_invite_cannot_be_accepted_by_status_change(ctx_for, db, owner, tenant_user, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data
    invite.expires_at = utcnow() - timedelta(days=3)
    db.commit()

    result = update_invite_status(ctx_for(tenant_user), invite.id, InviteStatus.ACCEPTED)

    assert result.error == ErrorKind.CONFLICT
    assert result.message == INVITE_EXPIRED
    db.expire_all()
    assert db.get(Invite, invite.id).status == InviteStatus.EXPIRED


def test_unknown_status_is_a_validation_error(ctx_for, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)
    invite = create_invite(ctx, prop.id, tenant.id, "jamie@example.com").data

    result = update_invite_status(ctx, invite.id, "archived")

    assert result.error == ErrorKind.VALIDATION
    assert result.message == "Unknown invitation status: archived."


def test_non_owner_cannot_revoke(ctx_for, owner, other_owner, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data

    assert revoke_invite(ctx_for(other_owner), invite.id).error == ErrorKind.PERMISSION_DENIED
    assert revoke_invite(ctx_for(None), invite.id).error == ErrorKind.AUTHENTICATION_REQUIRED


def test_link_tenant_to_user(db, owner, tenant_user, make_tenant):
    tenant = make_tenant(owner)

    assert link_tenant_to_user(db, tenant.id, tenant_user.id).success
    db.expire_all()
    assert db.get(Tenant, tenant.id).user_id == tenant_user.id
    assert link_tenant_to_user(db, uuid.uuid4(), tenant_user.id).error == ErrorKind.NOT_FOUND


# ==================== accept_invite ====================

def test_accept_links_tenant_and_accepts(ctx_for, db, owner, tenant_user, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "JAMIE@example.com").data

    result = accept_invite(ctx_for(tenant_user), invite.token)

    assert result.success
    db.expire_all()
    assert db.get(Invite, invite.id).status == InviteStatus.ACCEPTED
    assert db.get(Invite, invite.id).accepted_at is not None
    assert db.get(Tenant, tenant.id).user_id == tenant_user.id


def test_accept_requires_matching_email(ctx_for, owner, make_user, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data
    stranger = make_user(UserRole.TENANT, email="stranger@example.com")

    result = accept_invite(ctx_for(stranger), invite.token)

    assert result.error == ErrorKind.PERMISSION_DENIED
    assert result.message.startswith("Email mismatch.")


def test_accept_requires_tenant_role(ctx_for, owner, make_user, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "landlord2@example.com").data
    landlord = make_user(UserRole.OWNER, email="landlord2@example.com")

    result = accept_invite(ctx_for(landlord), invite.token)

    assert result.error == ErrorKind.PERMISSION_DENIED
    assert "registered as owner" in result.message


def test_accept_twice_fails(ctx_for, owner, tenant_user, setup):
    prop, _unit, tenant = setup
    invite = create_invite(ctx_for(owner), prop.id, tenant.id, "jamie@example.com").data
    ctx = ctx_for(tenant_user)

    assert accept_invite(ctx, invite.token).success
    again = accept_invite(ctx, invite.token)

    assert again.error == ErrorKind.CONFLICT
    assert again.message.startswith("This invitation has been accepted.")


def test_accept_requires_session(ctx_for):
    assert accept_invite(ctx_for(None), "anything").error == ErrorKind.AUTHENTICATION_REQUIRED


def test_one_row_per_pair(ctx_for, db, owner, setup):
    prop, _unit, tenant = setup
    ctx = ctx_for(owner)
    for _ in range(3):
        create_invite(ctx, prop.id, tenant.id, "jamie@example.com")

    count = db.execute(
        select(func.count(Invite.id)).where(Invite.property_id == prop.id)
    ).scalar_one()
    assert count == 1
