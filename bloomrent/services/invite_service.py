"""
Invite lifecycle service

pending -> accepted | revoked | expired. Owners invite a tenant record to a
property by email; the invitee opens the tokenized link, signs in and
accepts, which links their user account to the tenant record.
"""
import logging
import secrets
from typing import List, NamedTuple, Optional
import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bloomrent.core.config import settings
from bloomrent.core.permissions import Action, Resource
from bloomrent.db.base import as_utc, utcnow
from bloomrent.models.invite import Invite, InviteRole, InviteStatus
from bloomrent.models.property import Property
from bloomrent.models.tenant import Tenant
from bloomrent.models.user import User, UserRole
from bloomrent.schemas.invite import InviteByToken, InvitePropertyInfo, InviteTenantInfo
from bloomrent.services.context import RequestContext, require
from bloomrent.services.errors import service_boundary, translate_integrity_error
from bloomrent.services.results import ErrorKind, ServiceResult, fail, ok

logger = logging.getLogger(__name__)

NOT_SIGNED_IN_CREATE = "You must be signed in to create an invitation."
NOT_SIGNED_IN_VIEW = "You must be signed in to view invitations."
NOT_SIGNED_IN_LIST = "You must be signed in to list invitations."
NOT_SIGNED_IN_UPDATE = "You must be signed in to update invitations."
NOT_SIGNED_IN_ACCEPT = "You must be signed in to accept an invitation."
PROPERTY_NOT_FOUND = "Property not found."
TENANT_NOT_FOUND = "Tenant not found."
INVITE_NOT_FOUND = "Invitation not found."
NO_PROPERTY_PERMISSION = "You do not have permission to invite tenants to this property."
NO_TENANT_PERMISSION = "You do not have permission to invite this tenant."
NO_VIEW_THIS_INVITE = "You do not have permission to view this invitation."
NO_UPDATE_THIS_INVITE = "You do not have permission to update this invitation."
INVITE_ALREADY_ACCEPTED = "This tenant has already accepted an invitation for this property."
INVITE_EXPIRED = (
    "This invitation has expired. Please contact your landlord for a new invitation."
)
INVITE_NOT_FOUND_OR_EXPIRED = "Invitation not found or has expired."

# Statuses an owner (or the invitee) may move a pending invite into
TERMINAL_STATUSES = frozenset({InviteStatus.ACCEPTED, InviteStatus.REVOKED, InviteStatus.EXPIRED})


class InviteDetails(NamedTuple):
    invite: Invite
    property: Optional[Property]
    tenant: Optional[Tenant]


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def new_invite_token() -> str:
    return secrets.token_urlsafe(settings.INVITE_TOKEN_BYTES)


def _details_query():
    return (
        select(Invite, Property, Tenant)
        .outerjoin(Property, Invite.property_id == Property.id)
        .outerjoin(Tenant, Invite.tenant_id == Tenant.id)
    )


def _is_expired(invite: Invite) -> bool:
    return invite.expires_at is not None and as_utc(invite.expires_at) < utcnow()


def _apply_status(invite: Invite, status: InviteStatus) -> None:
    now = utcnow()
    invite.status = status
    if status == InviteStatus.ACCEPTED:
        invite.accepted_at = now
    elif status == InviteStatus.REVOKED:
        invite.revoked_at = now
    invite.updated_at = now


@service_boundary("Failed to create invitation.")
def create_invite(
    ctx: RequestContext,
    property_id: uuid.UUID,
    tenant_id: uuid.UUID,
    invitee_email: str,
    invitee_name: Optional[str] = None,
) -> ServiceResult:
    """
    Create (or re-issue) the invitation for a tenant to join a property.

    A tenant has at most one pending invite: any other pending invite for
    the same tenant is revoked. An existing invite for the same
    (property, email) pair is rotated in place with a fresh token and
    expiry, unless it was already accepted. Every write lands in a single
    commit, so a refused call changes nothing.
    """
    denied = require(
        ctx, Resource.INVITE, Action.CREATE, "create invitations",
        signed_in_message=NOT_SIGNED_IN_CREATE,
    )
    if denied is not None:
        return denied

    email = normalize_email(invitee_email)
    if not email:
        return fail(ErrorKind.VALIDATION, "Please provide a valid email address.")
    name = (invitee_name or "").strip() or None

    try:
        prop = ctx.db.get(Property, property_id)
        if prop is None:
            return fail(ErrorKind.NOT_FOUND, PROPERTY_NOT_FOUND)
        if prop.owner_id != ctx.user_id:
            return fail(ErrorKind.PERMISSION_DENIED, NO_PROPERTY_PERMISSION)

        tenant = ctx.db.get(Tenant, tenant_id)
        if tenant is None:
            return fail(ErrorKind.NOT_FOUND, TENANT_NOT_FOUND)
        if tenant.owner_id != ctx.user_id:
            return fail(ErrorKind.PERMISSION_DENIED, NO_TENANT_PERMISSION)

        existing = ctx.db.execute(
            select(Invite)
            .where(
                Invite.property_id == property_id,
                func.lower(Invite.invitee_email) == email,
            )
            .order_by(Invite.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()

        if existing is not None and existing.status == InviteStatus.ACCEPTED:
            return fail(ErrorKind.CONFLICT, INVITE_ALREADY_ACCEPTED)

        pending = ctx.db.execute(
            select(Invite).where(
                Invite.tenant_id == tenant_id,
                Invite.status == InviteStatus.PENDING,
            )
        ).scalars().all()

        for stale in pending:
            if existing is not None and stale.id == existing.id:
                continue
            _apply_status(stale, InviteStatus.REVOKED)
            logger.info(f"[INVITES] Revoked superseded invite {stale.id} for tenant {tenant_id}")

        now = utcnow()
        if existing is not None:
            invite = existing
            invite.tenant_id = tenant_id
            invite.owner_id = ctx.user_id
            invite.invitee_email = email
            invite.invitee_name = name
            invite.token = new_invite_token()
            invite.status = InviteStatus.PENDING
            invite.expires_at = now + settings.invite_expiry
            invite.accepted_at = None
            invite.revoked_at = None
            invite.updated_at = now
        else:
            invite = Invite(
                property_id=property_id,
                owner_id=ctx.user_id,
                tenant_id=tenant_id,
                invitee_email=email,
                invitee_name=name,
                role=InviteRole.TENANT,
                status=InviteStatus.PENDING,
                token=new_invite_token(),
                expires_at=now + settings.invite_expiry,
            )
            ctx.db.add(invite)

        ctx.db.commit()
        ctx.db.refresh(invite)
        logger.info(f"[INVITES] Invite {invite.id} issued for tenant {tenant_id} on property {property_id}")
        return ok(invite)
    except IntegrityError as e:
        ctx.db.rollback()
        return translate_integrity_error(e, "Failed to create invitation.")


@service_boundary("Failed to fetch invitation.")
def get_invite(ctx: RequestContext, invite_id: uuid.UUID) -> ServiceResult:
    denied = require(
        ctx, Resource.INVITE, Action.VIEW, "view invitations",
        signed_in_message=NOT_SIGNED_IN_VIEW,
    )
    if denied is not None:
        return denied

    row = ctx.db.execute(_details_query().where(Invite.id == invite_id).limit(1)).first()
    if row is None:
        return fail(ErrorKind.NOT_FOUND, INVITE_NOT_FOUND)

    details = InviteDetails(*row)
    if details.invite.owner_id != ctx.user_id:
        return fail(ErrorKind.PERMISSION_DENIED, NO_VIEW_THIS_INVITE)

    return ok(details)


@service_boundary("Failed to fetch invitation.")
def get_invite_by_tenant(ctx: RequestContext, tenant_id: uuid.UUID) -> ServiceResult:
    """Newest invite for the tenant; ``data`` is None when none was ever sent."""
    denied = require(
        ctx, Resource.INVITE, Action.VIEW, "view invitations",
        signed_in_message=NOT_SIGNED_IN_VIEW,
    )
    if denied is not None:
        return denied

    row = ctx.db.execute(
        _details_query()
        .where(Invite.tenant_id == tenant_id)
        .order_by(Invite.created_at.desc())
        .limit(1)
    ).first()
    if row is None:
        return ok(None)

    details = InviteDetails(*row)
    if details.invite.owner_id != ctx.user_id:
        return fail(ErrorKind.PERMISSION_DENIED, NO_VIEW_THIS_INVITE)

    return ok(details)


@service_boundary("Failed to fetch invitation.")
def get_invite_by_token(db: Session, token: str) -> ServiceResult:
    """
    Public lookup behind the acceptance link.

    Expiry is lazy: a pending invite found past its expiry is persisted as
    expired here. Only pending, unexpired invites yield data, and only the
    fields the acceptance page needs.
    """
    if not token:
        return fail(ErrorKind.VALIDATION, "Invitation token is required.")

    row = db.execute(_details_query().where(Invite.token == token).limit(1)).first()
    if row is None:
        return fail(ErrorKind.NOT_FOUND, INVITE_NOT_FOUND_OR_EXPIRED)

    invite, prop, tenant = row

    if _is_expired(invite):
        if invite.status == InviteStatus.PENDING:
            _apply_status(invite, InviteStatus.EXPIRED)
            db.commit()
            logger.info(f"[INVITES] Invite {invite.id} expired")
        return fail(ErrorKind.CONFLICT, INVITE_EXPIRED)

    if invite.status != InviteStatus.PENDING:
        return fail(
            ErrorKind.CONFLICT,
            f"This invitation has been {invite.status.value}. "
            "If you believe this is an error, please contact your landlord.",
        )

    property_info = None
    if prop is not None and prop.address_line_1:
        property_info = InvitePropertyInfo(
            name=prop.name,
            address=prop.formatted_address,
        )

    return ok(InviteByToken(
        id=invite.id,
        tenant_id=invite.tenant_id,
        status=invite.status,
        expires_at=invite.expires_at,
        invitee_name=invite.invitee_name,
        invitee_email=invite.invitee_email,
        role=invite.role,
        property=property_info,
        tenant=InviteTenantInfo(name=tenant.name) if tenant is not None else None,
    ))


@service_boundary("Failed to fetch invitations.")
def list_invites(ctx: RequestContext) -> ServiceResult:
    denied = require(
        ctx, Resource.INVITE, Action.LIST, "list invitations",
        signed_in_message=NOT_SIGNED_IN_LIST,
    )
    if denied is not None:
        return denied

    rows = ctx.db.execute(
        _details_query()
        .where(Invite.owner_id == ctx.user_id)
        .order_by(Invite.created_at.desc())
    ).all()

    invites: List[InviteDetails] = [InviteDetails(*row) for row in rows]
    return ok(invites)


@service_boundary("Failed to update invitation.")
def update_invite_status(
    ctx: RequestContext, invite_id: uuid.UUID, status: InviteStatus
) -> ServiceResult:
    """
    Move a pending invite to accepted, revoked or expired.

    The issuing owner may make any of these moves. Accepting is also open to
    the invitee, identified by a matching email.
    """
    if ctx.user is None:
        return fail(ErrorKind.AUTHENTICATION_REQUIRED, NOT_SIGNED_IN_UPDATE)

    try:
        status = InviteStatus(status)
    except ValueError:
        return fail(ErrorKind.VALIDATION, f"Unknown invitation status: {status}.")
    if status not in TERMINAL_STATUSES:
        return fail(ErrorKind.VALIDATION, f"Cannot set invitation status to {status.value}.")

    invite = ctx.db.get(Invite, invite_id)
    if invite is None:
        return fail(ErrorKind.NOT_FOUND, INVITE_NOT_FOUND)

    if invite.owner_id != ctx.user_id:
        is_invitee = (
            status == InviteStatus.ACCEPTED
            and normalize_email(ctx.user.email) == normalize_email(invite.invitee_email)
        )
        if not is_invitee:
            return fail(ErrorKind.PERMISSION_DENIED, NO_UPDATE_THIS_INVITE)

    if invite.status != InviteStatus.PENDING:
        return fail(
            ErrorKind.CONFLICT,
            f"This invitation has already been {invite.status.value}.",
        )

    if _is_expired(invite):
        _apply_status(invite, InviteStatus.EXPIRED)
        ctx.db.commit()
        logger.info(f"[INVITES] Invite {invite.id} expired")
        return fail(ErrorKind.CONFLICT, INVITE_EXPIRED)

    _apply_status(invite, status)
    ctx.db.commit()
    ctx.db.refresh(invite)
    logger.info(f"[INVITES] Invite {invite.id} -> {status.value} by {ctx.user_id}")
    return ok(invite)


def revoke_invite(ctx: RequestContext, invite_id: uuid.UUID) -> ServiceResult:
    return update_invite_status(ctx, invite_id, InviteStatus.REVOKED)


@service_boundary("An error occurred while linking tenant to user account.")
def link_tenant_to_user(db: Session, tenant_id: uuid.UUID, user_id: uuid.UUID) -> ServiceResult:
    tenant = db.get(Tenant, tenant_id)
    if tenant is None:
        return fail(ErrorKind.NOT_FOUND, "Failed to link tenant to user account.")

    tenant.user_id = user_id
    tenant.updated_at = utcnow()
    db.commit()
    db.refresh(tenant)
    logger.info(f"[INVITES] Tenant {tenant_id} linked to user {user_id}")
    return ok(tenant)


@service_boundary("An error occurred while accepting the invitation.")
def accept_invite(ctx: RequestContext, token: str) -> ServiceResult:
    """
    Accept an invitation as the signed-in invitee.

    The caller must hold the tenant role and sign in with the invited email.
    Linking the tenant record and accepting the invite commit together.
    """
    if ctx.user is None:
        return fail(ErrorKind.AUTHENTICATION_REQUIRED, NOT_SIGNED_IN_ACCEPT)

    lookup = get_invite_by_token(ctx.db, token)
    if not lookup.success:
        return lookup
    preview: InviteByToken = lookup.data

    role = UserRole(ctx.user.role)
    if role != UserRole.TENANT:
        return fail(
            ErrorKind.PERMISSION_DENIED,
            f"Your account is registered as {role.value}. Tenant invitations cannot "
            f"be accepted by {role.value} accounts. Please contact support if you "
            "need assistance.",
        )

    user_email = ctx.user.email
    if user_email is None:
        user = ctx.db.get(User, ctx.user.id)
        user_email = user.email if user is not None else None

    if normalize_email(user_email) != normalize_email(preview.invitee_email):
        return fail(
            ErrorKind.PERMISSION_DENIED,
            f"Email mismatch. This invitation was sent to {preview.invitee_email}, "
            f"but you're signed in as {user_email}. Please use the correct email "
            "or contact your landlord.",
        )

    if preview.tenant_id is None:
        return fail(ErrorKind.VALIDATION, "Invitation is not linked to a tenant.")

    tenant = ctx.db.get(Tenant, preview.tenant_id)
    if tenant is None:
        return fail(ErrorKind.NOT_FOUND, TENANT_NOT_FOUND)
    if tenant.user_id is not None and tenant.user_id != ctx.user_id:
        return fail(ErrorKind.CONFLICT, "This tenant is already linked to another account.")

    invite = ctx.db.get(Invite, preview.id)
    tenant.user_id = ctx.user_id
    tenant.updated_at = utcnow()
    _apply_status(invite, InviteStatus.ACCEPTED)

    ctx.db.commit()
    ctx.db.refresh(invite)
    logger.info(f"[INVITES] Invite {invite.id} accepted by user {ctx.user_id}")
    return ok(invite)
