"""
Database constraint translation

The application guards run before each write, but two requests can both
pass a guard and race to the database. When that happens the constraint
fires instead, and these helpers map the driver error back onto the same
ErrorKind/message the guard would have produced.

PostgreSQL reports the constraint name in the error text. SQLite names
CHECK constraints but reports UNIQUE violations by column list, so each
constraint carries both markers.
"""
import functools
import logging
from typing import Iterable, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError

from bloomrent.services.results import ErrorKind, ServiceResult, fail

logger = logging.getLogger(__name__)

ACTIVE_TENANT_CONFLICT = "This unit already has an active tenant."
CONTACT_METHOD_REQUIRED = (
    "Either email or phone is required. Please provide at least one of them."
)
LEASE_DATES_ORDERED = "Lease end date must be after the lease start date."
DUPLICATE_UNIT_NUMBER = (
    "A unit with this name already exists for this property. "
    "Please choose a different name."
)
DUPLICATE_PROPERTY_ADDRESS = "You already have a property at this address."
DUPLICATE_PROPERTY_INVITE = "An invitation for this email already exists for this property."


class KnownConstraint(NamedTuple):
    name: str
    markers: tuple
    kind: ErrorKind
    message: str


KNOWN_CONSTRAINTS = (
    KnownConstraint(
        "tenant_unit_active_uid",
        ("tenant_unit_active_uid", "tenants.unit_id"),
        ErrorKind.CONFLICT,
        ACTIVE_TENANT_CONFLICT,
    ),
    KnownConstraint(
        "tenant_contact_method_required",
        ("tenant_contact_method_required",),
        ErrorKind.VALIDATION,
        CONTACT_METHOD_REQUIRED,
    ),
    KnownConstraint(
        "tenant_lease_dates_ordered",
        ("tenant_lease_dates_ordered",),
        ErrorKind.VALIDATION,
        LEASE_DATES_ORDERED,
    ),
    KnownConstraint(
        "unit_property_unit_number_uid",
        ("unit_property_unit_number_uid", "units.property_id, units.unit_number"),
        ErrorKind.CONFLICT,
        DUPLICATE_UNIT_NUMBER,
    ),
    KnownConstraint(
        "property_owner_address_uid",
        ("property_owner_address_uid", "properties.owner_id, properties.address_line_1"),
        ErrorKind.CONFLICT,
        DUPLICATE_PROPERTY_ADDRESS,
    ),
    KnownConstraint(
        "invite_property_email_uid",
        ("invite_property_email_uid", "invites.property_id, invites.invitee_email"),
        ErrorKind.CONFLICT,
        DUPLICATE_PROPERTY_INVITE,
    ),
)


def match_constraint(
    exc: IntegrityError, constraints: Iterable[KnownConstraint] = KNOWN_CONSTRAINTS
) -> Optional[KnownConstraint]:
    """Find the known constraint named in the driver's error text, if any."""
    text = str(exc.orig) if exc.orig is not None else str(exc)
    for constraint in constraints:
        if any(marker in text for marker in constraint.markers):
            return constraint
    return None


def translate_integrity_error(
    exc: IntegrityError,
    fallback: str,
    fallback_kind: ErrorKind = ErrorKind.UNEXPECTED,
) -> ServiceResult:
    constraint = match_constraint(exc)
    if constraint is None:
        logger.error(f"[DB] Unrecognized integrity error: {exc.orig}")
        return fail(fallback_kind, fallback)

    logger.warning(f"[DB] Constraint {constraint.name} rejected write")
    return fail(constraint.kind, constraint.message)


def service_boundary(failure_message: str):
    """
    Outermost catch for a service function.

    Anything not already turned into a ServiceResult is rolled back, logged
    with its traceback and reported as an unexpected failure. The wrapped
    function's first argument is a RequestContext or a bare Session.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(ctx, *args, **kwargs):
            try:
                return func(ctx, *args, **kwargs)
            except Exception:
                session = getattr(ctx, "db", ctx)
                session.rollback()
                logger.exception(f"[DAL] {func.__name__} failed")
                return fail(ErrorKind.UNEXPECTED, failure_message)
        return wrapper
    return decorator
