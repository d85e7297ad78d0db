import os

# Settings are read at import time; point them at a throwaway database first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TESTING", "true")

from decimal import Decimal
import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bloomrent.core.security import create_access_token
from bloomrent.database import build_engine, get_db
from bloomrent.db.base import Base
from bloomrent.main import app
from bloomrent.models import (
    Property, Tenant, TenantStatus, Unit, User, UserRole,
)
from bloomrent.services.context import RequestContext, SessionUser

_counter = itertools.count(1)


@pytest.fixture
def engine():
    # One shared in-memory connection so the API and the test see the same data
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    def _make(role=UserRole.OWNER, email=None, name="Test User"):
        user = User(
            email=email or f"user{next(_counter)}@example.com",
            name=name,
            role=role,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.OWNER, email="owner.a@example.com", name="Owner A")


@pytest.fixture
def other_owner(make_user):
    return make_user(UserRole.OWNER, email="owner.b@example.com", name="Owner B")


@pytest.fixture
def tenant_user(make_user):
    return make_user(UserRole.TENANT, email="jamie@example.com", name="Jamie Tenant")


@pytest.fixture
def make_property(db):
    def _make(owner, **overrides):
        data = {
            "name": "Maple House",
            "address_line_1": f"{next(_counter)} Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "country": "US",
        }
        data.update(overrides)
        prop = Property(owner_id=owner.id, **data)
        db.add(prop)
        db.commit()
        return prop
    return _make


@pytest.fixture
def make_unit(db):
    def _make(prop, unit_number=None, **overrides):
        unit = Unit(
            property_id=prop.id,
            unit_number=unit_number or f"U{next(_counter)}",
            bedrooms=overrides.pop("bedrooms", 2),
            bathrooms=overrides.pop("bathrooms", Decimal("1.0")),
            rent_amount=overrides.pop("rent_amount", Decimal("1500.00")),
            **overrides,
        )
        db.add(unit)
        db.commit()
        return unit
    return _make


@pytest.fixture
def make_tenant(db):
    """Insert a tenant row directly, bypassing the service checks."""
    def _make(owner, unit=None, status=TenantStatus.DRAFT, **overrides):
        tenant = Tenant(
            owner_id=owner.id,
            unit_id=unit.id if unit is not None else None,
            name=overrides.pop("name", "Sam Renter"),
            email=overrides.pop("email", "sam@example.com"),
            tenant_status=status,
            **overrides,
        )
        db.add(tenant)
        db.commit()
        return tenant
    return _make


@pytest.fixture
def ctx_for(db):
    def _ctx(user=None, **kwargs):
        session_user = None
        if user is not None:
            session_user = SessionUser(id=user.id, role=user.role, email=user.email)
        return RequestContext(db=db, user=session_user, **kwargs)
    return _ctx


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(str(user.id), user.role.value)
        return {"Authorization": f"Bearer {token}"}
    return _headers
