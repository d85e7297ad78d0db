import uuid
from datetime import timedelta

from bloomrent.core.deps import resolve_session
from bloomrent.core.security import create_access_token, decode_access_token
from bloomrent.models import UserRole


def test_token_round_trip_carries_role():
    token = create_access_token("abc", role="owner")

    payload = decode_access_token(token)

    assert payload["sub"] == "abc"
    assert payload["role"] == "owner"


def test_expired_token_decodes_to_none():
    token = create_access_token("abc", expires_delta=timedelta(seconds=-5))

    assert decode_access_token(token) is None


def test_resolve_session_for_known_user(db, owner):
    session = resolve_session(create_access_token(str(owner.id)), db)

    assert session.id == owner.id
    assert session.role == UserRole.OWNER
    assert session.email == owner.email


def test_resolve_session_rejects_bad_subjects(db):
    assert resolve_session(None, db) is None
    assert resolve_session("garbage", db) is None
    assert resolve_session(create_access_token("not-a-uuid"), db) is None
    assert resolve_session(create_access_token(str(uuid.uuid4())), db) is None
