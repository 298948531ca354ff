# tests/unit/services/test_session_service.py
from __future__ import annotations

import threading
from dataclasses import replace

import pytest
from sessionauth.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
)
from sessionauth.services._shared.ports import (
    InMemorySessionStore,
    TokenTTLs,
)
from sessionauth.services.identity.dto import NewUserIn, UserPublicOut, UserRecord
from sessionauth.services.session.dto import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
)
from sessionauth.services.session.service import SessionService
from werkzeug.security import check_password_hash, generate_password_hash

from tests.factories.user import DEFAULT_PASSWORD, UserFactory

ALICE = RegisterIn(
    username="alice",
    name="Alice",
    email="alice@example.com",
    password="Secr3t!pw",
)


# ------------------------------ Doubles ----------------------------------- #
class RacingStore(InMemorySessionStore):
    """Let a concurrent refresh win between ``find`` and ``rotate``."""

    def rotate(self, subject, old_token, new_token):
        self.upsert(subject, "token-of-the-winner")
        return super().rotate(subject, old_token, new_token)


class DownStore(InMemorySessionStore):
    def upsert(self, subject, token):
        raise StoreUnavailableError("upsert")


class UserGoneStore(InMemorySessionStore):
    """Reject writes as a store bound to the user table does for a deleted user."""

    def upsert(self, subject, token):
        raise NotFoundError("User", subject)


class DictIdentity:
    """Thread-safe identity provider without a database."""

    def __init__(self) -> None:
        self._users: dict[int, UserRecord] = {}

    def add(self, username: str, password: str) -> UserRecord:
        record = UserRecord(
            id=len(self._users) + 1,
            username=username,
            name=username.title(),
            email=f"{username}@example.com",
            password_hash=generate_password_hash(password),
        )
        self._users[record.id] = record
        return record

    def user_exists(self, field, value):
        return any(getattr(u, field) == value for u in self._users.values())

    def find_user_by_username(self, username):
        return next((u for u in self._users.values() if u.username == username), None)

    def get_user(self, user_id):
        return self._users.get(user_id)

    def create_user(self, fields: NewUserIn):
        return self.add(fields.username, fields.password)

    def verify_password(self, plaintext, stored_hash):
        return check_password_hash(stored_hash, plaintext)

    def project_public(self, user):
        return UserPublicOut(id=user.id, username=user.username, name=user.name, email=user.email)


def _refresh(service: SessionService, out: SessionOut) -> SessionOut:
    assert out.tokens is not None
    return service.refresh(RefreshIn(refresh_token=out.tokens.refresh_token))


# -------------------------------- Register --------------------------------- #
def test_register_opens_a_session(service, memory_store):
    out = service.register(ALICE)

    assert out.status == 201
    assert out.authenticated is True
    assert out.user is not None and out.user.username == "alice"
    assert not hasattr(out.user, "password_hash")
    assert out.tokens is not None
    assert memory_store.find(out.user.id, out.tokens.refresh_token) is not None


def test_register_checks_email_before_username(service):
    UserFactory(username="alice", email="alice@example.com")
    with pytest.raises(ConflictError) as excinfo:
        service.register(ALICE)
    assert excinfo.value.field == "email"
    assert str(excinfo.value) == "Email already exists"


def test_register_username_conflict(service):
    UserFactory(username="alice")
    with pytest.raises(ConflictError) as excinfo:
        service.register(ALICE)
    assert excinfo.value.field == "username"


def test_register_store_failure_delivers_no_tokens(codec, identity):
    service = SessionService(codec=codec, store=DownStore(), identity=identity)
    with pytest.raises(StoreUnavailableError):
        service.register(ALICE)


# --------------------------------- Login ----------------------------------- #
def test_login_issues_pair_and_records_session(service, memory_store):
    user = UserFactory(username="bob")
    out = service.login(LoginIn(username="bob", password=DEFAULT_PASSWORD))

    assert out.status == 200
    assert out.user is not None and out.user.id == user.id
    assert out.tokens is not None
    assert memory_store.find(user.id, out.tokens.refresh_token) is not None


@pytest.mark.parametrize(
    ("username", "password", "reason"),
    [
        ("nobody", DEFAULT_PASSWORD, "unknown_username"),
        ("bob", "Wr0ng!pass", "wrong_password"),
    ],
)
def test_login_failures_look_identical(service, username, password, reason):
    UserFactory(username="bob")
    with pytest.raises(InvalidCredentialsError) as excinfo:
        service.login(LoginIn(username=username, password=password))
    assert excinfo.value.reason == reason
    assert str(excinfo.value) == "Invalid credentials"


def test_login_for_user_deleted_mid_request_is_unauthorized(codec):
    identity = DictIdentity()
    identity.add("bob", DEFAULT_PASSWORD)
    service = SessionService(codec=codec, store=UserGoneStore(), identity=identity)

    with pytest.raises(UnauthorizedError) as excinfo:
        service.login(LoginIn(username="bob", password=DEFAULT_PASSWORD))
    assert excinfo.value.reason == "unknown_subject"


def test_single_active_session(service):
    UserFactory(username="bob")
    first = service.login(LoginIn(username="bob", password=DEFAULT_PASSWORD))
    second = service.login(LoginIn(username="bob", password=DEFAULT_PASSWORD))

    with pytest.raises(UnauthorizedError) as excinfo:
        _refresh(service, first)
    assert excinfo.value.reason == "stale_session"
    assert _refresh(service, second).authenticated is True


# -------------------------------- Refresh ---------------------------------- #
def test_rotation_invalidates_predecessor(service):
    out = service.register(ALICE)
    rotated = _refresh(service, out)

    assert rotated.tokens is not None and out.tokens is not None
    assert rotated.tokens.refresh_token != out.tokens.refresh_token
    with pytest.raises(UnauthorizedError):
        _refresh(service, out)
    assert _refresh(service, rotated).authenticated is True


def test_refresh_returns_user_projection(service):
    out = service.register(ALICE)
    rotated = _refresh(service, out)
    assert rotated.user == out.user
    assert rotated.status == 200


def test_refresh_rejects_access_token(service):
    out = service.register(ALICE)
    assert out.tokens is not None
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(RefreshIn(refresh_token=out.tokens.access_token))
    assert excinfo.value.reason == "invalid_token"


def test_refresh_without_token(service):
    with pytest.raises(UnauthorizedError) as excinfo:
        service.refresh(RefreshIn())
    assert excinfo.value.reason == "missing_token"


def test_refresh_for_deleted_user_drops_orphan_record(service, memory_store, session):
    user = UserFactory(username="bob")
    out = service.login(LoginIn(username="bob", password=DEFAULT_PASSWORD))
    user_id = user.id
    session.delete(user)
    session.commit()

    with pytest.raises(UnauthorizedError) as excinfo:
        _refresh(service, out)
    assert excinfo.value.reason == "unknown_subject"
    assert out.tokens is not None
    assert memory_store.find(user_id, out.tokens.refresh_token) is None


def test_loser_of_concurrent_rotation_is_rejected(codec, identity):
    store = RacingStore()
    service = SessionService(codec=codec, store=store, identity=identity)
    out = service.register(ALICE)

    with pytest.raises(UnauthorizedError) as excinfo:
        _refresh(service, out)
    assert excinfo.value.reason == "lost_rotation"
    assert out.user is not None
    assert store.find(out.user.id, "token-of-the-winner") is not None


def test_parallel_refreshes_have_one_winner(codec):
    identity = DictIdentity()
    store = InMemorySessionStore()
    service = SessionService(codec=codec, store=store, identity=identity)
    identity.add("carol", "Secr3t!pw")
    out = service.login(LoginIn(username="carol", password="Secr3t!pw"))

    barrier = threading.Barrier(4)
    outcomes: list[str] = []
    lock = threading.Lock()

    def _attempt() -> None:
        barrier.wait()
        try:
            _refresh(service, out)
            result = "ok"
        except UnauthorizedError as exc:
            result = exc.reason
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=_attempt) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert set(outcomes) - {"ok"} <= {"stale_session", "lost_rotation"}


# --------------------------------- Logout ---------------------------------- #
def test_logout_revokes_despite_valid_signature(service, codec):
    out = service.register(ALICE)
    assert out.tokens is not None
    refresh_token = out.tokens.refresh_token

    result = service.logout(LogoutIn(refresh_token=refresh_token))
    assert result == SessionOut(user=None, authenticated=False, tokens=None, status=200)

    codec.verify_refresh(refresh_token)  # signature and expiry still fine
    with pytest.raises(UnauthorizedError):
        service.refresh(RefreshIn(refresh_token=refresh_token))


def test_logout_is_idempotent(service):
    out = service.register(ALICE)
    assert out.tokens is not None
    first = service.logout(LogoutIn(refresh_token=out.tokens.refresh_token))
    second = service.logout(LogoutIn(refresh_token=out.tokens.refresh_token))
    anonymous = service.logout(LogoutIn())
    assert first == second == anonymous


# ------------------------------ Current user ------------------------------- #
def test_current_user_from_access_token(service):
    out = service.register(ALICE)
    assert out.tokens is not None
    assert service.current_user(out.tokens.access_token) == out.user


def test_current_user_rejects_refresh_token(service):
    out = service.register(ALICE)
    assert out.tokens is not None
    with pytest.raises(UnauthorizedError):
        service.current_user(out.tokens.refresh_token)


def test_custom_ttls_are_applied(codec, memory_store):
    import jwt

    identity = DictIdentity()
    identity.add("dave", "Secr3t!pw")
    ttls = replace(TokenTTLs(), access=TokenTTLs().access / 2)
    service = SessionService(codec=codec, store=memory_store, identity=identity, ttls=ttls)
    out = service.login(LoginIn(username="dave", password="Secr3t!pw"))
    assert out.tokens is not None
    claims = jwt.decode(out.tokens.access_token, options={"verify_signature": False})
    assert claims["exp"] - claims["iat"] == 15 * 60
