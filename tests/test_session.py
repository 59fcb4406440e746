"""
Tests for the Session Manager against the reference API.

Tests cover:
- Anonymous/Authenticated transitions for register, login, logout, expire
- Typed failures and unchanged state on failure
- Token confinement (memory only, not in repr)
"""
import pytest

from securevault.exceptions import (
    AuthenticationError,
    RegistrationError,
    ValidationError,
)
from securevault.transport import SessionView

from .conftest import LOGIN_SECRET, MASTER_PIN


class TestInitialState:

    @pytest.mark.asyncio
    async def test_starts_anonymous(self, session):
        assert session.is_authenticated is False
        assert session.current_token() is None
        assert session.current_username() is None
        assert session.identity is None


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_authenticates(self, session):
        identity = await session.register("alice", LOGIN_SECRET, MASTER_PIN)
        assert identity.username == "alice"
        assert session.is_authenticated is True
        assert session.current_username() == "alice"
        assert session.current_token() == identity.session_token

    @pytest.mark.asyncio
    async def test_register_sends_pin_field(self, session, store):
        await session.register("alice", LOGIN_SECRET, MASTER_PIN)
        assert "alice" in store.users

    @pytest.mark.asyncio
    async def test_duplicate_username(self, session, store):
        await session.register("alice", LOGIN_SECRET, MASTER_PIN)
        session.logout()
        with pytest.raises(RegistrationError, match="already exists") as exc:
            await session.register("alice", "Other22?", "4321")
        assert exc.value.status == 400
        assert session.is_authenticated is False

    @pytest.mark.asyncio
    async def test_weak_secret_never_reaches_server(self, session, store):
        with pytest.raises(ValidationError):
            await session.register("alice", "weak", MASTER_PIN)
        assert store.users == {}
        assert session.is_authenticated is False

    @pytest.mark.asyncio
    async def test_master_secret_is_not_retained(self, session):
        await session.register("alice", LOGIN_SECRET, "9876")
        assert "9876" not in repr(session)
        assert "9876" not in vars(session).values()
        assert "9876" not in session.identity.model_dump(exclude={"session_token"}).values()


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_after_logout(self, alice):
        first = alice.current_token()
        alice.logout()
        identity = await alice.login("alice", LOGIN_SECRET)
        assert alice.is_authenticated is True
        assert identity.username == "alice"
        assert identity.session_token != first

    @pytest.mark.asyncio
    async def test_master_secret_is_not_a_login_secret(self, alice):
        alice.logout()
        with pytest.raises(AuthenticationError):
            await alice.login("alice", MASTER_PIN)
        assert alice.is_authenticated is False

    @pytest.mark.asyncio
    async def test_bad_credentials(self, session):
        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            await session.login("nobody", LOGIN_SECRET)
        assert session.current_token() is None

    @pytest.mark.asyncio
    async def test_blank_login_is_local(self, session):
        with pytest.raises(ValidationError):
            await session.login("alice", "")


class TestLogoutAndExpiry:

    @pytest.mark.asyncio
    async def test_logout_clears_identity(self, alice):
        alice.logout()
        assert alice.is_authenticated is False
        assert alice.current_username() is None
        assert alice.current_token() is None

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, alice):
        alice.logout()
        once = (alice.is_authenticated, alice.current_username(), alice.current_token())
        alice.logout()
        twice = (alice.is_authenticated, alice.current_username(), alice.current_token())
        assert once == twice == (False, None, None)

    @pytest.mark.asyncio
    async def test_logout_when_anonymous(self, session):
        session.logout()
        assert session.is_authenticated is False

    @pytest.mark.asyncio
    async def test_expire_notifies_listeners_once(self, alice):
        calls = []
        alice.on_expired(lambda: calls.append("expired"))
        alice.expire()
        alice.expire()
        assert alice.is_authenticated is False
        assert calls == ["expired"]


class TestSessionView:

    @pytest.mark.asyncio
    async def test_view_tracks_manager(self, session):
        view = session.view()
        assert isinstance(view, SessionView)
        assert view.is_authenticated is False
        await session.register("alice", LOGIN_SECRET, MASTER_PIN)
        assert view.is_authenticated is True
        assert view.username == "alice"
        assert view.token == session.current_token()
        session.logout()
        assert view.token is None

    @pytest.mark.asyncio
    async def test_view_is_read_only(self, session):
        view = session.view()
        with pytest.raises(AttributeError):
            view.token = "forged"

    @pytest.mark.asyncio
    async def test_token_not_in_repr(self, alice):
        token = alice.current_token()
        assert token not in repr(alice)
        assert token not in repr(alice.identity)
        assert token not in repr(alice.view())
