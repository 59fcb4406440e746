"""
Session Manager — the single writer of the authenticated session context.

Two states: Anonymous (initial) and Authenticated. Register and login move to
Authenticated; logout and an externally detected auth failure (``expire``)
move back to Anonymous.

Security Note:
    The bearer token lives only in this object's memory. It is never written
    to disk, never logged and never shown in ``repr``. The master secret is
    forwarded once at registration and never retained.
"""
import logging
from typing import Any, Callable, Optional

from .config import ClientConfig
from .exceptions import (
    AuthenticationError,
    RegistrationError,
    TransportError,
    VaultError,
)
from .models import Credentials, Identity
from .transport import ApiConnection, SessionView
from .validation import check_login, check_registration

logger = logging.getLogger("securevault.session")


def _registration_error(status: int, message: str) -> VaultError:
    if status >= 500:
        return TransportError(message or None, status=status)
    return RegistrationError(message or None, status=status)


def _authentication_error(status: int, message: str) -> VaultError:
    if status >= 500:
        return TransportError(message or None, status=status)
    return AuthenticationError(message or None, status=status)


class SessionManager:
    """Holds the authenticated identity in process memory.

    Other components receive ``view()``, a read-only facade, and report
    session expiry back through ``expire()``.
    """

    def __init__(self, connection: ApiConnection):
        self._connection = connection
        self._identity: Optional[Identity] = None
        self._listeners: list[Callable[[], Any]] = []

    def __repr__(self) -> str:
        return (
            f'<SV-Session [authenticated:{self.is_authenticated}, '
            f'username:{self.current_username()}]>'
        )

    # --- Properties ---

    @property
    def connection(self) -> ApiConnection:
        return self._connection

    @property
    def config(self) -> ClientConfig:
        return self._connection.config

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def current_token(self) -> Optional[str]:
        return self._identity.session_token if self._identity else None

    def current_username(self) -> Optional[str]:
        return self._identity.username if self._identity else None

    def view(self) -> SessionView:
        return SessionView(self)

    def on_expired(self, callback: Callable[[], Any]) -> None:
        """Register a callback fired when the session expires."""
        self._listeners.append(callback)

    # --- Transitions ---

    def _accept(self, payload: Any, error_cls: type[VaultError]) -> Identity:
        if not isinstance(payload, dict) or not payload.get("token"):
            raise error_cls("Unexpected response from identity provider")
        identity = Identity(
            username=payload.get("username") or "",
            token=payload["token"],
        )
        self._identity = identity
        return identity

    async def register(
        self,
        username: str,
        login_secret: str,
        master_secret: str,
        confirmation: Optional[str] = None,
    ) -> Identity:
        """Create an account and authenticate as it.

        Args:
            username: Requested username.
            login_secret: Secret used to authenticate API access.
            master_secret: Password or PIN protecting vault entries.
            confirmation: Master secret confirmation, when the form has one.

        Raises:
            ValidationError: Input fails local policy; nothing is sent.
            RegistrationError: Server rejected the registration.
        """
        mode = self.config.master_secret_mode
        check_registration(
            username, login_secret, master_secret, mode, confirmation=confirmation,
        )
        credentials = Credentials(
            username=username,
            login_secret=login_secret,
            master_secret=master_secret,
        )
        payload = await self._connection.request(
            "POST", "/auth/register",
            body=credentials.register_body(mode),
            classify=_registration_error,
        )
        identity = self._accept(payload, RegistrationError)
        logger.info("Registered and authenticated user=%s", identity.username)
        return identity

    async def login(self, username: str, login_secret: str) -> Identity:
        """Authenticate with the login secret only.

        Raises:
            ValidationError: Missing username or login secret.
            AuthenticationError: Bad credentials.
        """
        check_login(username, login_secret)
        credentials = Credentials(username=username, login_secret=login_secret)
        payload = await self._connection.request(
            "POST", "/auth/login",
            body=credentials.login_body(),
            classify=_authentication_error,
        )
        identity = self._accept(payload, AuthenticationError)
        logger.info("Authenticated user=%s", identity.username)
        return identity

    def logout(self) -> None:
        """Forget the identity. Safe to call in any state."""
        if self._identity is not None:
            logger.info("Logged out user=%s", self._identity.username)
        self._identity = None

    def expire(self) -> None:
        """Drop the identity after the server stopped accepting the token."""
        if self._identity is None:
            return
        logger.warning(
            "Session expired for user=%s, re-authentication required",
            self._identity.username,
        )
        self._identity = None
        for callback in list(self._listeners):
            callback()
