"""
Vault Transport — authenticated request layer for the remote vault API.

``ApiConnection`` owns the aiohttp session and turns every non-2xx response
into a typed ``VaultError``. ``VaultClient`` wraps the vault endpoints and
attaches the bearer token from a read-only ``SessionView``.

Classification rules:
- network failure or timeout           -> TransportError
- 401 from any endpoint                -> SessionExpiredError
- anything else non-2xx                -> per-operation classifier

Security Note:
    Never log request bodies, tokens or returned passwords. Only log methods,
    paths and statuses. Plaintext and master secrets passed to ``add_entry``
    and ``reveal_entry`` are not stored on any object.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

import aiohttp
import orjson
from pydantic import ValidationError as ModelError

from .config import ClientConfig
from .exceptions import (
    DecryptionError,
    NotFoundError,
    SessionExpiredError,
    TransportError,
    VaultError,
)
from .models import VaultEntry
from .validation import check_master_attempt, check_new_entry

logger = logging.getLogger("securevault.transport")

Classifier = Callable[[int, str], VaultError]


def _decode(raw: bytes) -> Any:
    """Decode a response body: JSON when possible, plain text otherwise."""
    if not raw:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw.decode("utf-8", errors="replace")


def error_message(payload: Any) -> str:
    """Extract the server's message from an error body."""
    if isinstance(payload, str):
        return payload.strip()
    if isinstance(payload, dict):
        for field in ("message", "error", "detail"):
            value = payload.get(field)
            if isinstance(value, str):
                return value
    return ""


def _is_not_found(status: int, message: str) -> bool:
    return status == 404 or "not found" in message.lower()


def default_classifier(status: int, message: str) -> VaultError:
    return TransportError(message or None, status=status)


class ApiConnection:
    """aiohttp-backed connection to the vault API origin."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or ClientConfig.from_env()
        self._session = session
        self._owns_session = session is None

    def __repr__(self) -> str:
        return f"<ApiConnection {self.config.base_url}>"

    async def __aenter__(self) -> "ApiConnection":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
        token: Optional[str] = None,
        classify: Classifier = default_classifier,
    ) -> Any:
        """Send a request and return the decoded response body.

        Args:
            method: HTTP method.
            path: Endpoint path relative to the base URL.
            body: JSON body, if any.
            token: Bearer token to attach, if any.
            classify: Maps (status, message) of a non-2xx, non-401 response
                to a VaultError.

        Raises:
            SessionExpiredError: On a 401 response.
            TransportError: On network failure or timeout.
            VaultError: Whatever ``classify`` returns for other failures.
        """
        headers = {"Accept": "application/json"}
        data = None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = orjson.dumps(body)
        session = self._get_session()
        try:
            async with session.request(
                method, self.url(path), data=data, headers=headers,
            ) as response:
                status = response.status
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.error("%s %s failed: %s", method, path, type(err).__name__)
            raise TransportError() from err

        payload = _decode(raw)
        if status < 400:
            logger.debug("%s %s -> %d", method, path, status)
            return payload
        if status == 401:
            logger.warning("%s %s -> 401, session expired", method, path)
            raise SessionExpiredError(status=status)
        logger.info("%s %s -> %d", method, path, status)
        raise classify(status, error_message(payload))


def _classify_add(status: int, message: str) -> VaultError:
    if _is_not_found(status, message):
        return NotFoundError(message or None, status=status)
    if status < 500 and "master" in message.lower():
        return DecryptionError(message, status=status)
    return TransportError(message or "Failed to add password", status=status)


def _classify_reveal(status: int, message: str) -> VaultError:
    if _is_not_found(status, message):
        return NotFoundError(message or None, status=status)
    if status < 500:
        return DecryptionError(message or None, status=status)
    return TransportError(message or None, status=status)


def _classify_delete(status: int, message: str) -> VaultError:
    if status < 500:
        return NotFoundError(message or None, status=status)
    return TransportError(message or "Failed to delete password", status=status)


class SessionView:
    """Read-only view of the session context.

    Components other than the Session Manager only ever see this view.
    """

    __slots__ = ("_source",)

    def __init__(self, source: Any):
        self._source = source

    def __repr__(self) -> str:
        return f"<SessionView authenticated:{self.is_authenticated}>"

    @property
    def token(self) -> Optional[str]:
        return self._source.current_token()

    @property
    def username(self) -> Optional[str]:
        return self._source.current_username()

    @property
    def is_authenticated(self) -> bool:
        return self._source.is_authenticated


class VaultClient:
    """Authenticated wrapper around the ``/vault`` endpoints."""

    def __init__(self, connection: ApiConnection, session: SessionView):
        self._connection = connection
        self._session = session

    @property
    def mode(self):
        return self._connection.config.master_secret_mode

    def _token(self) -> str:
        token = self._session.token
        if not token:
            raise SessionExpiredError("Not authenticated")
        return token

    def _master_body(self, master_secret: str) -> dict[str, str]:
        return {self._connection.config.master_field: master_secret}

    async def list_entries(self) -> list[VaultEntry]:
        """Fetch entry metadata with masked secrets, in provider order."""
        payload = await self._connection.request(
            "GET", "/vault/passwords", token=self._token(),
        )
        if not isinstance(payload, list):
            raise TransportError("Unexpected response listing passwords")
        try:
            entries = [VaultEntry.model_validate(item) for item in payload]
        except ModelError as err:
            raise TransportError("Malformed password entry in response") from err
        logger.debug("Listed %d vault entries", len(entries))
        return entries

    async def add_entry(
        self,
        app_name: str,
        app_username: str,
        plaintext_secret: str,
        master_secret: str,
    ) -> None:
        """Store a new entry; the server encrypts it under the master secret.

        Raises:
            ValidationError: Form fails local policy; nothing is sent.
            DecryptionError: Master secret rejected.
        """
        check_new_entry(
            app_name, app_username, plaintext_secret, master_secret, self.mode,
        )
        body = {
            "appName": app_name,
            "appUsername": app_username,
            "password": plaintext_secret,
            **self._master_body(master_secret),
        }
        try:
            await self._connection.request(
                "POST", "/vault/add", body=body,
                token=self._token(), classify=_classify_add,
            )
        finally:
            body.clear()
        logger.info("Added vault entry for app=%s", app_name)

    async def reveal_entry(self, entry_id: int, master_secret_attempt: str) -> str:
        """Decrypt one entry. The caller owns the returned plaintext.

        Raises:
            DecryptionError: Wrong master secret.
            NotFoundError: No such entry.
        """
        check_master_attempt(master_secret_attempt, self.mode)
        body = self._master_body(master_secret_attempt)
        try:
            payload = await self._connection.request(
                "POST", f"/vault/show/{entry_id}", body=body,
                token=self._token(), classify=_classify_reveal,
            )
        finally:
            body.clear()
        if not isinstance(payload, dict) or not isinstance(payload.get("password"), str):
            raise TransportError("Unexpected response revealing password")
        logger.debug("Revealed vault entry id=%s", entry_id)
        return payload["password"]

    async def delete_entry(self, entry_id: int) -> None:
        """Irreversibly delete an entry.

        Raises:
            NotFoundError: Entry already absent.
        """
        await self._connection.request(
            "DELETE", f"/vault/delete/{entry_id}",
            token=self._token(), classify=_classify_delete,
        )
        logger.info("Deleted vault entry id=%s", entry_id)
