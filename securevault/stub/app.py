"""
Reference vault API — in-memory aiohttp application.

Implements the remote interface the client drives:

    POST   /auth/register       {username, loginPassword, masterPin|masterPassword}
    POST   /auth/login          {username, loginPassword}
    GET    /vault/passwords     -> [{id, appName, appUsername, maskedPassword}]
    POST   /vault/add           {appName, appUsername, password, masterPin|masterPassword}
    POST   /vault/show/{id}     {masterPin|masterPassword} -> {password}
    DELETE /vault/delete/{id}

Errors are plain-text bodies with status 400; a missing or unknown bearer
token on ``/vault`` routes is a 401. Everything lives in process memory and
is meant for local development and tests.
"""
import itertools
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Optional

import orjson
from aiohttp import web

from ..conf import (
    MASKED_SECRET,
    MASTER_FIELD,
    MASTER_SECRET_MODE,
    MasterSecretMode,
)
from ..exceptions import ValidationError
from ..validation import check_registration, validate_master_secret
from .crypto import (
    ITERATIONS,
    DecryptFailure,
    decrypt_secret,
    encrypt_secret,
    hash_secret,
    verify_secret,
)

logger = logging.getLogger("securevault.stub")


class ApiRejected(Exception):
    """Request refused; rendered as a plain-text error body."""

    def __init__(self, message: str, status: int = 400):
        self.message = message
        self.status = status
        super().__init__(message)


@dataclass
class UserRecord:
    username: str
    login_verifier: str = field(repr=False)
    master_verifier: str = field(repr=False)


@dataclass
class EntryRecord:
    id: int
    owner: str
    app_name: str
    app_username: str
    ciphertext: str = field(repr=False)

    def masked(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "appName": self.app_name,
            "appUsername": self.app_username,
            "maskedPassword": MASKED_SECRET,
        }


class VaultStore:
    """In-memory users, tokens and encrypted entries."""

    def __init__(
        self,
        mode: MasterSecretMode = MASTER_SECRET_MODE,
        iterations: int = ITERATIONS,
    ):
        self.mode = mode
        self.iterations = iterations
        self.users: dict[str, UserRecord] = {}
        self.tokens: dict[str, str] = {}
        self.entries: dict[int, EntryRecord] = {}
        self._ids = itertools.count(1)

    @property
    def master_label(self) -> str:
        return "PIN" if self.mode is MasterSecretMode.PIN else "password"

    def issue_token(self, username: str) -> str:
        token = secrets.token_urlsafe(32)
        self.tokens[token] = username
        return token

    def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return self.tokens.get(token)

    def revoke(self, token: str) -> None:
        self.tokens.pop(token, None)

    def revoke_all(self) -> None:
        self.tokens.clear()

    def register(self, username: str, login_secret: str, master_secret: str) -> str:
        try:
            check_registration(username, login_secret, master_secret, self.mode)
        except ValidationError as err:
            raise ApiRejected(err.message) from err
        if username in self.users:
            raise ApiRejected("Username already exists")
        self.users[username] = UserRecord(
            username=username,
            login_verifier=hash_secret(login_secret, self.iterations),
            master_verifier=hash_secret(master_secret, self.iterations),
        )
        logger.info("Registered user=%s", username)
        return self.issue_token(username)

    def login(self, username: str, login_secret: str) -> str:
        user = self.users.get(username)
        if user is None or not verify_secret(
            login_secret, user.login_verifier, self.iterations,
        ):
            raise ApiRejected("Invalid username or password")
        return self.issue_token(username)

    def _verify_master(self, username: str, master_secret: Any, action: str) -> str:
        if not isinstance(master_secret, str) or not validate_master_secret(
            master_secret, self.mode,
        ):
            raise ApiRejected(f"{action}: Invalid master {self.master_label}")
        user = self.users[username]
        if not verify_secret(master_secret, user.master_verifier, self.iterations):
            raise ApiRejected(f"{action}: Invalid master {self.master_label}")
        return master_secret

    def _owned(self, username: str, entry_id: int, action: Optional[str] = None) -> EntryRecord:
        entry = self.entries.get(entry_id)
        if entry is None or entry.owner != username:
            message = "Password entry not found"
            raise ApiRejected(f"{action}: {message}" if action else message)
        return entry

    def list_for(self, username: str) -> list[EntryRecord]:
        return [e for e in self.entries.values() if e.owner == username]

    def add(self, username: str, body: dict[str, Any]) -> EntryRecord:
        action = "Failed to add password"
        for name, label in (
            ("appName", "App name"),
            ("appUsername", "App username"),
            ("password", "Password"),
        ):
            value = body.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ApiRejected(f"{label} is required")
        master = self._verify_master(username, body.get(MASTER_FIELD[self.mode]), action)
        entry = EntryRecord(
            id=next(self._ids),
            owner=username,
            app_name=body["appName"],
            app_username=body["appUsername"],
            ciphertext=encrypt_secret(body["password"], master, self.iterations),
        )
        self.entries[entry.id] = entry
        return entry

    def reveal(self, username: str, entry_id: int, body: dict[str, Any]) -> str:
        action = "Failed to decrypt password"
        entry = self._owned(username, entry_id, action)
        master = self._verify_master(username, body.get(MASTER_FIELD[self.mode]), action)
        try:
            return decrypt_secret(entry.ciphertext, master, self.iterations)
        except DecryptFailure as err:
            raise ApiRejected(f"{action}: {err}") from err

    def delete(self, username: str, entry_id: int) -> None:
        entry = self._owned(username, entry_id)
        del self.entries[entry.id]


STORE_KEY = web.AppKey("store", VaultStore)
USER_KEY = web.RequestKey("user", str)


def _json(data: Any, status: int = 200) -> web.Response:
    return web.json_response(
        data, status=status, dumps=lambda obj: orjson.dumps(obj).decode("utf-8"),
    )


async def _body(request: web.Request) -> dict[str, Any]:
    try:
        data = orjson.loads(await request.read())
    except orjson.JSONDecodeError as err:
        raise ApiRejected("Malformed request body") from err
    if not isinstance(data, dict):
        raise ApiRejected("Malformed request body")
    return data


def _entry_id(request: web.Request) -> int:
    try:
        return int(request.match_info["id"])
    except ValueError as err:
        raise ApiRejected("Password entry not found") from err


def _bearer(request: web.Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except ApiRejected as err:
        logger.debug("%s %s rejected: %s", request.method, request.path, err.status)
        return web.Response(text=err.message, status=err.status)


@web.middleware
async def auth_middleware(request: web.Request, handler):
    if request.path.startswith("/vault/"):
        username = request.app[STORE_KEY].resolve(_bearer(request))
        if username is None:
            return web.Response(text="Unauthorized", status=401)
        request[USER_KEY] = username
    return await handler(request)


async def register(request: web.Request) -> web.Response:
    body = await _body(request)
    store = request.app[STORE_KEY]
    username = str(body.get("username") or "")
    token = store.register(
        username,
        str(body.get("loginPassword") or ""),
        str(body.get(MASTER_FIELD[store.mode]) or ""),
    )
    return _json({"token": token, "username": username})


async def login(request: web.Request) -> web.Response:
    body = await _body(request)
    username = str(body.get("username") or "")
    token = request.app[STORE_KEY].login(username, str(body.get("loginPassword") or ""))
    return _json({"token": token, "username": username})


async def list_passwords(request: web.Request) -> web.Response:
    entries = request.app[STORE_KEY].list_for(request[USER_KEY])
    return _json([entry.masked() for entry in entries])


async def add_password(request: web.Request) -> web.Response:
    body = await _body(request)
    entry = request.app[STORE_KEY].add(request[USER_KEY], body)
    return _json(entry.masked())


async def show_password(request: web.Request) -> web.Response:
    body = await _body(request)
    plaintext = request.app[STORE_KEY].reveal(request[USER_KEY], _entry_id(request), body)
    return _json({"password": plaintext})


async def delete_password(request: web.Request) -> web.Response:
    request.app[STORE_KEY].delete(request[USER_KEY], _entry_id(request))
    return web.Response(text="Password deleted successfully")


def create_app(
    mode: MasterSecretMode = MASTER_SECRET_MODE,
    iterations: int = ITERATIONS,
    store: Optional[VaultStore] = None,
) -> web.Application:
    """Build the reference API application.

    Args:
        mode: Master secret variant the API accepts.
        iterations: PBKDF2 work factor for verifiers and entry keys.
        store: Pre-built store to serve, mainly for tests.
    """
    app = web.Application(middlewares=[error_middleware, auth_middleware])
    app[STORE_KEY] = store or VaultStore(mode=mode, iterations=iterations)
    app.router.add_post("/auth/register", register)
    app.router.add_post("/auth/login", login)
    app.router.add_get("/vault/passwords", list_passwords)
    app.router.add_post("/vault/add", add_password)
    app.router.add_post("/vault/show/{id}", show_password)
    app.router.add_delete("/vault/delete/{id}", delete_password)
    return app
