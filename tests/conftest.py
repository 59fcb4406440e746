"""Shared fixtures: reference API server, connections and a manual clock."""
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from securevault.conf import MasterSecretMode
from securevault.config import ClientConfig
from securevault.session import SessionManager
from securevault.stub import VaultStore, create_app
from securevault.transport import ApiConnection, VaultClient

# Keep PBKDF2 cheap in tests.
TEST_ITERATIONS = 1000

LOGIN_SECRET = "Secret1!"
MASTER_PIN = "1234"


class ManualTimer:
    def __init__(self, clock: "ManualScheduler", due: float, callback):
        self._clock = clock
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose time only moves when the test advances it."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback) -> ManualTimer:
        timer = ManualTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in sorted(self.pending(), key=lambda t: t.due):
            if timer.due <= self.now and not timer.cancelled:
                timer.cancelled = True
                timer.callback()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return VaultStore(mode=MasterSecretMode.PIN, iterations=TEST_ITERATIONS)


@pytest_asyncio.fixture
async def api_server(store):
    server = TestServer(create_app(store=store))
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def config(api_server):
    return ClientConfig(
        base_url=str(api_server.make_url("/")),
        master_secret_mode=MasterSecretMode.PIN,
    )


@pytest_asyncio.fixture
async def connection(config):
    conn = ApiConnection(config)
    yield conn
    await conn.close()


@pytest.fixture
def session(connection):
    return SessionManager(connection)


@pytest_asyncio.fixture
async def alice(session):
    """Session registered and authenticated as alice."""
    await session.register("alice", LOGIN_SECRET, MASTER_PIN)
    return session


@pytest.fixture
def client(connection, session):
    return VaultClient(connection, session.view())
