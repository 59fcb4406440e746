"""
Vault Dashboard — wires session, registry and reveal controller together.

This is the call site where remote errors stop: every operation catches
``VaultError``, records it in ``error``, hands it to ``notify`` and returns
``False``. A ``SessionExpiredError`` from anywhere forces the session to
Anonymous, clears the registry, closes the reveal and calls ``on_reauth``.
"""
import logging
from typing import Any, Callable, Optional

from .exceptions import ErrorKind, VaultError
from .registry import EntryRegistry
from .reveal import RevealController, Scheduler
from .session import SessionManager
from .transport import VaultClient

logger = logging.getLogger("securevault.dashboard")


class VaultDashboard:
    """Application-level controller for an authenticated vault view."""

    def __init__(
        self,
        session: SessionManager,
        client: Optional[VaultClient] = None,
        on_reauth: Optional[Callable[[], Any]] = None,
        notify: Optional[Callable[[VaultError], Any]] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.session = session
        self.client = client or VaultClient(session.connection, session.view())
        self.registry = EntryRegistry(self.client)
        self.reveal = RevealController(
            self.client,
            mode=session.config.master_secret_mode,
            scheduler=scheduler,
            window=session.config.reveal_window,
            on_error=self._handle_error,
        )
        self._on_reauth = on_reauth
        self._notify = notify
        self.error: Optional[VaultError] = None

    def __repr__(self) -> str:
        return (
            f"<VaultDashboard user={self.session.current_username()} "
            f"entries={len(self.registry)} reveal={self.reveal.state.value}>"
        )

    @property
    def entries(self) -> EntryRegistry:
        return self.registry

    # --- Error routing ---

    def _route_to_login(self) -> None:
        self.registry.clear()
        self.reveal.close()
        if self._on_reauth is not None:
            self._on_reauth()

    def _handle_error(self, err: VaultError) -> None:
        self.error = err
        if err.kind is ErrorKind.SESSION_EXPIRED:
            self.session.expire()
            self._route_to_login()
        if self._notify is not None:
            self._notify(err)

    async def _run(self, operation) -> bool:
        self.error = None
        try:
            await operation
        except VaultError as err:
            self._handle_error(err)
            return False
        return True

    # --- Operations ---

    async def load(self) -> bool:
        """Initial mount: require a session, then fetch the entry list."""
        if not self.session.is_authenticated:
            logger.debug("Dashboard opened without a session")
            self._route_to_login()
            return False
        return await self._run(self.registry.refresh())

    async def refresh(self) -> bool:
        return await self._run(self.registry.refresh())

    async def add_entry(
        self,
        app_name: str,
        app_username: str,
        plaintext_secret: str,
        master_secret: str,
    ) -> bool:
        return await self._run(
            self.registry.add(app_name, app_username, plaintext_secret, master_secret)
        )

    async def delete_entry(self, entry_id: int) -> bool:
        if entry_id == self.reveal.entry_id:
            self.reveal.close()
        return await self._run(self.registry.delete(entry_id))

    async def show_entry(self, entry_id: int, master_secret_attempt: str) -> bool:
        """Open the reveal for ``entry_id`` and submit the attempt."""
        self.error = None
        self.reveal.open(entry_id)
        return await self.reveal.submit(master_secret_attempt)

    def close_reveal(self) -> None:
        self.reveal.close()

    def logout(self) -> None:
        self.reveal.close()
        self.registry.clear()
        self.session.logout()
        self.error = None

    def teardown(self) -> None:
        """Unmount: nothing secret survives the view."""
        self.reveal.close()
        self.registry.clear()
