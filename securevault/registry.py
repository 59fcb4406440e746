"""
Entry Registry — cached list of vault entries backing the list view.

The cache is replaced wholesale on every refresh and keeps the provider's
order. It only ever holds ``VaultEntry`` metadata with masked secrets.
"""
import logging
from collections.abc import Iterator, Sequence
from typing import Any, Optional, Union

from .exceptions import SessionExpiredError
from .models import VaultEntry

logger = logging.getLogger("securevault.registry")


class EntryRegistry(Sequence):
    """Read-only sequence of the user's vault entries."""

    def __init__(self, client: Any):
        self._client = client
        self._entries: list[VaultEntry] = []
        self._loaded = False

    def __repr__(self) -> str:
        return f"<EntryRegistry loaded:{self._loaded} entries={self.ids()}>"

    # --- Sequence protocol ---

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __iter__(self) -> Iterator[VaultEntry]:
        return iter(self._entries)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, VaultEntry):
            return item in self._entries
        return any(entry.id == item for entry in self._entries)

    # --- Queries ---

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def empty(self) -> bool:
        return not self._entries

    def ids(self) -> list[int]:
        return [entry.id for entry in self._entries]

    def get(self, entry_id: int) -> Optional[VaultEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    # --- Mutations ---

    def clear(self) -> None:
        self._entries = []
        self._loaded = False

    async def refresh(self) -> list[VaultEntry]:
        """Replace the cache with the provider's current list.

        Raises:
            SessionExpiredError: The cache is cleared before re-raising.
        """
        try:
            entries = await self._client.list_entries()
        except SessionExpiredError:
            logger.warning("Session expired while refreshing, clearing %d entries", len(self))
            self.clear()
            raise
        self._entries = list(entries)
        self._loaded = True
        logger.debug("Registry refreshed with %d entries", len(self._entries))
        return list(self._entries)

    async def add(
        self,
        app_name: str,
        app_username: str,
        plaintext_secret: str,
        master_secret: str,
    ) -> list[VaultEntry]:
        await self._client.add_entry(
            app_name, app_username, plaintext_secret, master_secret,
        )
        return await self.refresh()

    async def delete(self, entry: Union[int, VaultEntry]) -> list[VaultEntry]:
        entry_id = entry.id if isinstance(entry, VaultEntry) else entry
        await self._client.delete_entry(entry_id)
        return await self.refresh()
