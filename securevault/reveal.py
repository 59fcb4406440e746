"""
Reveal Lifecycle — decrypt-on-demand with bounded plaintext exposure.

States::

    IDLE -> PROMPTING_SECRET -> DECRYPTING -> REVEALED -> IDLE
              ^                     |             |
              +---- open(other) ----+-------------+

- ``open(entry_id)`` always lands in PROMPTING_SECRET and discards any
  previous plaintext on the spot.
- ``submit(attempt)`` issues one decrypt request; a failure returns to IDLE
  without retrying.
- REVEALED arms a cancellable timer (``reveal_window`` seconds) that returns
  to IDLE and discards the plaintext.
- ``close()`` returns to IDLE from anywhere, cancelling the timer.

Each decrypt request is tagged with the generation of the RevealSession it
was issued for. A response whose tag is no longer current is dropped on
arrival, so a late answer for entry A can never populate entry B.

Security Note:
    Plaintext and master secret attempts are never logged and are excluded
    from ``repr``.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Optional, Protocol

from .conf import REVEAL_WINDOW
from .exceptions import ErrorKind, RevealStateError, ValidationError, VaultError
from .validation import check_master_attempt

logger = logging.getLogger("securevault.reveal")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of time and delayed callbacks for the reveal timer."""

    def time(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class LoopScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def time(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class RevealState(str, Enum):
    IDLE = "idle"
    PROMPTING_SECRET = "prompting_secret"
    DECRYPTING = "decrypting"
    REVEALED = "revealed"


@dataclass
class RevealSession:
    """One reveal of one entry. At most one is active per controller."""

    entry_id: int
    tag: int
    master_secret_attempt: Optional[str] = field(default=None, repr=False)
    plaintext: Optional[str] = field(default=None, repr=False)
    expires_at: Optional[float] = None
    timer: Optional[TimerHandle] = field(default=None, repr=False)

    def discard(self) -> None:
        """Cancel the timer and drop every secret held by this session."""
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
        self.master_secret_attempt = None
        self.plaintext = None
        self.expires_at = None


class RevealController:
    """State machine driving the reveal modal.

    Args:
        client: Object exposing ``async reveal_entry(entry_id, attempt)``.
        mode: Master secret variant used for local attempt checks.
        scheduler: Timer source; defaults to the running event loop.
        window: Seconds a revealed plaintext stays available.
        on_error: Called with every VaultError surfaced by ``submit``.
    """

    def __init__(
        self,
        client: Any,
        mode: Any,
        scheduler: Optional[Scheduler] = None,
        window: float = REVEAL_WINDOW,
        on_error: Optional[Callable[[VaultError], Any]] = None,
    ):
        self._client = client
        self._mode = mode
        self._scheduler = scheduler or LoopScheduler()
        self._window = window
        self._on_error = on_error
        self._session: Optional[RevealSession] = None
        self._state = RevealState.IDLE
        self._generation = 0
        self.error: Optional[VaultError] = None

    def __repr__(self) -> str:
        entry = self._session.entry_id if self._session else None
        return f"<RevealController state={self._state.value} entry={entry}>"

    # --- Queries ---

    @property
    def state(self) -> RevealState:
        return self._state

    @property
    def session(self) -> Optional[RevealSession]:
        return self._session

    @property
    def entry_id(self) -> Optional[int]:
        return self._session.entry_id if self._session else None

    @property
    def plaintext(self) -> Optional[str]:
        if self._state is RevealState.REVEALED and self._session is not None:
            return self._session.plaintext
        return None

    def remaining(self) -> Optional[float]:
        """Seconds until the revealed plaintext is discarded."""
        if self._state is not RevealState.REVEALED or self._session is None:
            return None
        return max(0.0, self._session.expires_at - self._scheduler.time())

    # --- Transitions ---

    def _reset(self) -> None:
        if self._session is not None:
            self._session.discard()
        self._session = None
        self._state = RevealState.IDLE

    def _is_current(self, tag: int) -> bool:
        return self._session is not None and self._session.tag == tag

    def _surface(self, err: VaultError) -> None:
        self.error = err
        if self._on_error is not None:
            self._on_error(err)

    def open(self, entry_id: int) -> RevealSession:
        """Start a reveal for ``entry_id``, abandoning any previous one."""
        self._reset()
        self._generation += 1
        self._session = RevealSession(entry_id=entry_id, tag=self._generation)
        self._state = RevealState.PROMPTING_SECRET
        self.error = None
        logger.debug("Reveal opened for entry id=%s", entry_id)
        return self._session

    async def submit(self, master_secret_attempt: str) -> bool:
        """Send one decrypt request for the open entry.

        Returns:
            True when the plaintext is now revealed for this session.

        Raises:
            RevealStateError: No entry awaits a secret, or a decrypt for this
                session is already in flight.
        """
        if self._state is RevealState.DECRYPTING:
            raise RevealStateError("A decrypt request is already in flight")
        if self._state is not RevealState.PROMPTING_SECRET or self._session is None:
            raise RevealStateError("No entry is awaiting a master secret")
        session = self._session
        try:
            check_master_attempt(master_secret_attempt, self._mode)
        except ValidationError as err:
            self._surface(err)
            return False

        tag = session.tag
        session.master_secret_attempt = master_secret_attempt
        self._state = RevealState.DECRYPTING
        try:
            plaintext = await self._client.reveal_entry(
                session.entry_id, master_secret_attempt,
            )
        except VaultError as err:
            if not self._is_current(tag):
                logger.debug("Dropped stale reveal failure for entry id=%s", session.entry_id)
                if err.kind is ErrorKind.SESSION_EXPIRED and self._on_error is not None:
                    self._on_error(err)
                return False
            logger.info(
                "Reveal failed for entry id=%s: %s", session.entry_id, err.kind.value,
            )
            self._reset()
            self._surface(err)
            return False
        except BaseException:
            if self._is_current(tag):
                self._reset()
            raise
        finally:
            session.master_secret_attempt = None

        if not self._is_current(tag):
            logger.debug("Dropped stale reveal result for entry id=%s", session.entry_id)
            return False
        session.plaintext = plaintext
        session.expires_at = self._scheduler.time() + self._window
        session.timer = self._scheduler.call_later(
            self._window, partial(self._expire, tag),
        )
        self._state = RevealState.REVEALED
        logger.debug("Entry id=%s revealed for %ss", session.entry_id, self._window)
        return True

    def _expire(self, tag: int) -> None:
        if self._is_current(tag) and self._state is RevealState.REVEALED:
            logger.debug("Reveal window elapsed for entry id=%s", self.entry_id)
            self._session.timer = None
            self._reset()

    def close(self) -> None:
        """Return to IDLE, discarding plaintext and cancelling the timer."""
        if self._session is not None:
            logger.debug("Reveal closed for entry id=%s", self._session.entry_id)
        self._reset()
