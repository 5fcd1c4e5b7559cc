"""Debounced mirroring of the user state to remote storage."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, Protocol

from meal_coach.domain.errors import SyncError
from meal_coach.domain.state import UserState
from meal_coach.services.local_state import LocalStateStore

SyncPhase = Literal["idle", "pending", "syncing", "synced", "error"]

_logger = logging.getLogger(__name__)


class RemoteStateRepository(Protocol):
    """Persistence interface for a signed-in user's state."""

    def load_state(self, user_id: str) -> UserState:
        """Return the stored state; its profile is None for a new user."""

    def save_state(self, user_id: str, state: UserState) -> None:
        """Overwrite the stored state with ``state``."""


@dataclass
class SyncStatus:
    """What the last push did."""

    state: SyncPhase = "idle"
    last_synced_at: datetime | None = None
    last_error: str | None = None


@dataclass(frozen=True)
class PullResult:
    """Outcome of loading a user's remote state."""

    user_id: str
    needs_onboarding: bool


@dataclass
class Debouncer:
    """Runs ``action`` once, ``delay_seconds`` after the last trigger in a burst."""

    delay_seconds: float
    action: Callable[[], Awaitable[None]]
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _timer: asyncio.Task[None] | None = field(default=None, init=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    @property
    def pending(self) -> bool:
        """True while a trigger is waiting out its delay."""
        return self._timer is not None and not self._timer.done()

    def trigger(self) -> None:
        """Restart the delay; a still-waiting earlier trigger is dropped."""
        self.cancel()
        self._timer = asyncio.create_task(self._fire())
        self._tasks.add(self._timer)
        self._timer.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Drop the waiting trigger, if any. A running action is not touched."""
        if self.pending:
            self._timer.cancel()
        self._timer = None

    async def wait_idle(self) -> None:
        """Wait for waiting triggers and running actions to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _fire(self) -> None:
        await self.sleep(self.delay_seconds)
        self._timer = None
        await self.action()


@dataclass
class SyncCoordinator:
    """Keeps remote storage in step with the in-memory user state.

    Signed-in users with a profile get a debounced push of the whole state
    after every change. Everyone else gets a local mirror written at once.
    A failed push is recorded in ``status``; the local state is never rolled
    back.
    """

    state: UserState
    remote: RemoteStateRepository
    local: LocalStateStore
    debounce_seconds: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    user_id: str | None = None
    status: SyncStatus = field(default_factory=SyncStatus)
    _debouncer: Debouncer = field(init=False)

    def __post_init__(self) -> None:
        self._debouncer = Debouncer(
            delay_seconds=self.debounce_seconds, action=self._push, sleep=self.sleep
        )

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    def notify_changed(self) -> None:
        """Record that the state changed."""
        if self.authenticated and self.state.profile is not None:
            self.status.state = "pending"
            self._debouncer.trigger()
            return
        self.local.save(self.state)

    async def force_sync(self) -> SyncStatus:
        """Push now instead of waiting for the debounce delay."""
        if self.status.state == "syncing":
            return self.status
        self._debouncer.cancel()
        await self._push()
        return self.status

    async def pull(self, user_id: str) -> PullResult:
        """Sign in ``user_id`` and load their remote state.

        Local data of anonymous use is kept for the new account. Data of a
        different signed-in account is dropped before anything else happens.
        Raises ``SyncError`` when the remote read fails; nothing is changed then.
        """
        try:
            remote_state = self.remote.load_state(user_id)
        except SyncError as exc:
            self.status.state = "error"
            self.status.last_error = str(exc)
            _logger.warning("Failed to load state for %s: %s", user_id, exc)
            raise
        self._debouncer.cancel()
        await self._debouncer.wait_idle()
        if self.user_id is not None and self.user_id != user_id:
            _logger.info("Switching account, dropping data of %s", self.user_id)
            self.state.clear()
            self.local.clear()
            self.status = SyncStatus()
        self.user_id = user_id
        if remote_state.profile is None:
            _logger.info("No remote profile for %s, onboarding required", user_id)
            return PullResult(user_id=user_id, needs_onboarding=True)
        self.state.replace_with(remote_state, keep_activities=True)
        self.status = SyncStatus(state="synced", last_synced_at=_now())
        _logger.info("Loaded remote state for %s", user_id)
        return PullResult(user_id=user_id, needs_onboarding=False)

    async def logout(self) -> None:
        """Forget the user and wipe every local copy of their data."""
        self._debouncer.cancel()
        await self._debouncer.wait_idle()
        self.user_id = None
        self.state.clear()
        self.local.clear()
        self.status = SyncStatus()

    async def wait_idle(self) -> None:
        """Wait for scheduled pushes to complete."""
        await self._debouncer.wait_idle()

    async def _push(self) -> None:
        user_id = self.user_id
        if user_id is None or self.state.profile is None:
            return
        self.status.state = "syncing"
        try:
            self.remote.save_state(user_id, self.state)
        except Exception as exc:
            self.status.state = "error"
            self.status.last_error = str(exc)
            _logger.exception("Sync push failed for %s", user_id)
            return
        self.status = SyncStatus(state="synced", last_synced_at=_now())
        _logger.info("Synced state for %s", user_id)


def _now() -> datetime:
    return datetime.now(tz=UTC)
