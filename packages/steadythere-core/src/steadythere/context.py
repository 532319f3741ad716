"""AuthContext - session, profile and organization state for one client."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass, replace
from types import TracebackType

import structlog

from steadythere.config import AuthConfig
from steadythere.loader import MembershipSource, ProfileMembershipLoader
from steadythere.models import Organization, OrganizationMembership, Profile, Session, User
from steadythere.selector import OrganizationSelector, find_membership
from steadythere.session.base import (
    AuthBackend,
    AuthChangeEvent,
    AuthResult,
    SessionStore,
    Subscription,
)
from steadythere.session.store import ProviderSessionStore
from steadythere.storage.base import KeyValueSlot

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthState:
    """Immutable snapshot of everything the route guard and views read."""

    user: User | None = None
    session: Session | None = None
    profile: Profile | None = None
    organizations: tuple[OrganizationMembership, ...] = ()
    current_org_id: str | None = None
    is_loading: bool = True
    orgs_loaded: bool = False

    @property
    def current_org_member(self) -> OrganizationMembership | None:
        if self.user is None or not self.orgs_loaded:
            return None
        return find_membership(self.organizations, self.current_org_id)

    @property
    def current_org(self) -> Organization | None:
        member = self.current_org_member
        return member.organization if member else None

    @property
    def ready(self) -> bool:
        return not self.is_loading and self.orgs_loaded


StateListener = Callable[[AuthState], None]


class AuthContext:
    """Composes the session store, loader and selector into one state machine.

    States (over session presence and ``orgs_loaded``)::

        Initializing        is_loading=True
        Unauthenticated     no session, orgs_loaded=True
        LoadingMemberships  session, orgs_loaded=False
        Ready               session, orgs_loaded=True

    Lifecycle: construct at the application root, ``await start()``, and
    ``await dispose()`` on shutdown (or use ``async with``). After
    disposal, results of in-flight fetches are dropped.

    Every session transition bumps an epoch; a membership load only
    applies if its epoch is still current, so a slow load for an earlier
    session can never overwrite the state of a newer one.
    """

    def __init__(
        self,
        store: SessionStore,
        loader: ProfileMembershipLoader,
        selector: OrganizationSelector,
    ) -> None:
        self._store = store
        self._loader = loader
        self._selector = selector
        self._state = AuthState()
        self._listeners: dict[int, StateListener] = {}
        self._next_listener_id = 0
        self._epoch = 0
        self._started = False
        self._mounted = False
        self._subscription: Subscription | None = None
        self._init_task: asyncio.Task[None] | None = None
        self._ready = asyncio.Event()

    @classmethod
    def create(
        cls,
        backend: AuthBackend,
        source: MembershipSource,
        slot: KeyValueSlot,
        config: AuthConfig | None = None,
    ) -> AuthContext:
        """Wire the default components around one persisted slot."""
        config = config or AuthConfig()
        return cls(
            store=ProviderSessionStore(backend, slot, token_key=config.token_key),
            loader=ProfileMembershipLoader(source, timeout=config.fetch_timeout_seconds),
            selector=OrganizationSelector(
                slot, key=config.selection_key, policy=config.default_org_policy
            ),
        )

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> User | None:
        return self._state.user

    @property
    def session(self) -> Session | None:
        return self._state.session

    @property
    def profile(self) -> Profile | None:
        return self._state.profile

    @property
    def organizations(self) -> tuple[OrganizationMembership, ...]:
        return self._state.organizations

    @property
    def current_org(self) -> Organization | None:
        return self._state.current_org

    @property
    def current_org_member(self) -> OrganizationMembership | None:
        return self._state.current_org_member

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def orgs_loaded(self) -> bool:
        return self._state.orgs_loaded

    def subscribe(self, listener: StateListener) -> Subscription:
        """Call ``listener`` with a fresh snapshot after every state change."""
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = listener
        return Subscription(lambda: self._listeners.pop(listener_id, None))

    async def wait_until_ready(self, timeout: float | None = None) -> AuthState:
        """Wait until the session is resolved and memberships are loaded.

        Raises TimeoutError when ``timeout`` elapses first.
        """
        await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        return self._state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._mounted = True
        self._subscription = self._store.subscribe(self._on_auth_change)
        self._init_task = asyncio.create_task(self._initialize())

    async def dispose(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        task, self._init_task = self._init_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._listeners.clear()

    async def __aenter__(self) -> AuthContext:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _update(self, **changes: object) -> None:
        if not self._mounted:
            return
        self._state = replace(self._state, **changes)
        if self._state.ready:
            self._ready.set()
        else:
            self._ready.clear()
        for listener in list(self._listeners.values()):
            try:
                listener(self._state)
            except Exception:
                logger.exception("auth_state_listener_failed")

    def _is_current(self, epoch: int) -> bool:
        return self._mounted and epoch == self._epoch

    async def _initialize(self) -> None:
        epoch = self._epoch
        try:
            session = await self._store.get_current_session()
        except Exception:
            logger.exception("initial_session_probe_failed")
            session = None
        if not self._mounted:
            return
        if epoch != self._epoch:
            # A session event was handled while the probe was in flight.
            if self._state.is_loading:
                self._update(is_loading=False)
            return

        self._epoch += 1
        epoch = self._epoch
        if session is None:
            self._update(session=None, user=None, is_loading=False, orgs_loaded=True)
            return
        self._update(session=session, user=session.user, is_loading=False, orgs_loaded=False)
        await self._load_user_data(session.user.id, epoch)

    async def _on_auth_change(self, event: AuthChangeEvent, session: Session | None) -> None:
        if not self._mounted:
            return
        # Already covered by the get_current_session() probe in _initialize.
        if event is AuthChangeEvent.INITIAL_SESSION:
            return

        if session is None:
            self._epoch += 1
            self._update(
                session=None,
                user=None,
                profile=None,
                organizations=(),
                current_org_id=None,
                is_loading=False,
                orgs_loaded=True,
            )
            return

        previous = self._state.user
        same_user = previous is not None and previous.id == session.user.id
        if event is AuthChangeEvent.TOKEN_REFRESHED and same_user:
            self._update(session=session, user=session.user, is_loading=False)
            return

        self._epoch += 1
        epoch = self._epoch
        changes: dict[str, object] = {
            "session": session,
            "user": session.user,
            "is_loading": False,
            "orgs_loaded": False,
        }
        if not same_user:
            changes.update(profile=None, organizations=(), current_org_id=None)
        self._update(**changes)
        await self._load_user_data(session.user.id, epoch)

    async def _load_user_data(self, user_id: str, epoch: int, mark_loaded: bool = True) -> None:
        try:
            result = await self._loader.load(user_id)
            if not self._is_current(epoch):
                logger.debug("stale_user_data_dropped", user_id=user_id)
                return
            changes: dict[str, object] = {
                "profile": result.profile,
                "organizations": tuple(result.memberships),
                "current_org_id": self._selector.select(result.memberships),
            }
            if mark_loaded:
                changes["orgs_loaded"] = True
            self._update(**changes)
        except Exception:
            logger.exception("user_data_load_failed", user_id=user_id)
            if self._is_current(epoch):
                self._update(orgs_loaded=True)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthResult:
        return await self._store.sign_in(email, password)

    async def sign_up(self, email: str, password: str, name: str | None = None) -> AuthResult:
        return await self._store.sign_up(email, password, name)

    async def sign_out(self) -> None:
        try:
            await self._store.sign_out()
        finally:
            self._selector.clear()

    def switch_organization(self, org_id: str) -> bool:
        """Make ``org_id`` current and persist it. Returns False if not a member."""
        if not any(m.organization_id == org_id for m in self._state.organizations):
            logger.warning("switch_to_unknown_organization", org_id=org_id)
            return False
        self._selector.switch(org_id)
        if self._state.current_org_id != org_id:
            self._update(current_org_id=org_id)
        return True

    async def refresh_profile(self) -> None:
        """Reload profile and memberships without resetting ``orgs_loaded``."""
        user = self._state.user
        if user is None:
            return
        await self._load_user_data(user.id, self._epoch, mark_loaded=False)
