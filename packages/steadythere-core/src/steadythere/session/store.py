"""Session store backed by an AuthBackend and a persisted token slot."""

from __future__ import annotations

import asyncio
import inspect

import structlog

from steadythere.models import Session
from steadythere.session.base import (
    AuthBackend,
    AuthChangeEvent,
    AuthChangeHandler,
    AuthError,
    AuthResult,
    Subscription,
)
from steadythere.storage.base import KeyValueSlot
from steadythere.storage.memory import InMemorySlot

logger = structlog.get_logger()


class ProviderSessionStore:
    """Owns the current session and fans session transitions out to subscribers.

    The access token is written to ``slot`` under ``token_key`` so a store
    created later over the same slot restores the session on its first
    ``get_current_session()``.

    Handlers are awaited in subscription order, so ``sign_in`` returns only
    after every subscriber has processed ``SIGNED_IN``.
    """

    def __init__(
        self,
        backend: AuthBackend,
        slot: KeyValueSlot | None = None,
        token_key: str = "steady_access_token",
    ) -> None:
        self._backend = backend
        self._slot = slot if slot is not None else InMemorySlot()
        self._token_key = token_key
        self._session: Session | None = None
        self._resolved = asyncio.Event()
        self._restore_lock = asyncio.Lock()
        self._handlers: dict[int, AuthChangeHandler] = {}
        self._initial_deliveries: dict[int, asyncio.Task[None]] = {}
        self._next_handler_id = 0

    @property
    def session(self) -> Session | None:
        """Last known session without waiting for the initial resolution."""
        return self._session

    @property
    def resolved(self) -> bool:
        return self._resolved.is_set()

    # ------------------------------------------------------------------
    # Session probe
    # ------------------------------------------------------------------

    async def get_current_session(self) -> Session | None:
        if not self._resolved.is_set():
            async with self._restore_lock:
                if not self._resolved.is_set():
                    await self._restore()
        return self._session

    async def _restore(self) -> None:
        token = self._slot.get(self._token_key)
        session: Session | None = None
        if token:
            try:
                session = await self._backend.get_session(token)
            except AuthError as exc:
                logger.warning("session_restore_failed", code=exc.code, error=exc.message)
            if session is not None and session.is_expired() and session.refresh_token:
                try:
                    session = await self._backend.refresh_session(session.refresh_token)
                except AuthError as exc:
                    logger.info("session_refresh_on_restore_failed", code=exc.code)
                    session = None

        # A sign-in that completed while we were restoring wins, token included.
        if not self._resolved.is_set():
            self._session = session
            if session is not None:
                self._slot.set(self._token_key, session.access_token)
            elif token:
                self._slot.delete(self._token_key)
            self._resolved.set()
        logger.debug("session_restored", authenticated=self._session is not None)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, handler: AuthChangeHandler) -> Subscription:
        """Register ``handler`` and schedule its INITIAL_SESSION delivery.

        Must be called while an event loop is running.
        """
        handler_id = self._next_handler_id
        self._next_handler_id += 1
        self._handlers[handler_id] = handler
        task = asyncio.get_running_loop().create_task(self._deliver_initial(handler_id))
        self._initial_deliveries[handler_id] = task

        def _close() -> None:
            self._handlers.pop(handler_id, None)
            pending = self._initial_deliveries.pop(handler_id, None)
            if pending is not None and not pending.done():
                pending.cancel()

        return Subscription(_close)

    async def _deliver_initial(self, handler_id: int) -> None:
        try:
            session = await self.get_current_session()
        except Exception:
            logger.exception("initial_session_delivery_failed")
            return
        finally:
            self._initial_deliveries.pop(handler_id, None)
        handler = self._handlers.get(handler_id)
        if handler is not None:
            await self._call(handler, AuthChangeEvent.INITIAL_SESSION, session)

    async def _call(
        self, handler: AuthChangeHandler, event: AuthChangeEvent, session: Session | None
    ) -> None:
        try:
            result = handler(event, session)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("auth_change_handler_failed", auth_event=event.value)

    async def _emit(self, event: AuthChangeEvent, session: Session | None) -> None:
        logger.info("auth_state_change", auth_event=event.value, authenticated=session is not None)
        for handler_id, handler in list(self._handlers.items()):
            if handler_id in self._handlers:
                await self._call(handler, event, session)

    # ------------------------------------------------------------------
    # Credential operations
    # ------------------------------------------------------------------

    def _store_session(self, session: Session) -> None:
        self._session = session
        self._slot.set(self._token_key, session.access_token)
        self._resolved.set()

    def _clear_session(self) -> None:
        self._session = None
        self._slot.delete(self._token_key)
        self._resolved.set()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            session = await self._backend.sign_in_with_password(email, password)
        except AuthError as exc:
            logger.info("sign_in_failed", code=exc.code)
            return AuthResult(error=exc)
        self._store_session(session)
        await self._emit(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(session=session)

    async def sign_up(self, email: str, password: str, name: str | None = None) -> AuthResult:
        try:
            session = await self._backend.sign_up(email, password, name)
        except AuthError as exc:
            logger.info("sign_up_failed", code=exc.code)
            return AuthResult(error=exc)
        if session is None:
            # Account created but not signed in (e.g. awaiting confirmation).
            return AuthResult()
        self._store_session(session)
        await self._emit(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(session=session)

    async def refresh_session(self) -> AuthResult:
        current = await self.get_current_session()
        if current is None or not current.refresh_token:
            return AuthResult(error=AuthError("No active session", "session_missing", 401))
        try:
            session = await self._backend.refresh_session(current.refresh_token)
        except AuthError as exc:
            logger.info("token_refresh_failed", code=exc.code)
            return AuthResult(error=exc)
        self._store_session(session)
        await self._emit(AuthChangeEvent.TOKEN_REFRESHED, session)
        return AuthResult(session=session)

    async def sign_out(self) -> None:
        session = self._session
        if session is not None:
            try:
                await self._backend.sign_out(session)
            except AuthError as exc:
                logger.warning("sign_out_backend_failed", code=exc.code, error=exc.message)
        self._clear_session()
        await self._emit(AuthChangeEvent.SIGNED_OUT, None)
