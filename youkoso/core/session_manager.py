"""
Authenticated Session Management
================================

The SessionManager turns the stored My Studio credential into a live session
and hands callers a single capability: ``execute(request)``.

State machine:
--------------
    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED -> (EXPIRED | INVALIDATED)
                                                       -> AUTHENTICATING ...

Key Behaviours:
---------------
- Coalescing: concurrent callers that need a session while one is being
  obtained wait on the same in-flight attempt instead of logging in again.
- Retry Policy: ``AuthUnreachable`` is retried with exponential backoff up to
  a fixed number of attempts; ``AuthRejected`` is surfaced immediately.
- Reactive Expiry: a 401 on a presumed-valid session triggers exactly one
  re-authentication and retry.
- Revocation: ``invalidate()`` (wired to credential changes) drops the session
  and discards any attempt still running with the old credential.

The manager never stores the credential. It borrows it from the provider for
the duration of one authentication call.

Author: Youkoso Project
"""

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, List, Optional

from .config import (
    AUTH_RETRY_BACKOFF_FACTOR,
    AUTH_RETRY_BASE_DELAY_SECONDS,
    MAX_AUTH_ATTEMPTS,
)
from .credentials import Credential
from .errors import ApiError, AuthRejected, AuthUnreachable
from .session import ApiRequest, Session, SessionState

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Owner of the single live My Studio session.

    Args:
        transport: Object with ``authenticate(credential) -> Session``,
            ``call(session, request) -> payload`` and ``close()``
            (normally a MyStudioClient).
        credential_provider: Callable returning the current Credential or None
            (normally ``CredentialVault.get``).
        max_attempts: Total authentication attempts when unreachable.
        base_delay: Delay before the second attempt, in seconds.
        backoff_factor: Multiplier applied to the delay after each attempt.
        sleep: Callable used to wait between attempts; defaults to an
            interruptible wait that ``close()`` cancels.
        clock: Callable returning epoch seconds, used for expiry checks.
    """

    def __init__(
        self,
        transport,
        credential_provider: Callable[[], Optional[Credential]],
        max_attempts: int = MAX_AUTH_ATTEMPTS,
        base_delay: float = AUTH_RETRY_BASE_DELAY_SECONDS,
        backoff_factor: float = AUTH_RETRY_BACKOFF_FACTOR,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._transport = transport
        self._credentials = credential_provider
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._backoff_factor = backoff_factor
        self._closing = threading.Event()
        self._sleep = sleep or self._interruptible_sleep
        self._clock = clock

        self._lock = threading.Lock()
        self._state = SessionState.UNAUTHENTICATED
        self._session: Optional[Session] = None
        self._inflight: Optional[Future] = None
        self._generation = 0
        self._waiting = 0
        self._listeners: List[Callable[[SessionState], Any]] = []

    # ------------------------------------------------------------------------
    # CONTEXT MANAGER
    # ------------------------------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------------
    # OBSERVATION
    # ------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    @property
    def waiting_callers(self) -> int:
        """Number of callers currently waiting on an in-flight authentication."""
        return self._waiting

    def add_state_listener(self, callback: Callable[[SessionState], Any]) -> None:
        """Register ``callback(state)``; it runs on the thread that caused the change."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------------

    def execute(self, request: ApiRequest) -> Any:
        """
        Perform an authenticated call.

        Authenticates first if needed. A 401-class answer triggers one
        re-authentication and one retry; a second 401 is surfaced.

        Raises:
            AuthRejected: The credential is missing or was refused.
            AuthUnreachable: The service could not be reached after retries.
            ApiError: The call itself failed.
        """
        session = self.ensure_session()
        try:
            return self._transport.call(session, request)
        except ApiError as e:
            if not e.is_unauthorized:
                raise
            logger.warning(f"Session rejected by {e.url or 'server'}; re-authenticating once")
            self._expire(session)

        session = self.ensure_session()
        try:
            return self._transport.call(session, request)
        except ApiError as e:
            if e.is_unauthorized:
                self._expire(session)
            raise

    def ensure_session(self) -> Session:
        """
        Return a valid session, authenticating (or joining an in-flight
        authentication) when necessary.
        """
        events: List[SessionState] = []
        with self._lock:
            session = self._session
            if session is not None:
                if not self._is_expired(session):
                    return session
                logger.info("Session reached its declared expiry")
                self._drop_session()
                self._set_state(SessionState.EXPIRED, events)

            if self._inflight is not None:
                future = self._inflight
                leader = False
                self._waiting += 1
            else:
                future = Future()
                self._inflight = future
                leader = True
                generation = self._generation
                credential = self._credentials()
                self._set_state(SessionState.AUTHENTICATING, events)
        self._emit(events)

        if not leader:
            logger.debug("Joining in-flight authentication")
            try:
                return future.result()
            finally:
                with self._lock:
                    self._waiting -= 1

        return self._lead(future, generation, credential)

    def test_connection(self) -> bool:
        """Authenticate on demand; errors propagate so the UI can show them."""
        self.ensure_session()
        return True

    def invalidate(self, reason: str = "credentials changed") -> None:
        """
        Drop the current session and any authentication still running.

        Called when the stored credential changes or is cleared, and on logout.
        """
        events: List[SessionState] = []
        with self._lock:
            self._generation += 1
            self._drop_session()
            self._inflight = None
            self._set_state(SessionState.INVALIDATED, events)
        logger.info(f"Session invalidated: {reason}")
        self._emit(events)

    def logout(self) -> None:
        self.invalidate("logout")

    def close(self) -> None:
        """Abandon pending retries, drop the session and release connections."""
        self._closing.set()
        self.invalidate("shutdown")
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    # ------------------------------------------------------------------------
    # AUTHENTICATION
    # ------------------------------------------------------------------------

    def _lead(self, future: Future, generation: int, credential: Optional[Credential]) -> Session:
        """
        Run one authentication on behalf of every waiting caller.

        The outcome is also delivered to every caller waiting on ``future``.
        When the credential changed while the attempt was running, the result
        is thrown away and a fresh authentication is made instead.
        """
        try:
            if credential is None:
                raise AuthRejected("No My Studio credentials configured")
            session = self._authenticate_with_retry(credential, generation)
        except Exception as e:
            events: List[SessionState] = []
            with self._lock:
                stale = generation != self._generation
                if self._inflight is future:
                    self._inflight = None
                if not stale:
                    self._set_state(SessionState.UNAUTHENTICATED, events)
            self._emit(events)
            if stale:
                logger.info("Discarding failed authentication for superseded credentials")
                return self._forward_fresh(future)
            future.set_exception(e)
            raise

        events = []
        with self._lock:
            stale = generation != self._generation
            if self._inflight is future:
                self._inflight = None
            if not stale:
                self._session = session
                self._set_state(SessionState.AUTHENTICATED, events)
        self._emit(events)

        if stale:
            logger.info("Discarding session obtained with superseded credentials")
            session.token.wipe()
            return self._forward_fresh(future)

        logger.info("Authenticated with My Studio")
        future.set_result(session)
        return session

    def _forward_fresh(self, future: Future) -> Session:
        """Authenticate again and pass the outcome to callers of a stale attempt."""
        try:
            session = self.ensure_session()
        except Exception as e:
            future.set_exception(e)
            raise
        future.set_result(session)
        return session

    def _authenticate_with_retry(self, credential: Credential, generation: int) -> Session:
        delay = self._base_delay
        for attempt in range(1, self._max_attempts + 1):
            if self._closing.is_set():
                raise AuthUnreachable("Authentication abandoned: session manager closed")
            if generation != self._generation:
                raise AuthUnreachable("Authentication abandoned: credentials changed")
            try:
                logger.debug(f"Authentication attempt {attempt}/{self._max_attempts}")
                return self._transport.authenticate(credential)
            except AuthUnreachable as e:
                if attempt >= self._max_attempts:
                    logger.error(f"My Studio unreachable after {attempt} attempts: {e}")
                    raise
                logger.warning(f"My Studio unreachable ({e}); retrying in {delay:.2f}s")
                self._sleep(delay)
                delay *= self._backoff_factor
            except AuthRejected as e:
                logger.error(f"My Studio rejected the credentials: {e}")
                raise

    def _interruptible_sleep(self, seconds: float) -> None:
        self._closing.wait(seconds)

    # ------------------------------------------------------------------------
    # STATE HELPERS
    # ------------------------------------------------------------------------

    def _is_expired(self, session: Session) -> bool:
        now = self._clock() if self._clock else None
        return session.is_expired(now)

    def _expire(self, session: Session) -> None:
        events: List[SessionState] = []
        with self._lock:
            if self._session is session:
                self._drop_session()
                self._set_state(SessionState.EXPIRED, events)
        self._emit(events)

    def _drop_session(self) -> None:
        # Caller holds self._lock
        if self._session is not None:
            self._session.token.wipe()
            self._session = None

    def _set_state(self, state: SessionState, events: List[SessionState]) -> None:
        # Caller holds self._lock; listeners run later via _emit
        if state != self._state:
            logger.debug(f"Session state: {self._state.value} -> {state.value}")
            self._state = state
            events.append(state)

    def _emit(self, events: List[SessionState]) -> None:
        for state in events:
            for callback in list(self._listeners):
                try:
                    callback(state)
                except Exception as e:
                    logger.error(f"Session state listener failed: {e}", exc_info=True)
