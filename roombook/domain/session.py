"""
SessionStore: the process-scoped authentication context.

A deployment runs in exactly one credential mode, chosen once from
configuration:

  TokenMode   the backend issues a bearer token; it is kept in memory,
              persisted through a CredentialStore and attached to every
              request as an Authorization header.
  CookieMode  the backend manages an HttpOnly session cookie; the client
              only enables credentialed requests and asks GET /auth/me
              to learn who is logged in.

Consumers receive the SessionStore by injection and call require()
before any backend call.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

from roombook.adapters.ports import GatewayError
from roombook.domain.classifier import classify_error
from roombook.domain.credential_store import CredentialStore, StoredCredential
from roombook.domain.errors import AuthenticationError, TransientError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenMode:
    token: str | None = None


@dataclass(frozen=True)
class CookieMode:
    pass


SessionMode = TokenMode | CookieMode


def mode_from_config(use_cookies: bool) -> SessionMode:
    return CookieMode() if use_cookies else TokenMode()


@dataclass(frozen=True)
class Session:
    mode: SessionMode
    identity_label: str


class SessionStore:
    """
    Holds the current Session, if any.

    Lifecycle: initialize() once at startup, then login()/logout()/
    invalidate() as the user acts, teardown() when the process is done.
    is_authenticated stays False until initialize() has resolved, so a
    protected view awaiting wait_ready() never sees a half-initialized state.
    """

    def __init__(self, gateway, mode: SessionMode, credentials: CredentialStore | None = None):
        if isinstance(mode, TokenMode) and credentials is None:
            raise ValueError("Token mode requires a CredentialStore")
        self._gateway = gateway
        self._mode = mode
        self._credentials = credentials
        self._session: Session | None = None
        self._state: Literal["idle", "initializing", "ready"] = "idle"
        self._ready = asyncio.Event()

    # -- observation ---------------------------------------------------------

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def session(self) -> Session | None:
        return self._session if self._state == "ready" else None

    @property
    def is_ready(self) -> bool:
        return self._state == "ready"

    @property
    def is_authenticated(self) -> bool:
        return self._state == "ready" and self._session is not None

    @property
    def identity_label(self) -> str | None:
        session = self.session
        return session.identity_label if session else None

    async def wait_ready(self) -> None:
        await self._ready.wait()

    def require(self) -> Session:
        """Return the live session or raise AuthenticationError."""
        if not self.is_authenticated:
            raise AuthenticationError("You must be logged in.")
        return self._session

    # -- lifecycle -----------------------------------------------------------

    async def initialize(self) -> None:
        """Restore an existing session. A missing session is not an error."""
        self._state = "initializing"
        self._ready.clear()
        self._session = None
        try:
            if isinstance(self._mode, CookieMode):
                await self._restore_cookie_session()
            else:
                self._restore_token_session()
        finally:
            self._state = "ready"
            self._ready.set()
        log.info(
            "session initialized mode=%s authenticated=%s",
            type(self._mode).__name__, self._session is not None,
        )

    async def _restore_cookie_session(self) -> None:
        self._gateway.apply_mode(self._mode)
        try:
            identity = await asyncio.to_thread(self._gateway.me)
        except GatewayError as exc:
            if exc.status in (401, 403):
                log.debug("no cookie session")
            else:
                log.warning("identity check failed status=%s: %s", exc.status, exc.reason)
            return
        self._session = Session(mode=CookieMode(), identity_label=identity.label)

    def _restore_token_session(self) -> None:
        stored = self._credentials.load()
        if stored is None:
            self._gateway.apply_mode(TokenMode())
            return
        self._session = Session(mode=TokenMode(stored.token), identity_label=stored.identity_label)
        self._gateway.apply_mode(self._session.mode)

    def teardown(self) -> None:
        """Drop in-memory state and disarm the gateway. Durable state is kept."""
        self._session = None
        self._gateway.apply_mode(None)
        self._state = "idle"
        self._ready.clear()

    # -- credential changes --------------------------------------------------

    async def login(self, username: str, password: str) -> Session:
        try:
            result = await asyncio.to_thread(self._gateway.login, username, password)
        except GatewayError as exc:
            log.info("login failed user=%s status=%s", username, exc.status)
            if exc.status is not None and 400 <= exc.status < 500:
                raise AuthenticationError(
                    "Authentication failed. Check your username and password."
                ) from exc
            raise TransientError("Could not reach the reservation service.") from exc

        if isinstance(self._mode, CookieMode):
            session = await self._cookie_login_session()
        else:
            if not result.access_token:
                raise AuthenticationError("The server did not issue an access token.")
            session = Session(mode=TokenMode(result.access_token), identity_label=username)
            self._credentials.save(StoredCredential(username, result.access_token))
            self._gateway.apply_mode(session.mode)

        self._session = session
        self._state = "ready"
        self._ready.set()
        log.info("logged in as %s", session.identity_label)
        return session

    async def _cookie_login_session(self) -> Session:
        self._gateway.apply_mode(self._mode)
        try:
            identity = await asyncio.to_thread(self._gateway.me)
        except GatewayError as exc:
            raise classify_error(exc).as_exception() from exc
        return Session(mode=CookieMode(), identity_label=identity.label)

    async def logout(self) -> None:
        """
        Clear the session locally first, then, in cookie mode, ask the
        backend to drop its cookie. A failed remote logout is only logged.
        """
        label = self.identity_label
        self._clear()
        if isinstance(self._mode, CookieMode):
            try:
                await asyncio.to_thread(self._gateway.logout)
            except GatewayError as exc:
                log.warning("remote logout failed status=%s, ignoring", exc.status)
        log.info("logged out %s", label or "")

    def invalidate(self) -> None:
        """Drop the session after the backend rejected its credential."""
        if self._session is not None:
            log.info("session invalidated for %s", self._session.identity_label)
        self._clear()

    def _clear(self) -> None:
        self._session = None
        if isinstance(self._mode, TokenMode):
            self._credentials.clear()
            self._gateway.apply_mode(TokenMode())
