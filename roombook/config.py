"""
Client configuration and adapter factories.

Everything is read from environment variables in one place:

    ROOMBOOK_API_BASE_URL          backend root (default: http://localhost:8000)
    ROOMBOOK_API_PREFIX            prefix of resource routes (default: /api)
    ROOMBOOK_USE_HTTPONLY_COOKIES  "true" for cookie sessions (default: false)
    ROOMBOOK_PAGE_SIZE             reservations per page (default: 10)
    ROOMBOOK_REQUEST_TIMEOUT       seconds per request (default: 10)
    ROOMBOOK_DB_PATH               token store path (default: data/roombook.db)
    ROOMBOOK_BACKEND               "http" or "simulator" (default: http)
    ROOMBOOK_TIMEZONE              zone for naive input times (default: UTC)
"""

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from roombook.adapters.ports import ReservationGateway
from roombook.domain.credential_store import CredentialStore
from roombook.domain.session import SessionMode, mode_from_config


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClientConfig:
    base_url: str = "http://localhost:8000"
    api_prefix: str = "/api"
    use_cookies: bool = False
    page_size: int = 10
    request_timeout: float = 10
    db_path: str = "data/roombook.db"
    backend: str = "http"
    timezone: str = "UTC"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            base_url=os.environ.get("ROOMBOOK_API_BASE_URL", cls.base_url),
            api_prefix=os.environ.get("ROOMBOOK_API_PREFIX", cls.api_prefix),
            use_cookies=_flag(os.environ.get("ROOMBOOK_USE_HTTPONLY_COOKIES", "false")),
            page_size=int(os.environ.get("ROOMBOOK_PAGE_SIZE", "10")),
            request_timeout=float(os.environ.get("ROOMBOOK_REQUEST_TIMEOUT", "10")),
            db_path=os.environ.get("ROOMBOOK_DB_PATH", cls.db_path),
            backend=os.environ.get("ROOMBOOK_BACKEND", cls.backend),
            timezone=os.environ.get("ROOMBOOK_TIMEZONE", cls.timezone),
        )

    @property
    def session_mode(self) -> SessionMode:
        return mode_from_config(self.use_cookies)

    @property
    def local_tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def create_gateway(config: ClientConfig) -> ReservationGateway:
    """Factory: real HTTP client or in-memory simulator backend."""
    if config.backend == "http":
        from roombook.adapters.reservation_api_client import ReservationApiClient

        return ReservationApiClient(
            base_url=config.base_url,
            api_prefix=config.api_prefix,
            timeout=config.request_timeout,
        )

    if config.backend == "simulator":
        from roombook.adapters.simulator_backend import SimulatorReservationGateway

        return SimulatorReservationGateway(cookie_mode=config.use_cookies)

    raise ValueError(f"Unknown backend: {config.backend!r}")


def create_credential_store(config: ClientConfig) -> CredentialStore | None:
    """Token mode persists to SQLite; cookie mode persists nothing."""
    if config.use_cookies:
        return None

    from roombook.adapters.sqlite_credential_store import SqliteCredentialStore

    directory = os.path.dirname(config.db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return SqliteCredentialStore(db_path=config.db_path)
