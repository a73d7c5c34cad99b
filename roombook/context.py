"""
Wires the client components together.

One ClientContext per process: it owns the SessionStore and the reservations
refresh counter, and hands the same instances to every controller it creates.
"""

import logging
from dataclasses import dataclass, field

from roombook.account import AccountService
from roombook.adapters.ports import ReservationGateway
from roombook.catalog_admin import CatalogAdmin
from roombook.communication.ports import Confirmer
from roombook.config import ClientConfig, create_credential_store, create_gateway
from roombook.domain.catalog import CatalogCache
from roombook.domain.credential_store import CredentialStore
from roombook.domain.refresh import RefreshCounter
from roombook.domain.session import SessionStore
from roombook.reservation_form import ReservationFormController
from roombook.reservation_list import ReservationListController

log = logging.getLogger(__name__)


@dataclass
class ClientContext:
    config: ClientConfig
    gateway: ReservationGateway
    session: SessionStore
    confirmer: Confirmer
    catalog: CatalogCache | None = None
    reservations_changed: RefreshCounter = field(default_factory=RefreshCounter)

    def __post_init__(self):
        if self.catalog is None:
            self.catalog = CatalogCache(self.gateway)

    def reservation_form(self) -> ReservationFormController:
        return ReservationFormController(
            self.gateway,
            self.catalog,
            self.session,
            self.reservations_changed,
            local_tz=self.config.local_tz,
        )

    def reservation_list(self) -> ReservationListController:
        return ReservationListController(
            self.gateway,
            self.session,
            self.confirmer,
            page_size=self.config.page_size,
            seen_refresh=self.reservations_changed.value,
        )

    def catalog_admin(self) -> CatalogAdmin:
        return CatalogAdmin(self.gateway, self.catalog, self.session, self.confirmer)

    def account(self) -> AccountService:
        return AccountService(self.gateway, self.session)

    async def start(self) -> None:
        await self.session.initialize()

    def teardown(self) -> None:
        self.session.teardown()


def build_context(
    config: ClientConfig,
    confirmer: Confirmer,
    gateway: ReservationGateway | None = None,
    credentials: CredentialStore | None = None,
) -> ClientContext:
    gateway = gateway or create_gateway(config)
    if credentials is None:
        credentials = create_credential_store(config)
    session = SessionStore(gateway, config.session_mode, credentials)
    log.debug("context built backend=%s mode=%s", config.backend, type(config.session_mode).__name__)
    return ClientContext(config=config, gateway=gateway, session=session, confirmer=confirmer)
