"""
Shared fixtures: a seeded simulator backend and a logged-in session.

No network, no credentials, no database files.
"""

import pytest
import pytest_asyncio

from roombook.adapters.memory_credential_store import InMemoryCredentialStore
from roombook.adapters.simulator_backend import SimulatorReservationGateway
from roombook.domain.refresh import RefreshCounter
from roombook.domain.session import SessionStore, TokenMode

USERNAME = "alice"
PASSWORD = "secret"


@pytest.fixture
def seeded():
    gw = SimulatorReservationGateway()
    gw.inject_user(USERNAME, PASSWORD, full_name="Alice Martin")
    sede = gw.inject_location("Sede")
    filial = gw.inject_location("Filial 1")
    rooms = {
        "Sala 101": gw.inject_room("Sala 101", sede.id, capacity=8),
        "Sala 102": gw.inject_room("Sala 102", sede.id),
        "Sala 10": gw.inject_room("Sala 10", filial.id),
    }
    return gw, rooms


@pytest.fixture
def backend(seeded):
    return seeded[0]


@pytest.fixture
def rooms(seeded):
    return seeded[1]


@pytest.fixture
def credentials():
    return InMemoryCredentialStore()


@pytest.fixture
def refresh():
    return RefreshCounter()


@pytest_asyncio.fixture
async def session(backend, credentials):
    store = SessionStore(backend, TokenMode(), credentials)
    await store.initialize()
    await store.login(USERNAME, PASSWORD)
    return store
