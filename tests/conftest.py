import httpx
import pytest

from fake_api import (
    FakeBackend,
    create_fake_api,
    ga_availability_payload,
    ga_occurrence_payload,
    seated_availability_payload,
    seated_occurrence_payload,
    user_payload,
)
from ticketbooth.api.client.booking_api import BookingApi
from ticketbooth.api.schemas.schemas import (
    AuthState,
    AuthUser,
    EventOccurrence,
    availability_adapter,
)
from ticketbooth.infrastructure.session_store import SessionStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def identity() -> AuthUser:
    return AuthUser.model_validate(user_payload())


@pytest.fixture
def session(identity) -> SessionStore:
    return SessionStore(AuthState(token="token-42", user=identity))


@pytest.fixture
def ga_occurrence() -> EventOccurrence:
    return EventOccurrence.model_validate(ga_occurrence_payload())


@pytest.fixture
def ga_availability():
    return availability_adapter.validate_python(ga_availability_payload())


@pytest.fixture
def seated_occurrence() -> EventOccurrence:
    return EventOccurrence.model_validate(seated_occurrence_payload())


@pytest.fixture
def seated_availability():
    return availability_adapter.validate_python(seated_availability_payload())


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend.with_sample_data()


@pytest.fixture
async def client(backend, session):
    api = BookingApi(
        base_url="http://testserver",
        session=session,
        transport=httpx.ASGITransport(app=create_fake_api(backend)),
    )
    yield api
    await api.aclose()
