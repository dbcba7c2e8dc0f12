# ticketbooth/api/client/booking_api.py

import logging
from typing import Any, List

import httpx
from pydantic import TypeAdapter, ValidationError

from ticketbooth.api.schemas.schemas import (
    AuthState,
    AvailabilitySnapshot,
    BookingConfirmation,
    BookingRequest,
    EventOccurrence,
    EventSummary,
    LoginRequest,
    Order,
    SignUpRequest,
    availability_adapter,
)
from ticketbooth.domain.exceptions import ApiResponseError
from ticketbooth.infrastructure.config import API_BASE_URL, HTTP_TIMEOUT_SECONDS
from ticketbooth.infrastructure.session_store import SessionStore


logger = logging.getLogger(__name__)

_events_adapter = TypeAdapter(List[EventSummary])
_orders_adapter = TypeAdapter(List[Order])
_occurrence_adapter = TypeAdapter(EventOccurrence)
_confirmation_adapter = TypeAdapter(BookingConfirmation)
_order_adapter = TypeAdapter(Order)
_auth_adapter = TypeAdapter(AuthState)


class BookingApi:
    """HTTP collaborator for the Ticketbooth booking API."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: SessionStore | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BookingApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -----------------------------
    # Catalogue
    # -----------------------------
    async def list_events(self) -> List[EventSummary]:
        data = await self._request("GET", "/api/events")
        return self._parse(_events_adapter, data)

    async def get_occurrence(self, occurrence_id: int) -> EventOccurrence:
        data = await self._request("GET", f"/api/event-dates/{occurrence_id}")
        return self._parse(_occurrence_adapter, data)

    async def get_availability(self, occurrence_id: int) -> AvailabilitySnapshot:
        data = await self._request(
            "GET", f"/api/event-dates/{occurrence_id}/availability"
        )
        return self._parse(availability_adapter, data)

    # -----------------------------
    # Bookings and orders
    # -----------------------------
    async def submit_booking(self, request: BookingRequest) -> BookingConfirmation:
        data = await self._request("POST", "/api/bookings", json=request.to_wire())
        return self._parse(_confirmation_adapter, data)

    async def get_order(self, order_id: int) -> Order:
        data = await self._request("GET", f"/api/orders/{order_id}")
        return self._parse(_order_adapter, data)

    async def list_orders(self, user_id: int) -> List[Order]:
        data = await self._request("GET", "/api/orders", params={"userId": user_id})
        return self._parse(_orders_adapter, data)

    # -----------------------------
    # Authentication
    # -----------------------------
    async def login(self, request: LoginRequest) -> AuthState:
        data = await self._request("POST", "/api/login", json=request.to_wire())
        return self._parse(_auth_adapter, data)

    async def sign_up(self, request: SignUpRequest) -> AuthState:
        data = await self._request("POST", "/api/signup", json=request.to_wire())
        return self._parse(_auth_adapter, data)

    # -----------------------------
    # Plumbing
    # -----------------------------
    def _auth_headers(self) -> dict:
        token = self.session.token() if self.session else None
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(
                method,
                path,
                headers=self._auth_headers(),
                **kwargs,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiResponseError(f"Network error: {exc}") from exc

        if response.is_error:
            payload = _json_or_none(response)
            message = _error_message(response, payload)
            logger.info(
                "%s %s returned %s: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise ApiResponseError(
                message,
                status_code=response.status_code,
                payload=payload,
            )

        try:
            return response.json()
        except ValueError as exc:
            logger.warning(
                "%s %s returned a non-JSON body (%s)",
                method,
                path,
                response.headers.get("content-type"),
            )
            raise ApiResponseError(
                "Unexpected response from server",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse(adapter: TypeAdapter, data: Any) -> Any:
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise ApiResponseError(f"Unexpected response from server: {exc}") from exc


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response, payload: Any) -> str:
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return f"Request failed with status code {response.status_code}"
