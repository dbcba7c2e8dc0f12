import logging
from typing import List

from ticketbooth.api.client.booking_api import BookingApi
from ticketbooth.api.schemas.schemas import AuthState, LoginRequest, Order, SignUpRequest
from ticketbooth.domain.exceptions import PasswordMismatchError, UnauthenticatedError
from ticketbooth.infrastructure.session_store import SessionStore


logger = logging.getLogger(__name__)


class AccountService:
    """Login, sign-up and order history for the current session."""

    def __init__(self, api: BookingApi, session: SessionStore):
        self.api = api
        self.session = session

    async def login(self, email: str, password: str) -> AuthState:
        state = await self.api.login(LoginRequest(email=email, password=password))
        self.session.persist(state)
        logger.info("Logged in as user %s", state.user.id)
        return state

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: str,
        first_name: str,
        last_name: str,
    ) -> AuthState:
        if password != confirm_password:
            raise PasswordMismatchError()

        state = await self.api.sign_up(
            SignUpRequest(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
            )
        )
        self.session.persist(state)
        logger.info("Signed up user %s", state.user.id)
        return state

    def logout(self) -> None:
        self.session.clear()

    async def my_orders(self) -> List[Order]:
        identity = self.session.current_identity()
        if identity is None:
            raise UnauthenticatedError("Please log in to view your orders")
        return await self.api.list_orders(identity.id)
