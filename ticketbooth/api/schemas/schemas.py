from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, ClassVar, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable model serialized with the API's camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SeatingMode(str, Enum):
    GENERAL_ADMISSION = "GA"
    SEATED = "SEATED"


class TierName(str, Enum):
    VIP = "VIP"
    FRONT_ROW = "FRONT_ROW"
    GA = "GA"


# -----------------------------
# Events and occurrences
# -----------------------------
class EventDateSummary(WireModel):
    id: int
    date: datetime
    venue_name: str
    seating_mode: SeatingMode


class EventSummary(WireModel):
    id: int
    slug: str
    title: str
    description: str
    dates: tuple[EventDateSummary, ...] = ()


class EventInfo(WireModel):
    id: int
    title: str
    description: str


class Venue(WireModel):
    id: int
    name: str
    capacity: int = Field(ge=0)


class EventOccurrence(WireModel):
    id: int
    event: EventInfo
    date: datetime
    venue: Venue
    seating_mode: SeatingMode


# -----------------------------
# Availability
# -----------------------------
class Tier(WireModel):
    id: int
    name: TierName
    price: Decimal = Field(ge=0)
    remaining: int = Field(ge=0)


class Seat(WireModel):
    seat_id: int
    label: str
    ticket_type: TierName
    ticket_type_id: int | None = None
    price: Decimal = Field(ge=0)
    available: bool


class SeatRow(WireModel):
    row: str
    seats: tuple[Seat, ...] = ()


class SeatSection(WireModel):
    section: str
    rows: tuple[SeatRow, ...] = ()


class GeneralAdmissionAvailability(WireModel):
    seating_mode: Literal["GA"] = "GA"
    tiers: tuple[Tier, ...] = ()

    def find_tier(self, tier_id: int) -> Tier | None:
        for tier in self.tiers:
            if tier.id == tier_id:
                return tier
        return None


class SeatedAvailability(WireModel):
    seating_mode: Literal["SEATED"] = "SEATED"
    sections: tuple[SeatSection, ...] = ()

    def iter_seats(self) -> Iterator[Seat]:
        for section in self.sections:
            for row in section.rows:
                yield from row.seats

    def find_seat(self, seat_id: int) -> Seat | None:
        for seat in self.iter_seats():
            if seat.seat_id == seat_id:
                return seat
        return None


AvailabilitySnapshot = Annotated[
    Union[GeneralAdmissionAvailability, SeatedAvailability],
    Field(discriminator="seating_mode"),
]

availability_adapter: TypeAdapter = TypeAdapter(AvailabilitySnapshot)


# -----------------------------
# Booking requests
# -----------------------------
class TierLine(WireModel):
    ticket_type_id: int
    quantity: int = Field(gt=0)


class SeatLine(WireModel):
    seat_id: int
    ticket_type_id: int


class _BookingRequestBase(WireModel):
    event_date_id: int
    customer_name: str = Field(min_length=1)
    user_id: int
    payment_source: str


class GeneralAdmissionBookingRequest(_BookingRequestBase):
    seating_mode: ClassVar[SeatingMode] = SeatingMode.GENERAL_ADMISSION

    tiers: tuple[TierLine, ...] = Field(min_length=1)


class SeatedBookingRequest(_BookingRequestBase):
    seating_mode: ClassVar[SeatingMode] = SeatingMode.SEATED

    seats: tuple[SeatLine, ...] = Field(min_length=1)


BookingRequest = Union[GeneralAdmissionBookingRequest, SeatedBookingRequest]


# -----------------------------
# Booking outcomes and orders
# -----------------------------
class IssuedTicket(WireModel):
    id: int
    ticket_type: TierName
    seat_label: str | None = None
    to_name: str


class BookingConfirmation(WireModel):
    order_id: int
    total_amount: Decimal
    tickets: tuple[IssuedTicket, ...] = ()


class BookingErrorPayload(WireModel):
    error: str
    message: str


class OrderTicket(WireModel):
    id: int
    event_title: str
    event_date: datetime
    ticket_type: TierName
    seat_label: str | None = None


class Order(WireModel):
    id: int
    created_at: datetime
    customer_name: str
    total_amount: Decimal
    tickets: tuple[OrderTicket, ...] = ()


# -----------------------------
# Authentication
# -----------------------------
class AuthUser(WireModel):
    id: int
    username: str
    first_name: str
    last_name: str
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AuthState(WireModel):
    token: str
    user: AuthUser


class LoginRequest(WireModel):
    email: str
    password: str


class SignUpRequest(WireModel):
    email: str
    password: str
    first_name: str
    last_name: str
