import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Tuple

from ticketbooth.api.client.booking_api import BookingApi
from ticketbooth.api.schemas.schemas import (
    GeneralAdmissionAvailability,
    SeatedAvailability,
)
from ticketbooth.application.account_service import AccountService
from ticketbooth.application.booking_workflow import BookingWorkflow
from ticketbooth.domain.exceptions import TicketboothError
from ticketbooth.infrastructure.config import API_BASE_URL, LOG_LEVEL, SESSION_FILE
from ticketbooth.infrastructure.session_store import FileSessionStore


logger = logging.getLogger(__name__)


def parse_tier_quantity(value: str) -> Tuple[int, int]:
    """Parses TIER_ID=QUANTITY."""
    tier_id, sep, quantity = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected TIER_ID=QUANTITY, got {value!r}")
    try:
        return int(tier_id), int(quantity)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected integers, got {value!r}") from None


def _print_availability(workflow: BookingWorkflow) -> None:
    occurrence = workflow.occurrence
    print(f"{occurrence.event.title} - {occurrence.date:%A, %B %d, %Y %H:%M}")
    print(f"{occurrence.venue.name} (capacity {occurrence.venue.capacity:,})")

    availability = workflow.availability
    if isinstance(availability, GeneralAdmissionAvailability):
        for tier in availability.tiers:
            status = f"{tier.remaining} left" if tier.remaining else "sold out"
            print(f"  tier {tier.id:>4}  {tier.name.value:<10} ${tier.price:>8}  {status}")
    elif isinstance(availability, SeatedAvailability):
        for section in availability.sections:
            print(f"  {section.section}")
            for row in section.rows:
                seats = " ".join(
                    f"{seat.seat_id}:{seat.label}" if seat.available else f"({seat.label})"
                    for seat in row.seats
                )
                print(f"    row {row.row}: {seats}")


async def cmd_events(api: BookingApi, args: argparse.Namespace) -> int:
    for event in await api.list_events():
        print(f"{event.title} [{event.slug}]")
        for date in event.dates:
            print(f"  #{date.id}  {date.date:%Y-%m-%d %H:%M}  {date.venue_name}  {date.seating_mode.value}")
    return 0


async def cmd_show(api: BookingApi, args: argparse.Namespace) -> int:
    workflow = BookingWorkflow(api, api.session, args.occurrence_id)
    try:
        await workflow.load()
        _print_availability(workflow)
    finally:
        workflow.close()
    return 0


async def cmd_book(api: BookingApi, args: argparse.Namespace) -> int:
    workflow = BookingWorkflow(api, api.session, args.occurrence_id)
    try:
        await workflow.load()

        for tier_id, quantity in args.tier:
            stored = workflow.set_tier_quantity(tier_id, quantity)
            if stored != quantity:
                print(f"Tier {tier_id}: quantity adjusted to {stored}")
        for seat_id in args.seat:
            if not workflow.toggle_seat(seat_id):
                print(f"Seat {seat_id} is not available")

        print(f"Total: ${workflow.total_price()} for {workflow.total_selected_count()} tickets")
        result = await workflow.submit(args.name)
    finally:
        workflow.close()

    if result is None:
        return 1
    if not result.succeeded:
        print(result.message, file=sys.stderr)
        if result.conflict is not None:
            print("Availability has been refreshed:")
            _print_availability(workflow)
        return 1

    confirmation = result.confirmation
    print(f"Order #{confirmation.order_id} confirmed, total ${confirmation.total_amount}")
    for ticket in confirmation.tickets:
        seat = f" seat {ticket.seat_label}" if ticket.seat_label else ""
        print(f"  ticket {ticket.id}: {ticket.ticket_type.value}{seat} for {ticket.to_name}")
    return 0


async def cmd_orders(api: BookingApi, args: argparse.Namespace) -> int:
    orders = await AccountService(api, api.session).my_orders()
    if not orders:
        print("No orders yet")
    for order in orders:
        print(f"#{order.id}  {order.created_at:%Y-%m-%d}  {order.customer_name}  ${order.total_amount}  ({len(order.tickets)} tickets)")
    return 0


async def cmd_order(api: BookingApi, args: argparse.Namespace) -> int:
    order = await api.get_order(args.order_id)
    print(f"Order #{order.id} for {order.customer_name}, total ${order.total_amount}")
    for ticket in order.tickets:
        seat = f" seat {ticket.seat_label}" if ticket.seat_label else ""
        print(f"  {ticket.event_title} {ticket.event_date:%Y-%m-%d %H:%M}  {ticket.ticket_type.value}{seat}")
    return 0


async def cmd_login(api: BookingApi, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    state = await AccountService(api, api.session).login(args.email, password)
    print(f"Logged in as {state.user.display_name} ({state.user.email})")
    return 0


async def cmd_signup(api: BookingApi, args: argparse.Namespace) -> int:
    password = getpass.getpass("Password: ")
    confirm = getpass.getpass("Confirm password: ")
    state = await AccountService(api, api.session).sign_up(
        args.email, password, confirm, args.first_name, args.last_name
    )
    print(f"Welcome, {state.user.display_name}")
    return 0


async def cmd_logout(api: BookingApi, args: argparse.Namespace) -> int:
    AccountService(api, api.session).logout()
    print("Logged out")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ticketbooth", description="Book event tickets")
    parser.add_argument("--api-url", default=API_BASE_URL)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("events", help="List events").set_defaults(func=cmd_events)

    show = sub.add_parser("show", help="Show availability for an event date")
    show.add_argument("occurrence_id", type=int)
    show.set_defaults(func=cmd_show)

    book = sub.add_parser("book", help="Book tickets for an event date")
    book.add_argument("occurrence_id", type=int)
    book.add_argument("--tier", type=parse_tier_quantity, action="append", default=[],
                      metavar="TIER_ID=QTY")
    book.add_argument("--seat", type=int, action="append", default=[], metavar="SEAT_ID")
    book.add_argument("--name", help="Name on tickets (defaults to the logged-in user)")
    book.set_defaults(func=cmd_book)

    sub.add_parser("orders", help="List your orders").set_defaults(func=cmd_orders)

    order = sub.add_parser("order", help="Show one order")
    order.add_argument("order_id", type=int)
    order.set_defaults(func=cmd_order)

    login = sub.add_parser("login", help="Log in")
    login.add_argument("--email", required=True)
    login.add_argument("--password")
    login.set_defaults(func=cmd_login)

    signup = sub.add_parser("signup", help="Create an account")
    signup.add_argument("--email", required=True)
    signup.add_argument("--first-name", required=True)
    signup.add_argument("--last-name", required=True)
    signup.set_defaults(func=cmd_signup)

    sub.add_parser("logout", help="Log out").set_defaults(func=cmd_logout)
    return parser


async def _run(args: argparse.Namespace) -> int:
    session = FileSessionStore(SESSION_FILE)
    async with BookingApi(base_url=args.api_url, session=session) as api:
        return await args.func(api, args)


def main(argv: List[str] | None = None) -> int:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except TicketboothError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(getattr(exc, "message", None) or str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
