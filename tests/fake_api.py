"""
In-memory stand-in for the booking API, served over ASGI to the
real httpx client in integration tests.
"""

import copy
from dataclasses import dataclass, field
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse


GA_OCCURRENCE_ID = 1
SEATED_OCCURRENCE_ID = 2


def ga_occurrence_payload() -> dict:
    return {
        "id": GA_OCCURRENCE_ID,
        "event": {"id": 10, "title": "Open Air Night", "description": "Festival stage"},
        "date": "2026-11-20T19:30:00Z",
        "venue": {"id": 5, "name": "Riverside Park", "capacity": 5000},
        "seatingMode": "GA",
    }


def ga_availability_payload() -> dict:
    return {
        "seatingMode": "GA",
        "tiers": [
            {"id": 1, "name": "VIP", "price": 50, "remaining": 3},
            {"id": 2, "name": "GA", "price": 20, "remaining": 100},
        ],
    }


def seated_occurrence_payload() -> dict:
    return {
        "id": SEATED_OCCURRENCE_ID,
        "event": {"id": 11, "title": "Chamber Orchestra", "description": "Strings only"},
        "date": "2026-12-02T20:00:00Z",
        "venue": {"id": 6, "name": "Concert Hall", "capacity": 120},
        "seatingMode": "SEATED",
    }


def seated_availability_payload() -> dict:
    return {
        "seatingMode": "SEATED",
        "sections": [
            {
                "section": "Orchestra",
                "rows": [
                    {
                        "row": "A",
                        "seats": [
                            {"seatId": 101, "label": "A1", "ticketType": "VIP",
                             "ticketTypeId": 7, "price": 80, "available": True},
                            {"seatId": 102, "label": "A2", "ticketType": "VIP",
                             "ticketTypeId": 7, "price": 80, "available": True},
                            {"seatId": 103, "label": "A3", "ticketType": "VIP",
                             "ticketTypeId": 7, "price": 80, "available": False},
                        ],
                    },
                    {
                        "row": "B",
                        "seats": [
                            {"seatId": 201, "label": "B1", "ticketType": "FRONT_ROW",
                             "price": 45.5, "available": True},
                        ],
                    },
                ],
            }
        ],
    }


def user_payload(user_id: int = 42) -> dict:
    return {
        "id": user_id,
        "username": "ada",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:00:00Z",
    }


@dataclass
class FakeBackend:
    occurrences: dict = field(default_factory=dict)
    availability: dict = field(default_factory=dict)
    users: dict = field(default_factory=dict)
    orders: dict = field(default_factory=dict)
    bookings: list = field(default_factory=list)
    availability_status: int = 200
    next_order_id: int = 500

    @classmethod
    def with_sample_data(cls) -> "FakeBackend":
        return cls(
            occurrences={
                GA_OCCURRENCE_ID: ga_occurrence_payload(),
                SEATED_OCCURRENCE_ID: seated_occurrence_payload(),
            },
            availability={
                GA_OCCURRENCE_ID: ga_availability_payload(),
                SEATED_OCCURRENCE_ID: seated_availability_payload(),
            },
            users={
                "ada@example.com": {"password": "secret", "user": user_payload()},
            },
        )

    def seats(self, occurrence_id: int) -> dict:
        return {
            seat["seatId"]: seat
            for section in self.availability[occurrence_id]["sections"]
            for row in section["rows"]
            for seat in row["seats"]
        }

    def take_seat(self, occurrence_id: int, seat_id: int) -> None:
        self.seats(occurrence_id)[seat_id]["available"] = False

    def set_remaining(self, occurrence_id: int, tier_id: int, remaining: int) -> None:
        for tier in self.availability[occurrence_id]["tiers"]:
            if tier["id"] == tier_id:
                tier["remaining"] = remaining


def _conflict(reason: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": reason, "message": message})


def create_fake_api(backend: FakeBackend) -> FastAPI:
    app = FastAPI(title="Fake Ticketbooth API")

    @app.get("/api/events")
    def list_events():
        events = []
        for occurrence in backend.occurrences.values():
            events.append({
                "id": occurrence["event"]["id"],
                "slug": occurrence["event"]["title"].lower().replace(" ", "-"),
                "title": occurrence["event"]["title"],
                "description": occurrence["event"]["description"],
                "dates": [{
                    "id": occurrence["id"],
                    "date": occurrence["date"],
                    "venueName": occurrence["venue"]["name"],
                    "seatingMode": occurrence["seatingMode"],
                }],
            })
        return events

    @app.get("/api/event-dates/{occurrence_id}")
    def get_event_date(occurrence_id: int):
        if occurrence_id not in backend.occurrences:
            raise HTTPException(status_code=404, detail="Event date not found")
        return backend.occurrences[occurrence_id]

    @app.get("/api/event-dates/{occurrence_id}/availability")
    def get_availability(occurrence_id: int):
        if occurrence_id not in backend.availability:
            raise HTTPException(status_code=404, detail="Event date not found")
        if backend.availability_status != 200:
            return JSONResponse(
                status_code=backend.availability_status,
                content={"message": "Availability service unavailable"},
            )
        return copy.deepcopy(backend.availability[occurrence_id])

    @app.post("/api/bookings")
    async def create_booking(request: Request):
        body = await request.json()
        backend.bookings.append(body)
        occurrence_id = body["eventDateId"]
        tickets = []
        total = Decimal(0)

        if "tiers" in body:
            tiers = {t["id"]: t for t in backend.availability[occurrence_id]["tiers"]}
            for line in body["tiers"]:
                tier = tiers[line["ticketTypeId"]]
                if tier["remaining"] < line["quantity"]:
                    return _conflict(
                        "INSUFFICIENT_INVENTORY",
                        f"Only {tier['remaining']} {tier['name']} tickets remaining",
                    )
            for line in body["tiers"]:
                tier = tiers[line["ticketTypeId"]]
                tier["remaining"] -= line["quantity"]
                total += Decimal(str(tier["price"])) * line["quantity"]
                for _ in range(line["quantity"]):
                    tickets.append({"ticketType": tier["name"], "seatLabel": None})
        else:
            seats = backend.seats(occurrence_id)
            for line in body["seats"]:
                if not seats[line["seatId"]]["available"]:
                    return _conflict(
                        "SEAT_ALREADY_TAKEN",
                        f"Seat {seats[line['seatId']]['label']} is already taken",
                    )
            for line in body["seats"]:
                seat = seats[line["seatId"]]
                seat["available"] = False
                total += Decimal(str(seat["price"]))
                tickets.append({"ticketType": seat["ticketType"], "seatLabel": seat["label"]})

        order_id = backend.next_order_id
        backend.next_order_id += 1
        issued = [
            {"id": order_id * 10 + i, "toName": body["customerName"], **ticket}
            for i, ticket in enumerate(tickets)
        ]
        occurrence = backend.occurrences[occurrence_id]
        backend.orders[order_id] = {
            "id": order_id,
            "userId": body["userId"],
            "createdAt": "2026-10-19T12:00:00Z",
            "customerName": body["customerName"],
            "totalAmount": float(total),
            "tickets": [
                {
                    "id": ticket["id"],
                    "eventTitle": occurrence["event"]["title"],
                    "eventDate": occurrence["date"],
                    "ticketType": ticket["ticketType"],
                    "seatLabel": ticket["seatLabel"],
                }
                for ticket in issued
            ],
        }
        return {"orderId": order_id, "totalAmount": float(total), "tickets": issued}

    @app.get("/api/orders/{order_id}")
    def get_order(order_id: int):
        if order_id not in backend.orders:
            raise HTTPException(status_code=404, detail="Order not found")
        return backend.orders[order_id]

    @app.get("/api/orders")
    def list_orders(userId: int):
        return [o for o in backend.orders.values() if o["userId"] == userId]

    @app.post("/api/login")
    async def login(request: Request):
        body = await request.json()
        account = backend.users.get(body.get("email"))
        if account is None or account["password"] != body.get("password"):
            return JSONResponse(status_code=401, content={"message": "Invalid email or password"})
        return {"token": f"token-{account['user']['id']}", "user": account["user"]}

    @app.post("/api/signup")
    async def signup(request: Request):
        body = await request.json()
        if body["email"] in backend.users:
            return JSONResponse(status_code=400, content={"message": "Email already registered"})
        user = user_payload(user_id=len(backend.users) + 100)
        user.update(
            email=body["email"],
            username=body["email"].split("@")[0],
            firstName=body["firstName"],
            lastName=body["lastName"],
        )
        backend.users[body["email"]] = {"password": body["password"], "user": user}
        return {"token": f"token-{user['id']}", "user": user}

    return app
