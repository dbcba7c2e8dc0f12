# ticketbooth/infrastructure/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# -----------------------------
# Booking API
# -----------------------------
API_BASE_URL = os.getenv("TICKETBOOTH_API_URL", "http://localhost:3000")

HTTP_TIMEOUT_SECONDS = float(os.getenv("TICKETBOOTH_HTTP_TIMEOUT", "10"))


# -----------------------------
# Booking defaults
# -----------------------------
# Opaque token forwarded to the API; payments are handled server-side.
DEFAULT_PAYMENT_SOURCE = os.getenv("TICKETBOOTH_PAYMENT_SOURCE", "test-card-4242")


# -----------------------------
# Session storage
# -----------------------------
SESSION_FILE = Path(
    os.getenv(
        "TICKETBOOTH_SESSION_FILE",
        str(Path.home() / ".ticketbooth" / "auth.json"),
    )
).expanduser()


LOG_LEVEL = os.getenv("TICKETBOOTH_LOG_LEVEL", "INFO").upper()
