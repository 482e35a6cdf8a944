"""Shared test helpers."""

import hashlib
import hmac
from datetime import UTC, datetime, timedelta

ADMIN_EMAIL = "admin@test.example"
ADMIN_PASSWORD = "correct-horse-battery"
GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_SECRET = "test_gateway_secret"
START = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def sign(order_id: str, payment_id: str, secret: str = GATEWAY_SECRET) -> str:
    return hmac.new(
        secret.encode("utf-8"), f"{order_id}|{payment_id}".encode("utf-8"), hashlib.sha256
    ).hexdigest()


def school_payload(**overrides: object) -> dict:
    payload = {
        "name": "Green Valley School",
        "email": "office@greenvalley.example",
        "phone": "9876543210",
        "address": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
        "principalName": "R. Sharma",
        "studentCount": 500,
    }
    payload.update(overrides)
    return payload
