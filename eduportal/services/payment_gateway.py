"""Razorpay payment gateway integration."""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime

from eduportal.config import PLACEHOLDER_KEY_SECRET, Settings
from eduportal.errors import GatewayNotConfiguredError
from eduportal.services.common import epoch_millis

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """Order ids and checkout signature checks for Razorpay."""

    def __init__(self, key_id: str, key_secret: str, strict_mode: bool = True) -> None:
        self._key_id = key_id
        self._key_secret = key_secret
        self.strict_mode = strict_mode

    @classmethod
    def from_settings(cls, settings: Settings) -> "RazorpayGateway":
        return cls(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            strict_mode=settings.payment_strict_mode,
        )

    @property
    def public_key(self) -> str:
        return self._key_id

    def is_configured(self) -> bool:
        return bool(self._key_secret) and self._key_secret != PLACEHOLDER_KEY_SECRET

    def new_order_id(self, now: datetime) -> str:
        return f"order_{epoch_millis(now)}_{secrets.token_hex(8)}"

    def expected_signature(self, order_id: str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(
            self._key_secret.encode("utf-8"), message, hashlib.sha256
        ).hexdigest()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check a checkout signature.

        Without a real secret the check is refused in strict mode and skipped
        otherwise.
        """
        if not self.is_configured():
            if self.strict_mode:
                logger.error("Payment verification refused: gateway secret not configured")
                raise GatewayNotConfiguredError()
            logger.warning(
                "Gateway secret not configured; accepting payment %s without a signature check",
                payment_id,
            )
            return True
        if not signature:
            return False
        expected = self.expected_signature(order_id, payment_id)
        # Bytes, so a non-ASCII signature is a mismatch rather than a TypeError.
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
