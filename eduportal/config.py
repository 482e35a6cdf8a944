import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY_ID = "rzp_test_placeholder"
PLACEHOLDER_KEY_SECRET = "placeholder_secret"
DEFAULT_ADMIN_PASSWORD = "SmartGenEduX@2025"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    environment: str = os.getenv("ENVIRONMENT", "dev")

    # Persistence: "memory" or "sql"
    store_backend: str = os.getenv("STORE_BACKEND", "memory")
    database_url: str = os.getenv("DATABASE_URL", "sqlite+pysqlite:///eduportal.db")

    # Razorpay
    razorpay_key_id: str = os.getenv("RAZORPAY_KEY_ID", PLACEHOLDER_KEY_ID)
    razorpay_key_secret: str = os.getenv("RAZORPAY_KEY_SECRET", PLACEHOLDER_KEY_SECRET)
    # Signature checks are skipped for an unconfigured secret only when strict mode is off.
    payment_strict_mode: bool = _env_bool("PAYMENT_STRICT_MODE", "true")
    payment_currency: str = os.getenv("PAYMENT_CURRENCY", "INR")

    # Seeded admin
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@smartgenedux.com")
    admin_name: str = os.getenv("ADMIN_NAME", "Super Admin")
    admin_password: str = os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)
    admin_password_hash: str = os.getenv("ADMIN_PASSWORD_HASH", "")

    # Sessions
    session_ttl_hours: int = int(os.getenv("SESSION_TTL_HOURS", "24"))

    # Rate limiting
    rate_limit_requests: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    rate_limit_window_seconds: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    trusted_proxies: str = os.getenv("TRUSTED_PROXIES", "")  # Comma-separated CIDRs

    # CORS
    cors_origins: str = os.getenv("CORS_ORIGINS", "")  # Comma-separated origins

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def gateway_configured(self) -> bool:
        return bool(self.razorpay_key_secret) and (
            self.razorpay_key_secret != PLACEHOLDER_KEY_SECRET
        )


def validate_settings(s: Settings) -> list[str]:
    """Validate settings at startup. Returns list of warnings."""
    warnings: list[str] = []

    if s.store_backend not in {"memory", "sql"}:
        warnings.append(
            f"STORE_BACKEND={s.store_backend!r} is unknown; falling back to memory"
        )

    if not s.gateway_configured:
        if s.payment_strict_mode:
            warnings.append(
                "RAZORPAY_KEY_SECRET is not set; payment verification will be refused"
            )
        else:
            warnings.append(
                "RAZORPAY_KEY_SECRET is not set and PAYMENT_STRICT_MODE is off; "
                "payment signatures are NOT checked"
            )

    if not s.payment_strict_mode and s.is_production:
        warnings.append("PAYMENT_STRICT_MODE is disabled in production")

    if s.razorpay_key_id == PLACEHOLDER_KEY_ID:
        warnings.append("RAZORPAY_KEY_ID is the placeholder test key")

    if not s.admin_password_hash and s.admin_password == DEFAULT_ADMIN_PASSWORD:
        warnings.append("Seeded admin uses the default password; set ADMIN_PASSWORD_HASH")

    if "sqlite" in s.database_url and s.store_backend == "sql" and s.is_production:
        warnings.append("DATABASE_URL points to SQLite in production")

    return warnings


settings = Settings()
