"""Admin credentials: password hashing and the seeded super admin."""

import logging

import bcrypt

from eduportal.config import Settings
from eduportal.schemas.auth import Admin, AdminNew
from eduportal.services.store import Store

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored admin password hash is not a valid bcrypt hash")
        return False


def seed_admin(store: Store, settings: Settings) -> Admin:
    """Ensure the configured super admin exists. Returns the stored admin."""
    existing = store.get_admin_by_email(settings.admin_email)
    if existing:
        return existing
    password_hash = settings.admin_password_hash or hash_password(settings.admin_password)
    admin = store.create_admin(
        AdminNew(
            email=settings.admin_email.strip().lower(),
            password_hash=password_hash,
            name=settings.admin_name,
        )
    )
    logger.info("Seeded admin account %s", admin.email)
    return admin
