from fastapi import Depends, Header, Request

from eduportal.errors import AuthError
from eduportal.schemas.auth import Admin
from eduportal.services.container import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip() or None
    return None


def get_bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    return _extract_bearer_token(authorization)


def require_admin(
    request: Request,
    token: str | None = Depends(get_bearer_token),
    services: Services = Depends(get_services),
) -> Admin:
    admin_id = services.sessions.verify(token)
    admin = services.store.get_admin(admin_id)
    if admin is None:
        raise AuthError("Unauthorized")
    request.state.actor_id = admin.id
    return admin
