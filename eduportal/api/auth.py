"""Admin login, logout and token check."""

from fastapi import APIRouter, Depends

from eduportal.api.deps import get_bearer_token, get_services, require_admin
from eduportal.schemas.auth import (
    Admin,
    AdminResponse,
    AdminSummary,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
)
from eduportal.services.container import Services

router = APIRouter(prefix="/admin", tags=["admin-auth"])


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, services: Services = Depends(get_services)):
    token, admin = services.sessions.login(payload.email, payload.password)
    return LoginResponse(
        token=token, admin=AdminSummary(id=admin.id, email=admin.email, name=admin.name)
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(
    admin: Admin = Depends(require_admin),
    token: str | None = Depends(get_bearer_token),
    services: Services = Depends(get_services),
):
    services.sessions.logout(token)
    return LogoutResponse(success=True)


@router.get("/verify", response_model=AdminResponse)
def verify(admin: Admin = Depends(require_admin)):
    return AdminResponse(
        admin=AdminSummary(id=admin.id, email=admin.email, name=admin.name)
    )
