from __future__ import annotations

from datetime import datetime

from pydantic import Field

from eduportal.schemas.common import CamelModel, Record


class AdminNew(CamelModel):
    email: str
    password_hash: str
    name: str


class Admin(Record):
    id: str
    email: str
    password_hash: str = Field(exclude=True, repr=False)
    name: str
    created_at: datetime


class AdminSummary(CamelModel):
    id: str
    email: str
    name: str


class LoginRequest(CamelModel):
    # Presence is checked by the session registry so a blank field gets a 400.
    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class LoginResponse(CamelModel):
    token: str
    admin: AdminSummary


class AdminResponse(CamelModel):
    admin: AdminSummary


class LogoutResponse(CamelModel):
    success: bool = True
