"""School registration and review routes."""

from fastapi import APIRouter, Depends, status

from eduportal.api.deps import get_services, require_admin
from eduportal.schemas.auth import Admin
from eduportal.schemas.school import School, SchoolCreate
from eduportal.services.container import Services

router = APIRouter(tags=["schools"])


@router.post(
    "/schools/register", response_model=School, status_code=status.HTTP_201_CREATED
)
def register_school(payload: SchoolCreate, services: Services = Depends(get_services)):
    return services.schools.register(payload)


@router.get("/admin/schools", response_model=list[School])
def list_schools(
    admin: Admin = Depends(require_admin), services: Services = Depends(get_services)
):
    return services.schools.list()


@router.patch("/admin/schools/{school_id}/approve", response_model=School)
def approve_school(
    school_id: str,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.schools.approve(school_id, admin.id)


@router.patch("/admin/schools/{school_id}/reject", response_model=School)
def reject_school(
    school_id: str,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.schools.reject(school_id, admin.id)
