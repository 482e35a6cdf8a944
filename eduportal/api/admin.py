"""Admin-only documents, audit trail and dashboard."""

from fastapi import APIRouter, Depends, Query, status

from eduportal.api.deps import get_services, require_admin
from eduportal.schemas.audit import AuditLog
from eduportal.schemas.auth import Admin
from eduportal.schemas.dashboard import DashboardStats
from eduportal.schemas.document import Document, DocumentGenerate
from eduportal.services.container import Services
from eduportal.services.dashboard import dashboard_stats

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/documents/generate", response_model=Document, status_code=status.HTTP_201_CREATED
)
def generate_document(
    payload: DocumentGenerate,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.documents.generate(payload, admin.id)


@router.get("/documents", response_model=list[Document])
def list_documents(
    admin: Admin = Depends(require_admin), services: Services = Depends(get_services)
):
    return services.documents.list()


@router.get("/documents/{document_id}", response_model=Document)
def get_document(
    document_id: str,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.documents.get(document_id)


@router.get("/audit-logs", response_model=list[AuditLog])
def list_audit_logs(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.audit.list(limit=limit, offset=offset)


@router.get("/dashboard-stats", response_model=DashboardStats)
def get_dashboard_stats(
    admin: Admin = Depends(require_admin), services: Services = Depends(get_services)
):
    return dashboard_stats(services.store)
