"""
Audit Log API Routes
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from dentalcare.core.database import get_db
from dentalcare.core.security import require_admin
from dentalcare.schemas import AuditLogResponse
from dentalcare.services.audit_service import AuditService

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=List[AuditLogResponse])
async def list_audit_logs(
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin)
):
    """Newest first; pass resource_type and resource_id for one document's history"""
    service = AuditService(db)
    if resource_type and resource_id is not None:
        return service.get_by_resource(resource_type, resource_id)
    return service.get_recent(action, limit)
