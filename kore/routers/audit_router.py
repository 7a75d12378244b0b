from typing import List

from fastapi import APIRouter, Depends, Query

from kore.auth import get_current_user_id
from kore.config import settings
from kore.core.audit import AuditLogService
from kore.core.moderation_access import get_audit_service
from kore.schemas.audit_schema import AuditLogOut


router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("/mine", response_model=List[AuditLogOut])
def get_my_audit_logs(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    audit: AuditLogService = Depends(get_audit_service),
    user_id: str = Depends(get_current_user_id),
):
    entries = audit.get_by_user(user_id, limit=limit, offset=offset)
    return [AuditLogOut.model_validate(e) for e in entries]
