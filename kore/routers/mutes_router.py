# routers/mutes_router.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from sqlalchemy.orm import Session

from kore.auth import get_current_user_id
from kore.config import settings
from kore.core.audit import AuditAction, AuditLogService
from kore.core.moderation_access import (
    get_audit_service,
    get_relationship_manager,
    get_target_user,
    load_users_in_order,
    record_audit,
    request_context,
)
from kore.core.relationships import MuteDuration, RelationshipManager
from kore.database import get_db
from kore.schemas.relationship_schema import (
    MuteCreate,
    MuteResult,
    MuteStatusOut,
    RelationshipOut,
    StatusOut,
    UserPreview,
    UserPreviewList,
)


router = APIRouter(prefix="/mutes", tags=["Mutes"])


# --------------------------------------------------
# MY MUTED USERS (active only)
# --------------------------------------------------
@router.get("/mine", response_model=UserPreviewList)
def get_my_muted_users(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    manager: RelationshipManager = Depends(get_relationship_manager),
    user_id: str = Depends(get_current_user_id),
):
    # Expired mutes inside the window are dropped, so items may be
    # shorter than limit even when the next page has more.
    muted_ids = manager.list_muted(user_id, limit=limit, offset=offset)
    users = load_users_in_order(db, muted_ids)

    return UserPreviewList(
        items=[UserPreview.model_validate(u) for u in users],
        limit=limit,
        offset=offset,
    )


# --------------------------------------------------
# MUTE STATUS
# --------------------------------------------------
@router.get("/status/{target_user_id}", response_model=MuteStatusOut)
def get_mute_status(
    target_user_id: str,
    manager: RelationshipManager = Depends(get_relationship_manager),
    user_id: str = Depends(get_current_user_id),
):
    return MuteStatusOut(muted=manager.is_muted(user_id, target_user_id))


# --------------------------------------------------
# MUTE USER
# --------------------------------------------------
@router.post("/{target_user_id}", response_model=MuteResult)
def mute_user(
    target_user_id: str,
    request: Request,
    payload: Optional[MuteCreate] = None,
    db: Session = Depends(get_db),
    manager: RelationshipManager = Depends(get_relationship_manager),
    audit: AuditLogService = Depends(get_audit_service),
    user_id: str = Depends(get_current_user_id),
):
    if target_user_id == user_id:
        raise HTTPException(400, "Cannot mute yourself")

    get_target_user(db, target_user_id)

    duration = payload.duration if payload and payload.duration else MuteDuration.PERMANENT

    mute, created = manager.get_or_create(
        "mute", user_id, target_user_id, duration=duration
    )

    # An expired mute still counts as existing here; unmute first to renew it
    if not created:
        return MuteResult(
            status="already_muted",
            relationship=RelationshipOut.from_relationship(mute, manager.clock()),
        )

    record_audit(
        audit,
        user_id=user_id,
        action=AuditAction.USER_MUTED,
        entity_type="user",
        entity_id=target_user_id,
        metadata={
            "duration": mute.duration.value,
            "expires_at": mute.expires_at.isoformat() if mute.expires_at else None,
        },
        **request_context(request),
    )
    logger.info(f"User {user_id} muted {target_user_id} ({mute.duration.value})")

    return MuteResult(
        status="muted",
        relationship=RelationshipOut.from_relationship(mute, manager.clock()),
    )


# --------------------------------------------------
# UNMUTE USER
# --------------------------------------------------
@router.delete("/{target_user_id}", response_model=StatusOut)
def unmute_user(
    target_user_id: str,
    request: Request,
    manager: RelationshipManager = Depends(get_relationship_manager),
    audit: AuditLogService = Depends(get_audit_service),
    user_id: str = Depends(get_current_user_id),
):
    if not manager.remove_mute(user_id, target_user_id):
        return StatusOut(status="not_muted")

    record_audit(
        audit,
        user_id=user_id,
        action=AuditAction.USER_UNMUTED,
        entity_type="user",
        entity_id=target_user_id,
        **request_context(request),
    )
    logger.info(f"User {user_id} unmuted {target_user_id}")

    return StatusOut(status="unmuted")
