# routers/blocks_router.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger
from sqlalchemy.orm import Session

from kore.auth import get_current_user_id
from kore.config import settings
from kore.core.audit import AuditAction, AuditLogService
from kore.core.blocking import block_status, visible_user_ids
from kore.core.moderation_access import (
    get_audit_service,
    get_relationship_manager,
    get_target_user,
    load_users_in_order,
    record_audit,
    request_context,
)
from kore.core.relationships import RelationshipManager
from kore.database import get_db
from kore.schemas.relationship_schema import (
    BlockResult,
    BlockStatusOut,
    RelationshipOut,
    StatusOut,
    UserPreview,
    UserPreviewList,
    VisibilityFilter,
)


router = APIRouter(prefix="/blocks", tags=["Blocks"])


# --------------------------------------------------
# MY BLOCKED USERS
# --------------------------------------------------
@router.get("/mine", response_model=UserPreviewList)
def get_my_blocked_users(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    manager: RelationshipManager = Depends(get_relationship_manager),
    user_id: str = Depends(get_current_user_id),
):
    blocked_ids = manager.list_blocked(user_id, limit=limit, offset=offset)
    users = load_users_in_order(db, blocked_ids)

    return UserPreviewList(
        items=[UserPreview.model_validate(u) for u in users],
        limit=limit,
        offset=offset,
    )


# --------------------------------------------------
# BLOCK STATUS (either direction)
# --------------------------------------------------
@router.get("/status/{target_user_id}", response_model=BlockStatusOut)
def get_block_status(
    target_user_id: str,
    manager: RelationshipManager = Depends(get_relationship_manager),
    user_id: str = Depends(get_current_user_id),
):
    blocked, blocked_by = block_status(manager, user_id, target_user_id)
    return BlockStatusOut(blocked=blocked, blocked_by=blocked_by)


# --------------------------------------------------
# VISIBILITY FILTER (drops blocked either way and muted)
# --------------------------------------------------
@router.post("/visible", response_model=VisibilityFilter)
def filter_visible_users(
    payload: VisibilityFilter,
    manager: RelationshipManager = Depends(get_relationship_manager),
    user_id: str = Depends(get_current_user_id),
):
    return VisibilityFilter(
        user_ids=visible_user_ids(manager, user_id, payload.user_ids)
    )


# --------------------------------------------------
# BLOCK USER
# --------------------------------------------------
@router.post("/{target_user_id}", response_model=BlockResult)
def block_user(
    target_user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    manager: RelationshipManager = Depends(get_relationship_manager),
    audit: AuditLogService = Depends(get_audit_service),
    user_id: str = Depends(get_current_user_id),
):
    # Cannot block yourself
    if target_user_id == user_id:
        raise HTTPException(400, "Cannot block yourself")

    # Target must exist
    get_target_user(db, target_user_id)

    block, created = manager.get_or_create("block", user_id, target_user_id)

    # Already blocked → no-op
    if not created:
        return BlockResult(
            status="already_blocked",
            relationship=RelationshipOut.from_relationship(block, manager.clock()),
        )

    record_audit(
        audit,
        user_id=user_id,
        action=AuditAction.USER_BLOCKED,
        entity_type="user",
        entity_id=target_user_id,
        **request_context(request),
    )
    logger.info(f"User {user_id} blocked {target_user_id}")

    return BlockResult(
        status="blocked",
        relationship=RelationshipOut.from_relationship(block, manager.clock()),
    )


# --------------------------------------------------
# UNBLOCK USER
# --------------------------------------------------
@router.delete("/{target_user_id}", response_model=StatusOut)
def unblock_user(
    target_user_id: str,
    request: Request,
    manager: RelationshipManager = Depends(get_relationship_manager),
    audit: AuditLogService = Depends(get_audit_service),
    user_id: str = Depends(get_current_user_id),
):
    if not manager.remove_block(user_id, target_user_id):
        return StatusOut(status="not_blocked")

    record_audit(
        audit,
        user_id=user_id,
        action=AuditAction.USER_UNBLOCKED,
        entity_type="user",
        entity_id=target_user_id,
        **request_context(request),
    )
    logger.info(f"User {user_id} unblocked {target_user_id}")

    return StatusOut(status="unblocked")
