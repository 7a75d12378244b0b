from typing import List

from fastapi import Depends, HTTPException, Request
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kore.core.audit import AuditLogService
from kore.core.relationship_store import SqlRelationshipStore
from kore.core.relationships import RelationshipManager
from kore.database import get_db
from kore.models.user import User


def get_relationship_manager(db: Session = Depends(get_db)) -> RelationshipManager:
    return RelationshipManager(SqlRelationshipStore(db))


def get_audit_service(db: Session = Depends(get_db)) -> AuditLogService:
    return AuditLogService(db)


def get_target_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def load_users_in_order(db: Session, user_ids: List[str]) -> List[User]:
    """
    Fetch users for ``user_ids`` keeping the given order. Ids whose user
    is gone are skipped.
    """
    if not user_ids:
        return []

    users = db.query(User).filter(User.id.in_(user_ids)).all()
    by_id = {u.id: u for u in users}

    return [by_id[user_id] for user_id in user_ids if user_id in by_id]


def record_audit(audit: AuditLogService, **entry) -> bool:
    """
    Write an audit entry for a change that is already committed.

    A failed write is logged and reported as False; the change itself
    stands and the caller still answers with success.
    """
    try:
        audit.log(**entry)
    except SQLAlchemyError as exc:
        logger.error(
            f"Audit {entry.get('action')} for {entry.get('user_id')} "
            f"on {entry.get('entity_id')} not written: {exc}"
        )
        return False
    return True


def request_context(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
