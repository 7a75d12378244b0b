from datetime import timedelta
from enum import Enum
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kore.models.audit_log import AuditLog
from kore.utils.clock import utc_now


class AuditAction(str, Enum):
    # Account
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DELETED = "account_deleted"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_UNSUSPENDED = "account_unsuspended"
    ACCOUNT_BANNED = "account_banned"
    ACCOUNT_UNBANNED = "account_unbanned"
    ACCOUNT_VERIFIED = "account_verified"

    # Authentication
    PASSWORD_CHANGED = "password_changed"
    EMAIL_CHANGED = "email_changed"
    TWO_FACTOR_ENABLED = "two_factor_enabled"
    TWO_FACTOR_DISABLED = "two_factor_disabled"

    # Security
    SESSION_REVOKED = "session_revoked"
    ALL_SESSIONS_REVOKED = "all_sessions_revoked"
    OAUTH_ACCOUNT_LINKED = "oauth_account_linked"
    OAUTH_ACCOUNT_UNLINKED = "oauth_account_unlinked"

    # Privacy
    PRIVACY_SETTINGS_UPDATED = "privacy_settings_updated"
    NOTIFICATION_SETTINGS_UPDATED = "notification_settings_updated"

    # Content
    POST_CREATED = "post_created"
    POST_DELETED = "post_deleted"
    POST_REPORTED = "post_reported"

    # Moderation
    USER_BLOCKED = "user_blocked"
    USER_UNBLOCKED = "user_unblocked"
    USER_MUTED = "user_muted"
    USER_UNMUTED = "user_unmuted"
    REPORT_SUBMITTED = "report_submitted"

    # Data export
    DATA_EXPORT_REQUESTED = "data_export_requested"
    DATA_EXPORT_DOWNLOADED = "data_export_downloaded"


class AuditLogService:
    """Append-only record of security and moderation actions."""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        user_id: str,
        action,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[dict] = None,
        reason: Optional[str] = None,
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            action=AuditAction(action).value,
            entity_type=entity_type,
            entity_id=entity_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=metadata,
            reason=reason,
        )

        try:
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.debug(f"Audit {entry.action} by {user_id} on {entity_type}:{entity_id}")
        return entry

    def get_by_user(self, user_id: str, limit: int = 50, offset: int = 0) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.user_id == user_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def get_by_action(self, action, limit: int = 50, offset: int = 0) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.action == AuditAction(action).value)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def get_by_entity(
        self,
        entity_type: str,
        entity_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    def get_recent(self, limit: int = 100) -> List[AuditLog]:
        """Entries from the last 24 hours."""
        one_day_ago = utc_now() - timedelta(hours=24)

        return (
            self.db.query(AuditLog)
            .filter(AuditLog.created_at >= one_day_ago)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_by_id(self, log_id: str) -> Optional[AuditLog]:
        return self.db.query(AuditLog).filter(AuditLog.id == log_id).first()
