import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Text, JSON

from kore.database import Base
from kore.utils.clock import utc_now


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # user_blocked | user_muted | account_deleted | ...
    action = Column(String(100), nullable=False)

    # What the action touched
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(String(36), nullable=True)

    # Request context
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)

    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_action", "action"),
        Index("ix_audit_logs_created_at", "created_at"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
