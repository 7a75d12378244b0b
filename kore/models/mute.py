# kore/models/mute.py
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint

from kore.database import Base
from kore.utils.clock import utc_now


class Mute(Base):
    __tablename__ = "mutes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    muter_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    muted_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # permanent | 24h | 7d | 30d
    mute_duration = Column(String(20), nullable=False, default="permanent")

    # NULL → permanent. Expired rows stay until unmuted or compacted.
    expires_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("muter_id", "muted_id", name="uq_mutes_muter_muted"),
        Index("ix_mutes_muter_created", "muter_id", "created_at"),
    )
