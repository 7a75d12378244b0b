# kore/models/block.py
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint

from kore.database import Base
from kore.utils.clock import utc_now


class Block(Base):
    __tablename__ = "blocks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    blocker_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    blocked_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    __table_args__ = (
        # One block per ordered pair; concurrent inserts lose on this
        UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_blocker_blocked"),
        Index("ix_blocks_blocker_created", "blocker_id", "created_at"),
    )
