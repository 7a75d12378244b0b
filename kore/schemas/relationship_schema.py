from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from kore.core.relationships import MuteDuration, RelationshipKind


# --------------------------------------------------
# USER PREVIEW (used in block / mute lists)
# --------------------------------------------------
class UserPreview(BaseModel):
    id: str
    name: str
    username: str
    image: Optional[str] = None

    class Config:
        from_attributes = True


# --------------------------------------------------
# RELATIONSHIP OUT
# --------------------------------------------------
class RelationshipOut(BaseModel):
    kind: RelationshipKind
    source_user_id: str
    target_user_id: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    duration: Optional[MuteDuration] = None
    is_active: bool

    @classmethod
    def from_relationship(cls, relationship, now: datetime) -> "RelationshipOut":
        return cls(
            kind=relationship.kind,
            source_user_id=relationship.source_user_id,
            target_user_id=relationship.target_user_id,
            created_at=relationship.created_at,
            expires_at=relationship.expires_at,
            duration=relationship.duration,
            is_active=relationship.is_active(now),
        )


# --------------------------------------------------
# BLOCKS
# --------------------------------------------------
class BlockResult(BaseModel):
    status: str  # blocked | already_blocked
    relationship: RelationshipOut


class BlockStatusOut(BaseModel):
    blocked: bool      # I blocked them
    blocked_by: bool   # they blocked me


class VisibilityFilter(BaseModel):
    user_ids: List[str] = Field(..., max_length=200)


# --------------------------------------------------
# MUTES
# --------------------------------------------------
class MuteCreate(BaseModel):
    duration: Optional[MuteDuration] = None


class MuteResult(BaseModel):
    status: str  # muted | already_muted
    relationship: RelationshipOut


class MuteStatusOut(BaseModel):
    muted: bool


class StatusOut(BaseModel):
    status: str


class UserPreviewList(BaseModel):
    items: List[UserPreview]
    limit: int
    offset: int
