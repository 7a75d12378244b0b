from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuditLogOut(BaseModel):
    id: str
    user_id: str
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="details")
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
        populate_by_name = True
