"""Audit log schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from rollcall.db.models import AuditAction, AuditTargetType


class AuditEntryCreate(BaseModel):
    action: AuditAction
    target_type: AuditTargetType
    target_id: str = Field(..., min_length=1, max_length=64)
    target_name: str = Field(..., max_length=200)
    changes: Optional[Dict[str, Dict[str, Any]]] = None
    amends_id: Optional[int] = None  # Entry this one corrects


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    actor_name: str
    action: str
    target_type: str
    target_id: str
    target_name: str
    changes: Optional[Dict[str, Dict[str, Any]]] = None
    amends_id: Optional[int] = None


class AuditPageResponse(BaseModel):
    entries: List[AuditEntryResponse]
    next_cursor: Optional[str] = None
    has_more: bool


class AuditClearResponse(BaseModel):
    deleted: int
