"""Participant schemas."""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class ParticipantBase(BaseModel):
    email: Optional[str] = Field(None, max_length=254)
    phone_number: Optional[str] = Field(None, max_length=50)
    gender: Optional[str] = Field(None, max_length=20)
    age: Optional[str] = Field(None, max_length=20)
    stake: Optional[str] = Field(None, max_length=100)
    ward: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[str] = Field(None, max_length=10)  # YYYY-MM-DD
    is_paid: Optional[bool] = None
    memo: Optional[str] = Field(None, max_length=2000)
    group_id: Optional[str] = Field(None, max_length=32)
    group_name: Optional[str] = Field(None, max_length=100)
    room_id: Optional[str] = Field(None, max_length=32)
    room_number: Optional[str] = Field(None, max_length=50)
    bus_id: Optional[str] = Field(None, max_length=32)
    bus_name: Optional[str] = Field(None, max_length=100)


class ParticipantCreate(ParticipantBase):
    name: str = Field(..., min_length=1, max_length=100)


class ParticipantUpdate(ParticipantBase):
    """Partial update; only fields present in the request are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone_number: str
    gender: str
    age: str
    stake: str
    ward: str
    birth_date: Optional[str] = None
    lookup_key: Optional[str] = None
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    room_id: Optional[str] = None
    room_number: Optional[str] = None
    bus_id: Optional[str] = None
    bus_name: Optional[str] = None
    is_paid: bool
    memo: str
    created_at: datetime
    updated_at: datetime


class ParticipantUpdateResponse(BaseModel):
    participant: ParticipantResponse
    changes: Dict[str, Dict[str, Any]]
