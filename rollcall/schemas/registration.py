"""Public registration schemas."""
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class RegistrantFields(BaseModel):
    """Profile fields a registrant may fill in about themselves."""
    email: Optional[str] = Field(None, max_length=254)
    phone_number: Optional[str] = Field(None, max_length=50)
    gender: Optional[str] = Field(None, max_length=20)
    age: Optional[str] = Field(None, max_length=20)
    stake: Optional[str] = Field(None, max_length=100)
    ward: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[str] = Field(None, max_length=10)


class RegistrantCreate(RegistrantFields):
    name: str = Field(..., min_length=1, max_length=100)


class RegistrantUpdate(RegistrantFields):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class RegistrationSubmit(BaseModel):
    participant: RegistrantCreate
    form_data: Dict[str, Any] = Field(default_factory=dict)


class RegistrationEdit(BaseModel):
    participant: RegistrantUpdate = Field(default_factory=RegistrantUpdate)
    # Omitted form data keeps the stored answers
    form_data: Optional[Dict[str, Any]] = None


class RegistrationSubmitResponse(BaseModel):
    personal_code: str
    response_id: str
    participant_id: str


class CodeLookupRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    survey_id: Optional[str] = Field(None, max_length=32)


class RegistrationDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    survey_id: str
    personal_code: str
    participant_id: str
    email: str
    submitted_data: Dict[str, Any]


class SendCodeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    survey_id: str = Field(..., min_length=1, max_length=32)
