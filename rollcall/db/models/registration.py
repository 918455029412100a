"""Survey and registration response models."""
from datetime import datetime, timezone as tz
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from rollcall.core.utils import new_id
from rollcall.db.base import Base


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    responses = relationship("RegistrationResponse", back_populates="survey", cascade="all, delete-orphan")


class RegistrationResponse(Base):
    __tablename__ = "registration_responses"

    id = Column(String(32), primary_key=True, default=new_id)
    survey_id = Column(String(32), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False)
    personal_code = Column(String(8), nullable=False)
    participant_id = Column(String(32), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(254), nullable=False, default="")
    submitted_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    survey = relationship("Survey", back_populates="responses")
    participant = relationship("Participant")

    __table_args__ = (
        UniqueConstraint("survey_id", "personal_code", name="uq_survey_personal_code"),
        Index("idx_registration_responses_code", "personal_code"),
        Index("idx_registration_responses_survey_email", "survey_id", "email"),
    )
