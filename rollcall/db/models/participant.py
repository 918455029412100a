"""Participant and check-in session models."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship

from rollcall.core.utils import new_id
from rollcall.db.base import Base


class Participant(Base):
    __tablename__ = "participants"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, default="", index=True)
    phone_number = Column(String(50), nullable=False, default="")
    gender = Column(String(20), nullable=False, default="")
    age = Column(String(20), nullable=False, default="")
    stake = Column(String(100), nullable=False, default="")
    ward = Column(String(100), nullable=False, default="")
    birth_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    lookup_key = Column(String(8), nullable=True, index=True)  # derived from name + birth date

    group_id = Column(String(32), nullable=True)
    group_name = Column(String(100), nullable=True)
    room_id = Column(String(32), nullable=True)
    room_number = Column(String(50), nullable=True)
    bus_id = Column(String(32), nullable=True)
    bus_name = Column(String(100), nullable=True)

    is_paid = Column(Boolean, nullable=False, default=False)
    memo = Column(Text, nullable=False, default="")
    registration_survey_id = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    check_ins = relationship(
        "CheckinSession",
        back_populates="participant",
        cascade="all, delete-orphan",
        order_by=lambda: [CheckinSession.check_in_time, CheckinSession.id],
    )


class CheckinSession(Base):
    __tablename__ = "checkin_sessions"

    id = Column(String(32), primary_key=True, default=new_id)
    participant_id = Column(String(32), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    check_in_time = Column(DateTime(timezone=True), nullable=False)
    check_out_time = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    participant = relationship("Participant", back_populates="check_ins")

    __table_args__ = (
        Index("idx_checkin_sessions_participant", "participant_id"),
        # At most one open session per participant
        Index(
            "uq_checkin_sessions_open",
            "participant_id",
            unique=True,
            sqlite_where=text("check_out_time IS NULL"),
            postgresql_where=text("check_out_time IS NULL"),
        ),
    )
