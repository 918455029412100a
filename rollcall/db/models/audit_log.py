"""Audit log model."""
import enum
from datetime import datetime, timezone as tz
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String

from rollcall.db.base import Base


class AuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    ASSIGN = "assign"
    IMPORT = "import"


class AuditTargetType(str, enum.Enum):
    PARTICIPANT = "participant"
    GROUP = "group"
    ROOM = "room"
    BUS = "bus"


class AuditLog(Base):
    """One immutable entry. Corrections are new rows pointing at ``amends_id``."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    actor_name = Column(String(100), nullable=False)
    action = Column(String(20), nullable=False)
    target_type = Column(String(20), nullable=False)
    target_id = Column(String(64), nullable=False)
    target_name = Column(String(200), nullable=False)
    changes = Column(JSON, nullable=True)  # {field: {"from": ..., "to": ...}}
    amends_id = Column(Integer, ForeignKey("audit_logs.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        Index("idx_audit_logs_timestamp_id", "timestamp", "id"),
        Index("idx_audit_logs_target", "target_type", "target_id"),
    )
