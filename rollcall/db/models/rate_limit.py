"""Rate limit counter model."""
from sqlalchemy import Column, DateTime, Integer, String

from rollcall.db.base import Base


class RateLimitCounter(Base):
    __tablename__ = "rate_limit_counters"

    key = Column(String(120), primary_key=True)  # "<operation>:<client ip>"
    operation = Column(String(40), nullable=False, index=True)
    last_sent_at = Column(DateTime(timezone=True), nullable=False)
    daily_count = Column(Integer, nullable=False, default=0)
    daily_reset_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False)

    # Every ORM UPDATE is conditional on the version read; a concurrent
    # writer makes the flush raise StaleDataError.
    __mapper_args__ = {"version_id_col": version}
