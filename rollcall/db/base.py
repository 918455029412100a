"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from rollcall.db.models.participant import Participant, CheckinSession  # noqa: F401, E402
from rollcall.db.models.audit_log import AuditLog  # noqa: F401, E402
from rollcall.db.models.rate_limit import RateLimitCounter  # noqa: F401, E402
from rollcall.db.models.registration import Survey, RegistrationResponse  # noqa: F401, E402
