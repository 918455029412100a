"""Main API router for v1."""
from fastapi import APIRouter

from rollcall.api.v1.endpoints import audit, auth, checkin, keys, participants, registrations, surveys

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(keys.router, prefix="/keys", tags=["Keys"])
api_router.include_router(checkin.router, prefix="/checkin", tags=["Check-in"])
api_router.include_router(participants.router, prefix="/participants", tags=["Participants"])
api_router.include_router(audit.router, prefix="/admin", tags=["Admin"])
api_router.include_router(surveys.router, prefix="/admin", tags=["Admin"])
api_router.include_router(registrations.router, prefix="/registrations", tags=["Registrations"])
