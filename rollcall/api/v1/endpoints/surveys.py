"""Survey management endpoints (admin only)."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from rollcall.api.deps import get_db, verify_admin_token
from rollcall.core.exceptions import NotFoundError
from rollcall.core.logging_config import get_logger
from rollcall.core.rate_limit import limiter, RATE_LIMITS
from rollcall.core.utils import new_id, utcnow
from rollcall.db import storage_guard
from rollcall.db.models import Survey
from rollcall.schemas import SurveyCreate, SurveyResponse, SurveyUpdate

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.post("/surveys", response_model=SurveyResponse, status_code=201)
@limiter.limit(RATE_LIMITS["admin_write"])
def create_survey_endpoint(request: Request, body: SurveyCreate, db: Session = Depends(get_db)):
    survey = Survey(id=new_id(), title=body.title, is_active=body.is_active, created_at=utcnow())
    with storage_guard(db, "create_survey"):
        db.add(survey)
        db.commit()
        db.refresh(survey)
    logger.info("survey_created", survey_id=survey.id)
    return survey


@router.patch("/surveys/{survey_id}", response_model=SurveyResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
def update_survey_endpoint(
    request: Request,
    survey_id: str,
    body: SurveyUpdate,
    db: Session = Depends(get_db),
):
    """Rename a survey or open/close it for responses."""
    with storage_guard(db, "update_survey"):
        survey = db.get(Survey, survey_id)
        if survey is None:
            raise NotFoundError("Survey not found")
        for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(survey, field, value)
        db.commit()
        db.refresh(survey)
    logger.info("survey_updated", survey_id=survey.id, is_active=survey.is_active)
    return survey
