from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from telecare.auth.dependencies import get_current_caller
from telecare.auth.identity import CallerIdentity
from telecare.consultations.service import ConsultationNotes, ConsultationService
from telecare.core.errors import SchedulingError
from telecare.database import get_db
from telecare.routes.common import get_clock, http_error

router = APIRouter(tags=['consultations'])

MAX_NOTES_LENGTH = 5000


class CreateConsultationRequest(BaseModel):
    appointment_id: int
    subjective_notes: str | None = None
    objective_findings: str | None = None
    assessment: str | None = None
    plan: str | None = None

    @field_validator('subjective_notes', 'objective_findings', 'assessment', 'plan')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')

        return normalized


class ConsultationResponse(BaseModel):
    id: int
    appointment_id: int
    consultation_date: datetime
    subjective_notes: str | None = None
    objective_findings: str | None = None
    assessment: str | None = None
    plan: str | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=ConsultationResponse, status_code=status.HTTP_201_CREATED)
def create_consultation(
    data: CreateConsultationRequest,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    notes = ConsultationNotes(
        subjective_notes=data.subjective_notes,
        objective_findings=data.objective_findings,
        assessment=data.assessment,
        plan=data.plan,
    )
    try:
        consultation = ConsultationService(db, clock=clock).create_consultation(caller, data.appointment_id, notes)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return ConsultationResponse.model_validate(consultation)


@router.get('/appointment/{appointment_id}', response_model=ConsultationResponse)
def get_consultation(
    appointment_id: int,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    try:
        consultation = ConsultationService(db).get_consultation(caller, appointment_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return ConsultationResponse.model_validate(consultation)


@router.get('/history', response_model=list[ConsultationResponse])
def consultation_history(
    patient_id: int | None = Query(default=None),
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    try:
        history = ConsultationService(db).consultation_history(caller, patient_id)
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return [ConsultationResponse.model_validate(consultation) for consultation in history]
