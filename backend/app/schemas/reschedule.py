"""
Schémas Pydantic pour les reposições (création manuelle, planification, lecture).
"""

import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator

from app.schemas.class_log import FAULT_STUDENT, FAULT_TEACHER
from app.services.slots import is_valid_slot_time, normalize_time

PENDING_LABEL = "Pendente"
SCHEDULED_LABEL = "Agendada"


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    if not is_valid_slot_time(v):
        raise ValueError(f"Heure hors grille : '{v}'.")
    return normalize_time(v)


class RescheduleCreate(BaseModel):
    """Reposição créée manuellement. Sans date/heure, elle reste "Pendente"."""
    tenant_id: str
    teacher_id: uuid.UUID
    student_id: uuid.UUID
    date: Optional[dt.date] = None
    time: Optional[str] = None
    original_booking_id: Optional[uuid.UUID] = None
    created_by_fault: Optional[str] = None

    @field_validator("time")
    @classmethod
    def valid_time(cls, v: Optional[str]) -> Optional[str]:
        return _check_time(v)

    @field_validator("created_by_fault")
    @classmethod
    def valid_fault(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in {FAULT_TEACHER, FAULT_STUDENT}:
            raise ValueError(f"Responsabilité invalide. Valeurs acceptées : {FAULT_TEACHER}, {FAULT_STUDENT}")
        return v


class RescheduleSchedule(BaseModel):
    """Planification d'une reposição : date et heure obligatoires."""
    date: dt.date
    time: str

    @field_validator("time")
    @classmethod
    def valid_time(cls, v: str) -> str:
        return _check_time(v)

    @field_validator("date")
    @classmethod
    def not_sunday(cls, v: dt.date) -> dt.date:
        if v.weekday() == 6:
            raise ValueError("Aucun cours ne peut être planifié un dimanche.")
        return v


class RescheduleResponse(BaseModel):
    id: uuid.UUID
    tenant_id: str
    teacher_id: uuid.UUID
    student_id: uuid.UUID
    date: Optional[dt.date]
    time: Optional[str]
    original_booking_id: Optional[uuid.UUID]
    created_by_fault: Optional[str]
    created_at: Optional[dt.datetime]
    status: str = PENDING_LABEL     # "Pendente" ou "Agendada"

    model_config = {"from_attributes": True}
