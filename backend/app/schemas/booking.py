"""
Schémas Pydantic pour les bookings récurrents et l'attribution d'un élève à un professeur.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.config import settings
from app.services.slots import DAYS, is_valid_slot_time, normalize_time

VALID_BOOKING_TYPES = {"Individual", "Grupo"}


class BookingView(BaseModel):
    """Booking dénormalisé pour affichage direct dans la grille (nom, module, avatar)."""
    id: uuid.UUID
    student_id: uuid.UUID
    student_name: str
    module: str
    type: Optional[str] = None
    avatar_url: str
    day_of_week: str
    time_slot: str
    start_date: Optional[date] = None


class AssignmentRequest(BaseModel):
    """Corps de requête pour attribuer un élève sur un ou plusieurs jours à une même heure."""
    student_id: uuid.UUID
    tenant_id: str
    days: List[str]
    time_slot: str
    module: Optional[str] = None
    type: str = "Individual"
    start_date: Optional[date] = None

    @field_validator("tenant_id")
    @classmethod
    def tenant_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le tenant ne peut pas être vide.")
        return v.strip()

    @field_validator("days")
    @classmethod
    def valid_days(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("Sélectionnez au moins un jour.")
        days = []
        for day in v:
            day = day.strip()
            if day not in DAYS:
                raise ValueError(f"Jour invalide '{day}'. Valeurs acceptées : {DAYS}")
            if day not in days:
                days.append(day)
        if len(days) > settings.MAX_DAYS_PER_ASSIGNMENT:
            raise ValueError(f"Maximum de {settings.MAX_DAYS_PER_ASSIGNMENT} jours par semaine.")
        return days

    @field_validator("time_slot")
    @classmethod
    def valid_time_slot(cls, v: str) -> str:
        if not is_valid_slot_time(v):
            raise ValueError(f"Heure hors grille : '{v}'.")
        return normalize_time(v)

    @field_validator("type")
    @classmethod
    def valid_type(cls, v: str) -> str:
        if v not in VALID_BOOKING_TYPES:
            raise ValueError(f"Type invalide. Valeurs acceptées : {VALID_BOOKING_TYPES}")
        return v


class BookingResponse(BaseModel):
    id: uuid.UUID
    tenant_id: str
    teacher_id: uuid.UUID
    student_id: uuid.UUID
    day_of_week: str
    time_slot: str
    module: Optional[str]
    type: Optional[str]
    start_date: Optional[date]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnassignResult(BaseModel):
    teacher_id: uuid.UUID
    student_id: uuid.UUID
    deleted: int
