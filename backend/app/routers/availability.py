"""
Router pour les disponibilités des professeurs : publication, grille hebdomadaire
et heatmap des professeurs libres par tenant.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.availability import (
    AvailabilityPublish,
    AvailabilityPublishResult,
    AvailabilityResponse,
    HeatmapResponse,
    WeekGridResponse,
)
from app.services import availability_service

router = APIRouter(prefix="/api/v1", tags=["Disponibilités"])


@router.get(
    "/teachers/{teacher_id}/availability",
    response_model=AvailabilityResponse,
    summary="Disponibilités d'un professeur",
)
def get_availability(teacher_id: uuid.UUID, db: Session = Depends(get_db)):
    return availability_service.get_availability(db, teacher_id)


@router.put(
    "/teachers/{teacher_id}/availability",
    response_model=AvailabilityPublishResult,
    summary="Publier les disponibilités d'un professeur",
)
def publish_availability(teacher_id: uuid.UUID, data: AvailabilityPublish, db: Session = Depends(get_db)):
    """
    Remplace l'ensemble des disponibilités du professeur par les créneaux envoyés
    (clés "{jour}-{HH:MM}", jour 0 = Segunda).
    Refusé (409) si un créneau est déjà réservé par un élève.
    """
    try:
        return availability_service.publish_availability(db, teacher_id, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get(
    "/teachers/{teacher_id}/week-grid",
    response_model=WeekGridResponse,
    summary="Grille hebdomadaire d'un professeur",
)
def get_week_grid(teacher_id: uuid.UUID, tenant_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Grille Segunda à Sábado, 06:00 à 24:00 : créneaux libres, disponibles et réservés."""
    return availability_service.get_week_grid(db, teacher_id, tenant_id)


@router.get(
    "/tenants/{tenant_id}/availability-heatmap",
    response_model=HeatmapResponse,
    summary="Professeurs disponibles par créneau",
)
def get_availability_heatmap(tenant_id: str, db: Session = Depends(get_db)):
    return availability_service.get_availability_heatmap(db, tenant_id)
