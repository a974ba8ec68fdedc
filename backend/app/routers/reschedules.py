"""
Router pour les reposições : liste, création manuelle, planification et suppression.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.reschedule import RescheduleCreate, RescheduleResponse, RescheduleSchedule
from app.services import reschedule_service

router = APIRouter(prefix="/api/v1", tags=["Reposições"])


@router.get(
    "/teachers/{teacher_id}/reschedules",
    response_model=List[RescheduleResponse],
    summary="Reposições d'un professeur",
)
def list_reschedules(
    teacher_id: uuid.UUID,
    pending_only: bool = False,
    tenant_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return reschedule_service.list_reschedules(db, teacher_id, pending_only, tenant_id)


@router.post("/reschedules", response_model=RescheduleResponse, status_code=201, summary="Créer une reposição")
def create_reschedule(data: RescheduleCreate, db: Session = Depends(get_db)):
    try:
        return reschedule_service.create_reschedule(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/reschedules/{reschedule_id}", response_model=RescheduleResponse, summary="Planifier une reposição")
def schedule_reschedule(reschedule_id: uuid.UUID, data: RescheduleSchedule, db: Session = Depends(get_db)):
    try:
        result = reschedule_service.schedule_reschedule(db, reschedule_id, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Reposição introuvable.")
    return result


@router.delete("/reschedules/{reschedule_id}", status_code=204, summary="Supprimer une reposição")
def delete_reschedule(reschedule_id: uuid.UUID, db: Session = Depends(get_db)):
    if not reschedule_service.delete_reschedule(db, reschedule_id):
        raise HTTPException(status_code=404, detail="Reposição introuvable.")
