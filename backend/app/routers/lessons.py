"""
Router pour le suivi des cours : cours à enregistrer, cours en attente
et enregistrement en lot des class_logs.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.class_log import ClassLogBatch, ClassLogBatchResult
from app.schemas.lesson import ReconciliationResult
from app.services import class_log_service, reconciliation_service
from app.services.schedule_store import SqlScheduleStore

router = APIRouter(prefix="/api/v1/teachers", tags=["Cours"])


@router.get(
    "/{teacher_id}/lessons/due-today",
    response_model=ReconciliationResult,
    summary="Cours à enregistrer",
)
def get_due_today(teacher_id: uuid.UUID, tenant_id: Optional[str] = None, db: Session = Depends(get_db)):
    """
    Cours de la journée déjà commencés et cours des 7 derniers jours non enregistrés
    (marqués en retard). Les journées illisibles sont listées dans `failures`.
    """
    return reconciliation_service.find_due_today(SqlScheduleStore(db), teacher_id, tenant_id)


@router.get(
    "/{teacher_id}/lessons/pending",
    response_model=ReconciliationResult,
    summary="Cours en attente",
)
def get_pending_lessons(teacher_id: uuid.UUID, tenant_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Cours d'il y a 30 à 7 jours jamais enregistrés, du plus ancien au plus récent."""
    return reconciliation_service.find_pending_lessons(SqlScheduleStore(db), teacher_id, tenant_id)


@router.post(
    "/{teacher_id}/class-logs",
    response_model=ClassLogBatchResult,
    summary="Enregistrer des cours",
)
def record_class_logs(teacher_id: uuid.UUID, data: ClassLogBatch, db: Session = Depends(get_db)):
    """
    Enregistre un lot de cours (présence + contenu).

    Comportement :
    - Idempotent : un cours déjà enregistré est rapporté dans `duplicate`
    - Une reposição enregistrée est consommée (supprimée)
    - Chaque absence ouvre une reposição à planifier, dans la limite mensuelle de l'élève
      (sans limite pour une absence du professeur)
    """
    return class_log_service.record_class_logs(db, teacher_id, data)
