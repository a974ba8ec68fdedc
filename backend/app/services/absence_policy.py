"""
Politique absence → reposição.

Après l'enregistrement d'un lot de class_logs, chaque absence (hors reposição) ouvre
un droit à une reposição "Pendente" (date et heure à planifier) :
- Falta do Professor : toujours
- Falta / Falta Justificada : seulement si l'élève a reçu moins de MAX_MONTHLY_RESCHEDULES
  reposições depuis le 1er du mois courant

Chaque création tourne dans son propre SAVEPOINT : un échec est loggé et n'empêche
pas de traiter les absences suivantes.
"""

import uuid
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.class_log import ClassLog
from app.models.reschedule import Reschedule
from app.schemas.class_log import (
    ABSENCE_PRESENCES,
    ABSENT_TEACHER,
    FAULT_STUDENT,
    FAULT_TEACHER,
    SUBTYPE_RESCHEDULE,
    AbsencePolicyResult,
)

logger = logging.getLogger(__name__)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def is_candidate(log: ClassLog) -> bool:
    """
    Une absence sur une reposição n'ouvre pas droit à une nouvelle reposição.
    La référence reschedule_id compte autant que le sous-type : une reposição
    d'élève en essai porte le sous-type AULA EXPERIMENTAL.
    """
    if log.reschedule_id is not None or log.subtype == SUBTYPE_RESCHEDULE:
        return False
    return log.presence in ABSENCE_PRESENCES


def count_monthly_reschedules(db: Session, student_id: uuid.UUID, since: datetime) -> int:
    query = select(func.count(Reschedule.id)).where(
        Reschedule.student_id == student_id,
        Reschedule.created_at >= since,
    )
    if settings.RESCHEDULE_CAP_STUDENT_FAULT_ONLY:
        query = query.where(Reschedule.created_by_fault == FAULT_STUDENT)
    return db.execute(query).scalar() or 0


def apply_absence_policy(
    db: Session,
    logs: List[ClassLog],
    now: Optional[datetime] = None,
) -> AbsencePolicyResult:
    """
    Crée les reposições dues pour les absences d'un lot déjà inséré.
    Les reposições créées sont flushées dans la transaction courante ; l'appelant commite.
    """
    now = now or datetime.now()
    since = month_start(now)
    result = AbsencePolicyResult()

    for log in logs:
        if not is_candidate(log):
            continue

        try:
            with db.begin_nested():
                if log.presence == ABSENT_TEACHER:
                    fault = FAULT_TEACHER
                else:
                    used = count_monthly_reschedules(db, log.student_id, since)
                    if used >= settings.MAX_MONTHLY_RESCHEDULES:
                        logger.info(
                            "Plafond de reposições atteint pour l'élève %s (%d ce mois-ci)",
                            log.student_id, used,
                        )
                        if log.student_id not in result.capped:
                            result.capped.append(log.student_id)
                        continue
                    fault = FAULT_STUDENT

                reschedule = Reschedule(
                    id=uuid.uuid4(),
                    tenant_id=log.tenant_id,
                    teacher_id=log.teacher_id,
                    student_id=log.student_id,
                    date=None,
                    time=None,
                    original_booking_id=log.booking_id,
                    created_by_fault=fault,
                    created_at=now,
                )
                db.add(reschedule)
                db.flush()
        except SQLAlchemyError as exc:
            logger.error("Création de reposição impossible pour l'élève %s : %s", log.student_id, exc)
            result.failed.append(log.student_id)
            continue

        result.created.append(reschedule.id)
        logger.info(
            "Reposição %s créée pour l'élève %s (faute %s)",
            reschedule.id, log.student_id, fault,
        )

    return result
