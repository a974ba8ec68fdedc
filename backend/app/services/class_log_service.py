"""
Enregistrement en lot des class_logs d'un professeur.

Stratégie (même principe que la synchronisation idempotente) :
- Doublons intra-lot gérés en mémoire (autoflush=False)
- Doublons déjà en base détectés avant insertion et rapportés, sans erreur
- Insertion des logs puis suppression des reposições consommées : une seule transaction
- Politique d'absence appliquée ensuite, absence par absence
"""

import uuid
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.class_log import ClassLog
from app.models.reschedule import Reschedule
from app.schemas.class_log import (
    SUBTYPE_RESCHEDULE,
    SUBTYPE_TRIAL,
    AbsencePolicyResult,
    ClassLogBatch,
    ClassLogBatchResult,
    ClassLogEntry,
)
from app.schemas.lesson import SOURCE_REGULAR, SOURCE_RESCHEDULE
from app.services.absence_policy import apply_absence_policy, is_candidate
from app.services.workflow import run_steps

logger = logging.getLogger(__name__)


def resolve_subtype(entry: ClassLogEntry) -> Optional[str]:
    if entry.is_trial:
        return SUBTYPE_TRIAL
    if entry.source_type == SOURCE_RESCHEDULE:
        return SUBTYPE_RESCHEDULE
    return entry.subtype


def is_already_logged(db: Session, entry: ClassLogEntry) -> bool:
    if entry.source_type == SOURCE_REGULAR:
        query = select(ClassLog.id).where(
            ClassLog.booking_id == entry.source_id,
            ClassLog.class_date == entry.class_date,
        )
    else:
        query = select(ClassLog.id).where(ClassLog.reschedule_id == entry.source_id)
    return db.execute(query).scalar() is not None


def build_log(teacher_id: uuid.UUID, tenant_id: str, entry: ClassLogEntry) -> ClassLog:
    regular = entry.source_type == SOURCE_REGULAR
    return ClassLog(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        teacher_id=teacher_id,
        student_id=entry.student_id,
        booking_id=entry.source_id if regular else None,
        reschedule_id=None if regular else entry.source_id,
        presence=entry.presence,
        subtype=resolve_subtype(entry),
        content_covered=entry.content_covered,
        observations=entry.observations,
        homework_assigned=entry.homework_assigned,
        student_difficulties=entry.student_difficulties,
        class_date=entry.class_date,
    )


def record_class_logs(
    db: Session,
    teacher_id: uuid.UUID,
    batch: ClassLogBatch,
    now: Optional[datetime] = None,
) -> ClassLogBatchResult:
    """
    Enregistre un lot de cours (présence + contenu).

    Pour chaque entrée :
    1. Ignorée si sa clé d'occurrence a déjà été vue dans CE lot
    2. Ignorée si un class_log la référence déjà en base
    3. Sinon un ClassLog est préparé ; une reposição référencée sera consommée

    Les insertions et la consommation des reposições sont commitées ensemble,
    la politique d'absence est commitée séparément.
    """
    logs: List[ClassLog] = []
    duplicate: List[str] = []
    consumed: List[uuid.UUID] = []
    seen_in_batch: set = set()

    for entry in batch.entries:
        if entry.key in seen_in_batch:
            duplicate.append(entry.key)
            logger.debug("Doublon intra-lot ignoré : %s", entry.key)
            continue

        if is_already_logged(db, entry):
            duplicate.append(entry.key)
            logger.debug("Cours déjà enregistré, ignoré : %s", entry.key)
            continue

        logs.append(build_log(teacher_id, batch.tenant_id, entry))
        seen_in_batch.add(entry.key)
        if entry.source_type == SOURCE_RESCHEDULE:
            consumed.append(entry.source_id)

    if not logs:
        logger.info("Lot du professeur %s : %d reçus, aucun nouveau cours", teacher_id, len(batch.entries))
        return ClassLogBatchResult(
            inserted=[],
            duplicate=duplicate,
            consumed_reschedules=[],
            absence_policy=AbsencePolicyResult(),
            total_received=len(batch.entries),
            total_inserted=0,
        )

    def insert_logs() -> None:
        db.add_all(logs)

    def consume_reschedules() -> None:
        if consumed:
            db.execute(delete(Reschedule).where(Reschedule.id.in_(consumed)))

    run_steps(db, "enregistrement des cours", [
        ("insertion des class_logs", insert_logs),
        ("consommation des reposições", consume_reschedules),
    ])

    policy = apply_absence_policy(db, logs, now)
    if policy.created:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Commit des reposições impossible (professeur %s) : %s", teacher_id, exc)
            policy.failed.extend(
                log.student_id for log in logs
                if is_candidate(log) and log.student_id not in policy.capped
            )
            policy.created = []

    logger.info(
        "Lot du professeur %s : %d reçus, %d insérés, %d doublons, %d reposições consommées, %d créées",
        teacher_id, len(batch.entries), len(logs), len(duplicate), len(consumed), len(policy.created),
    )

    return ClassLogBatchResult(
        inserted=[log.id for log in logs],
        duplicate=duplicate,
        consumed_reschedules=consumed,
        absence_policy=policy,
        total_received=len(batch.entries),
        total_inserted=len(logs),
    )
