"""
Réconciliation des cours attendus avec les class_logs enregistrés.

Deux fenêtres :
- "à enregistrer aujourd'hui" : aujourd'hui et les DUE_TODAY_LOOKBACK_DAYS jours précédents,
  parcourus depuis aujourd'hui ; les cours des jours passés sont marqués en retard
- "en attente" : de PENDING_WINDOW_START_DAYS à PENDING_GRACE_DAYS jours dans le passé,
  en ordre croissant

Une occurrence est considérée enregistrée si un class_log du même jour la référence :
- REGULAR : même booking_id et même date
- REPOSIÇÃO : même reschedule_id
- sinon, à défaut : même élève et même date (logs sans référence de source)
"""

import uuid
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from app.config import settings
from app.models.class_log import ClassLog
from app.schemas.lesson import (
    SOURCE_REGULAR,
    SOURCE_RESCHEDULE,
    Occurrence,
    PartialFailure,
    ReconciliationResult,
)
from app.services.errors import DayFetchError
from app.services.occurrence_service import expand_day, fetch
from app.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


def log_date(log: ClassLog) -> Optional[date]:
    """Date du cours d'un log ; date de création pour les logs legacy sans class_date."""
    if log.class_date is not None:
        return log.class_date
    if log.created_at is not None:
        return log.created_at.date()
    return None


def has_matching_log(occurrence: Occurrence, logs: Iterable[ClassLog]) -> bool:
    for log in logs:
        if occurrence.source_type == SOURCE_REGULAR:
            if log.booking_id == occurrence.source_id and log_date(log) == occurrence.date:
                return True
        elif occurrence.source_type == SOURCE_RESCHEDULE:
            if log.reschedule_id == occurrence.source_id:
                return True
        if log.student_id == occurrence.student_id and log_date(log) == occurrence.date:
            return True
    return False


def unlogged_on(
    store: ScheduleStore,
    teacher_id: uuid.UUID,
    day: date,
    tenant_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Occurrence]:
    """Occurrences d'une journée sans class_log correspondant. Lève DayFetchError."""
    occurrences = expand_day(store, teacher_id, day, tenant_id, now)
    if not occurrences:
        return []
    logs = fetch("class_logs", store.class_logs_on, teacher_id, day, tenant_id)
    return [o for o in occurrences if not has_matching_log(o, logs)]


def reconcile_window(
    store: ScheduleStore,
    teacher_id: uuid.UUID,
    days: Iterable[date],
    tenant_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[List[Occurrence], List[PartialFailure]]:
    """
    Réconcilie chaque jour dans l'ordre donné.
    Un jour dont une lecture échoue est ignoré, les autres sont traités normalement.
    """
    occurrences: List[Occurrence] = []
    failures: List[PartialFailure] = []
    for day in days:
        try:
            occurrences.extend(unlogged_on(store, teacher_id, day, tenant_id, now))
        except DayFetchError as exc:
            logger.warning("Réconciliation du %s ignorée (professeur %s) : %s", day, teacher_id, exc)
            failures.append(PartialFailure(day=day, stage=exc.stage, message=str(exc.cause)))
    return occurrences, failures


def find_due_today(
    store: ScheduleStore,
    teacher_id: uuid.UUID,
    tenant_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReconciliationResult:
    """
    Cours à enregistrer : ceux d'aujourd'hui déjà commencés, puis ceux des
    jours précédents non enregistrés (en retard).
    """
    now = now or datetime.now()
    today = now.date()
    days = [today - timedelta(days=i) for i in range(settings.DUE_TODAY_LOOKBACK_DAYS + 1)]

    occurrences, failures = reconcile_window(store, teacher_id, days, tenant_id, now)
    for occurrence in occurrences:
        occurrence.is_late = occurrence.date < today
    # Tri stable : l'ordre de parcours est conservé à retard égal
    occurrences.sort(key=lambda o: o.is_late)

    return ReconciliationResult(
        teacher_id=teacher_id,
        tenant_id=tenant_id,
        window_start=days[-1],
        window_end=today,
        occurrences=occurrences,
        failures=failures,
    )


def find_pending_lessons(
    store: ScheduleStore,
    teacher_id: uuid.UUID,
    tenant_id: Optional[str] = None,
    today: Optional[date] = None,
) -> ReconciliationResult:
    """Cours anciens jamais enregistrés, du plus ancien au plus récent."""
    today = today or date.today()
    start = today - timedelta(days=settings.PENDING_WINDOW_START_DAYS)
    end = today - timedelta(days=settings.PENDING_GRACE_DAYS)
    days = [start + timedelta(days=i) for i in range((end - start).days + 1)]

    occurrences, failures = reconcile_window(store, teacher_id, days, tenant_id)
    for occurrence in occurrences:
        occurrence.is_late = True

    if failures:
        logger.warning(
            "Cours en attente du professeur %s : %d journée(s) non traitée(s)",
            teacher_id, len(failures),
        )
    return ReconciliationResult(
        teacher_id=teacher_id,
        tenant_id=tenant_id,
        window_start=start,
        window_end=end,
        occurrences=occurrences,
        failures=failures,
    )
