"""
Expansion des cours attendus sur une plage de dates.

Pour chaque jour calendaire :
1. Domingo est ignoré (aucun cours)
2. Les bookings du jour de semaine produisent une occurrence REGULAR,
   sauf si le booking n'a pas encore commencé (start_date > jour)
3. Les reposições datées du jour produisent une occurrence REPOSIÇÃO, sans condition
4. Pour le jour courant (si `now` est fourni), les cours dont l'heure n'est pas
   encore arrivée sont retirés
"""

import uuid
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.models.booking import Booking
from app.models.profile import Profile
from app.models.reschedule import Reschedule
from app.schemas.lesson import (
    LESSON_TRIAL,
    SOURCE_REGULAR,
    SOURCE_RESCHEDULE,
    TRIAL_STATUSES,
    ExpansionResult,
    Occurrence,
    PartialFailure,
)
from app.services.errors import DayFetchError
from app.services.schedule_store import ScheduleStore
from app.services.slots import is_schedulable, normalize_time, slot_minutes, weekday_name

logger = logging.getLogger(__name__)

DEFAULT_STUDENT_NAME = "Aluno"
DEFAULT_MODULE = "N/A"
UNSCHEDULED_TIME = "Pendente"


def date_range(start: date, end: date) -> Iterator[date]:
    """Jours de start à end inclus, en ordre croissant."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def fetch(stage: str, read: Callable, *args):
    """Exécute une lecture du store ; un échec backend devient une DayFetchError nommant l'étape."""
    try:
        return read(*args)
    except SQLAlchemyError as exc:
        raise DayFetchError(stage, exc) from exc


def expand_day(
    store: ScheduleStore,
    teacher_id: uuid.UUID,
    day: date,
    tenant_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Occurrence]:
    """
    Occurrences attendues pour un professeur à une date donnée.
    Lève DayFetchError si une lecture échoue.
    """
    if not is_schedulable(day):
        return []

    occurrences = []
    for booking, student in fetch("bookings", store.bookings_on_weekday, teacher_id, weekday_name(day), tenant_id):
        # Les bookings ne sont pas rétroactifs
        if booking.start_date and day < booking.start_date:
            continue
        occurrence = _from_booking(booking, student, day)
        if occurrence is not None:
            occurrences.append(occurrence)

    for reschedule, student in fetch("reschedules", store.reschedules_on, teacher_id, day, tenant_id):
        occurrences.append(_from_reschedule(reschedule, student, day))

    if now is not None and day == now.date():
        current = now.hour * 60 + now.minute
        occurrences = [o for o in occurrences if _has_started(o, current)]

    return occurrences


def expand_occurrences(
    store: ScheduleStore,
    teacher_id: uuid.UUID,
    start: date,
    end: date,
    tenant_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ExpansionResult:
    """
    Occurrences attendues sur [start, end], jour par jour en ordre croissant.
    Une journée dont une lecture échoue est ignorée et signalée dans `failures`.
    """
    occurrences: List[Occurrence] = []
    failures: List[PartialFailure] = []

    for day in date_range(start, end):
        try:
            occurrences.extend(expand_day(store, teacher_id, day, tenant_id, now))
        except DayFetchError as exc:
            logger.warning("Expansion du %s ignorée (professeur %s) : %s", day, teacher_id, exc)
            failures.append(PartialFailure(day=day, stage=exc.stage, message=str(exc.cause)))

    return ExpansionResult(occurrences=occurrences, failures=failures)


def _has_started(occurrence: Occurrence, current_minutes: int) -> bool:
    try:
        return slot_minutes(occurrence.time) <= current_minutes
    except ValueError:
        # Reposição datée sans heure : considérée comme due
        return True


def _lesson_type(source_type: str, student: Optional[Profile]) -> str:
    if student is not None and student.status in TRIAL_STATUSES:
        return LESSON_TRIAL
    return source_type


def _from_booking(booking: Booking, student: Optional[Profile], day: date) -> Optional[Occurrence]:
    time_value = normalize_time(booking.time_slot)
    if time_value is None:
        logger.warning("Booking %s ignoré : heure illisible %r", booking.id, booking.time_slot)
        return None
    return Occurrence(
        source_type=SOURCE_REGULAR,
        source_id=booking.id,
        student_id=booking.student_id,
        student_name=(student.full_name if student else None) or DEFAULT_STUDENT_NAME,
        module=(student.module if student else None) or booking.module or DEFAULT_MODULE,
        date=day,
        time=time_value,
        lesson_type=_lesson_type(SOURCE_REGULAR, student),
    )


def _from_reschedule(reschedule: Reschedule, student: Optional[Profile], day: date) -> Occurrence:
    return Occurrence(
        source_type=SOURCE_RESCHEDULE,
        source_id=reschedule.id,
        student_id=reschedule.student_id,
        student_name=(student.full_name if student else None) or DEFAULT_STUDENT_NAME,
        module=(student.module if student else None) or DEFAULT_MODULE,
        date=day,
        time=normalize_time(reschedule.time) or UNSCHEDULED_TIME,
        lesson_type=_lesson_type(SOURCE_RESCHEDULE, student),
    )
