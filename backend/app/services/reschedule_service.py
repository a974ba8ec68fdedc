"""
Service métier pour les reposições : création manuelle, planification,
suppression et liste par professeur.
"""

import uuid
import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.reschedule import Reschedule
from app.schemas.reschedule import (
    PENDING_LABEL,
    SCHEDULED_LABEL,
    RescheduleCreate,
    RescheduleResponse,
    RescheduleSchedule,
)
from app.services.errors import SlotConflictError
from app.services.slots import weekday_name
from app.services.workflow import run_steps

logger = logging.getLogger(__name__)


def to_response(reschedule: Reschedule) -> RescheduleResponse:
    response = RescheduleResponse.model_validate(reschedule)
    response.status = SCHEDULED_LABEL if reschedule.date is not None else PENDING_LABEL
    return response


def _check_slot_free(db: Session, teacher_id: uuid.UUID, day, time_value: str, exclude_id=None) -> None:
    """
    Refuse une date/heure déjà occupée par un booking récurrent ou une autre reposição.
    Un booking dont la start_date est postérieure à la date demandée n'occupe pas encore le créneau.
    """
    label = f"{weekday_name(day)} {day.isoformat()} à {time_value}"

    booked = db.execute(
        select(Booking.id).where(
            Booking.teacher_id == teacher_id,
            Booking.day_of_week == weekday_name(day),
            Booking.time_slot == time_value,
            or_(Booking.start_date.is_(None), Booking.start_date <= day),
        )
    ).scalar()
    if booked is not None:
        raise SlotConflictError(f"Conflit : le professeur a déjà un cours régulier le {label}.", [weekday_name(day)])

    query = select(Reschedule.id).where(
        Reschedule.teacher_id == teacher_id,
        Reschedule.date == day,
        Reschedule.time == time_value,
    )
    if exclude_id is not None:
        query = query.where(Reschedule.id != exclude_id)
    if db.execute(query).scalar() is not None:
        raise SlotConflictError(f"Conflit : une reposição est déjà planifiée le {label}.", [weekday_name(day)])


def list_reschedules(
    db: Session,
    teacher_id: uuid.UUID,
    pending_only: bool = False,
    tenant_id: Optional[str] = None,
) -> List[RescheduleResponse]:
    """Reposições d'un professeur, les plus récentes en premier."""
    query = select(Reschedule).where(Reschedule.teacher_id == teacher_id)
    if pending_only:
        query = query.where(Reschedule.date.is_(None))
    if tenant_id:
        query = query.where(Reschedule.tenant_id == tenant_id)
    reschedules = db.execute(query.order_by(Reschedule.created_at.desc())).scalars().all()
    return [to_response(r) for r in reschedules]


def create_reschedule(db: Session, data: RescheduleCreate) -> RescheduleResponse:
    """
    Crée une reposição manuelle.
    Date et heure vont ensemble : sans elles, la reposição reste à planifier.
    """
    if (data.date is None) != (data.time is None):
        raise ValueError("La date et l'heure d'une reposição doivent être fournies ensemble.")
    if data.date is not None:
        if data.date.weekday() == 6:
            raise ValueError("Aucun cours ne peut être planifié un dimanche.")
        _check_slot_free(db, data.teacher_id, data.date, data.time)

    reschedule = Reschedule(
        id=uuid.uuid4(),
        tenant_id=data.tenant_id,
        teacher_id=data.teacher_id,
        student_id=data.student_id,
        date=data.date,
        time=data.time,
        original_booking_id=data.original_booking_id,
        created_by_fault=data.created_by_fault,
    )

    def insert() -> None:
        db.add(reschedule)

    run_steps(db, "création reposição", [("insertion de la reposição", insert)])
    db.refresh(reschedule)

    logger.info(
        "Reposição %s créée pour l'élève %s (professeur %s, %s)",
        reschedule.id, data.student_id, data.teacher_id,
        f"{data.date} {data.time}" if data.date else PENDING_LABEL,
    )
    return to_response(reschedule)


def schedule_reschedule(
    db: Session,
    reschedule_id: uuid.UUID,
    data: RescheduleSchedule,
) -> Optional[RescheduleResponse]:
    """Planifie (ou replanifie) une reposição. Retourne None si introuvable."""
    reschedule = db.get(Reschedule, reschedule_id)
    if reschedule is None:
        return None

    _check_slot_free(db, reschedule.teacher_id, data.date, data.time, exclude_id=reschedule_id)

    def update() -> None:
        reschedule.date = data.date
        reschedule.time = data.time

    run_steps(db, "planification reposição", [("mise à jour de la reposição", update)])
    db.refresh(reschedule)

    logger.info("Reposição %s planifiée le %s à %s", reschedule_id, data.date, data.time)
    return to_response(reschedule)


def delete_reschedule(db: Session, reschedule_id: uuid.UUID) -> bool:
    """Supprime une reposição. Retourne True si supprimée, False si introuvable."""
    reschedule = db.get(Reschedule, reschedule_id)
    if reschedule is None:
        return False

    def remove() -> None:
        db.delete(reschedule)

    run_steps(db, "suppression reposição", [("suppression de la reposição", remove)])
    logger.info("Reposição %s supprimée (élève %s)", reschedule_id, reschedule.student_id)
    return True
