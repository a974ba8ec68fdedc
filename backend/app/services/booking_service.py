"""
Service métier pour les bookings récurrents : attribution d'un élève à un professeur,
contrôle des conflits de créneau, suppression et désattribution.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.booking import Availability, Booking
from app.schemas.booking import AssignmentRequest, BookingResponse, BookingView, UnassignResult
from app.services.errors import SlotConflictError
from app.services.slot_adapters import check_availability, check_conflict, load_availability, load_bookings
from app.services.workflow import run_steps

logger = logging.getLogger(__name__)


def list_bookings(db: Session, teacher_id: uuid.UUID, tenant_id: Optional[str] = None) -> list[BookingView]:
    """Bookings d'un professeur triés par jour puis par heure."""
    bookings = load_bookings(db, teacher_id, tenant_id)
    return [bookings[slot] for slot in sorted(bookings)]


def assign_student(
    db: Session,
    teacher_id: uuid.UUID,
    data: AssignmentRequest,
) -> list[BookingResponse]:
    """
    Attribue un élève à un professeur sur un ou plusieurs jours à la même heure.

    Validations (aucune écriture si l'une échoue) :
    1. Aucun des jours demandés n'est déjà occupé à cette heure
    2. Le professeur a déclaré une disponibilité sur chaque jour demandé
       (si REQUIRE_AVAILABILITY_FOR_BOOKING)

    Écritures (une seule transaction) : un booking par jour, puis suppression des
    disponibilités consommées (un créneau réservé n'est plus libre).
    """
    existing = load_bookings(db, teacher_id)
    conflicts = check_conflict(existing.keys(), data.days, data.time_slot)
    if conflicts:
        raise SlotConflictError(
            f"Conflit : un élève est déjà attribué les jours {', '.join(conflicts)} à {data.time_slot}.",
            conflicts,
        )

    if settings.REQUIRE_AVAILABILITY_FOR_BOOKING:
        unavailable = check_availability(load_availability(db, teacher_id), data.days, data.time_slot)
        if unavailable:
            raise SlotConflictError(
                f"Le professeur n'a pas de disponibilité les jours {', '.join(unavailable)} à {data.time_slot}.",
                unavailable,
            )

    bookings = [
        Booking(
            id=uuid.uuid4(),
            tenant_id=data.tenant_id,
            teacher_id=teacher_id,
            student_id=data.student_id,
            day_of_week=day,
            time_slot=data.time_slot,
            module=data.module,
            type=data.type,
            start_date=data.start_date,
        )
        for day in data.days
    ]

    def insert_bookings() -> None:
        db.add_all(bookings)

    def consume_availability() -> None:
        db.execute(
            delete(Availability).where(
                Availability.teacher_id == teacher_id,
                Availability.day_of_week.in_(data.days),
                Availability.start_time.in_([data.time_slot, f"{data.time_slot}:00"]),
            )
        )

    run_steps(db, "attribution élève", [
        ("insertion des bookings", insert_bookings),
        ("consommation des disponibilités", consume_availability),
    ])
    for booking in bookings:
        db.refresh(booking)

    logger.info(
        "Élève %s attribué au professeur %s : %s à %s (début %s)",
        data.student_id, teacher_id, ", ".join(data.days), data.time_slot, data.start_date or "immédiat",
    )
    return [BookingResponse.model_validate(b) for b in bookings]


def delete_booking(db: Session, booking_id: uuid.UUID) -> bool:
    """Supprime un booking. Retourne True si supprimé, False si introuvable."""
    booking = db.get(Booking, booking_id)
    if booking is None:
        return False

    def remove() -> None:
        db.delete(booking)

    run_steps(db, "suppression booking", [("suppression du booking", remove)])
    logger.info(
        "Booking %s supprimé (professeur %s, %s %s)",
        booking_id, booking.teacher_id, booking.day_of_week, booking.time_slot,
    )
    return True


def unassign_student(db: Session, teacher_id: uuid.UUID, student_id: uuid.UUID) -> UnassignResult:
    """Retire un élève de toute la grille d'un professeur (tous ses bookings récurrents)."""
    booking_ids = db.execute(
        select(Booking.id).where(
            Booking.teacher_id == teacher_id,
            Booking.student_id == student_id,
        )
    ).scalars().all()

    if booking_ids:
        def remove_all() -> None:
            db.execute(delete(Booking).where(Booking.id.in_(booking_ids)))

        run_steps(db, "désattribution élève", [("suppression des bookings", remove_all)])
        logger.info(
            "Élève %s désattribué du professeur %s : %d booking(s) supprimé(s)",
            student_id, teacher_id, len(booking_ids),
        )

    return UnassignResult(teacher_id=teacher_id, student_id=student_id, deleted=len(booking_ids))
