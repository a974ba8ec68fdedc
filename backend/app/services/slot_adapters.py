"""
Adaptateurs entre la représentation persistée (day_of_week + heure en colonnes séparées)
et la grille en mémoire indexée par WeekSlot.
"""

import uuid
import logging
from typing import Iterable, Optional
from urllib.parse import quote_plus

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.booking import Availability, Booking
from app.models.profile import Profile
from app.schemas.booking import BookingView
from app.services.slots import WeekSlot, normalize_time, weekday_index

logger = logging.getLogger(__name__)

DEFAULT_STUDENT_NAME = "Aluno"
DEFAULT_MODULE = "Gen"


def load_availability(db: Session, teacher_id: uuid.UUID) -> set[WeekSlot]:
    """
    Retourne les créneaux libres déclarés par un professeur.
    En cas d'erreur backend, retourne un ensemble vide : aucune disponibilité déclarée.
    """
    try:
        rows = db.execute(
            select(Availability).where(Availability.teacher_id == teacher_id)
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Lecture des disponibilités impossible (professeur %s) : %s", teacher_id, exc)
        return set()

    slots = set()
    for row in rows:
        slot = WeekSlot.from_persisted(row.day_of_week, row.start_time)
        if slot is None:
            logger.debug("Disponibilité hors grille ignorée : %s %s", row.day_of_week, row.start_time)
            continue
        slots.add(slot)
    return slots


def load_bookings(
    db: Session,
    teacher_id: uuid.UUID,
    tenant_id: Optional[str] = None,
) -> dict[WeekSlot, BookingView]:
    """
    Retourne les bookings récurrents d'un professeur indexés par créneau,
    avec les informations élève dénormalisées (nom, module, avatar).
    Les erreurs backend sont propagées : ce chargement sert aussi aux contrôles de conflit.
    """
    query = (
        select(Booking, Profile)
        .outerjoin(Profile, Profile.id == Booking.student_id)
        .where(Booking.teacher_id == teacher_id)
    )
    if tenant_id:
        query = query.where(Booking.tenant_id == tenant_id)

    bookings: dict[WeekSlot, BookingView] = {}
    for booking, student in db.execute(query).all():
        slot = WeekSlot.from_persisted(booking.day_of_week, booking.time_slot)
        if slot is None:
            continue
        if slot in bookings:
            logger.warning(
                "Créneau %s du professeur %s déjà occupé : booking %s ignoré",
                slot.key, teacher_id, booking.id,
            )
            continue
        bookings[slot] = to_booking_view(booking, student)
    return bookings


def to_booking_view(booking: Booking, student: Optional[Profile]) -> BookingView:
    name = (student.full_name if student else None) or DEFAULT_STUDENT_NAME
    module = (student.module if student else None) or booking.module or DEFAULT_MODULE
    avatar = (student.avatar_url if student else None) or f"https://ui-avatars.com/api/?name={quote_plus(name)}"
    return BookingView(
        id=booking.id,
        student_id=booking.student_id,
        student_name=name,
        module=module,
        type=booking.type,
        avatar_url=avatar,
        day_of_week=booking.day_of_week,
        time_slot=normalize_time(booking.time_slot),
        start_date=booking.start_date,
    )


def check_conflict(
    existing: Iterable[WeekSlot],
    candidate_days: list[str],
    candidate_time: str,
) -> list[str]:
    """
    Retourne, dans l'ordre de la demande, les jours déjà occupés à l'heure demandée.
    Un créneau ne peut résoudre qu'un seul booking actif.
    """
    occupied = set(existing)
    time_key = normalize_time(candidate_time)
    return [
        day for day in candidate_days
        if weekday_index(day) is not None and WeekSlot(weekday_index(day), time_key) in occupied
    ]


def check_availability(
    available: Iterable[WeekSlot],
    candidate_days: list[str],
    candidate_time: str,
) -> list[str]:
    """Retourne les jours demandés pour lesquels le professeur n'a déclaré aucune disponibilité."""
    free = set(available)
    time_key = normalize_time(candidate_time)
    return [
        day for day in candidate_days
        if weekday_index(day) is None or WeekSlot(weekday_index(day), time_key) not in free
    ]
