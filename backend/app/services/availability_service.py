"""
Service métier pour les disponibilités des professeurs :
publication (remplacement complet), grille hebdomadaire et heatmap par tenant.
"""

import math
import uuid
import logging
from collections import defaultdict
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.booking import Availability, Booking
from app.models.profile import Profile
from app.schemas.availability import (
    CELL_AVAILABLE,
    CELL_BOOKED,
    CELL_FREE,
    AvailabilityPublish,
    AvailabilityPublishResult,
    AvailabilityResponse,
    HeatmapCell,
    HeatmapResponse,
    WeekGridCell,
    WeekGridResponse,
)
from app.services.errors import SlotConflictError
from app.services.slot_adapters import load_availability, load_bookings
from app.services.slots import DAYS, TIMES, WeekSlot
from app.services.workflow import run_steps

logger = logging.getLogger(__name__)


def get_availability(db: Session, teacher_id: uuid.UUID) -> AvailabilityResponse:
    slots = sorted(load_availability(db, teacher_id))
    return AvailabilityResponse(
        teacher_id=teacher_id,
        slots=[s.key for s in slots],
        total=len(slots),
    )


def publish_availability(
    db: Session,
    teacher_id: uuid.UUID,
    data: AvailabilityPublish,
) -> AvailabilityPublishResult:
    """
    Remplace l'ensemble des disponibilités d'un professeur.

    Étapes (une seule transaction) :
    1. Refuser les créneaux déjà occupés par un booking
    2. Supprimer toutes les disponibilités existantes du professeur
    3. Insérer en bulk le nouvel ensemble
    En cas d'échec à l'étape 3, la suppression est annulée : le professeur conserve
    ses anciennes disponibilités au lieu de se retrouver sans aucune.
    """
    slots = sorted(data.week_slots())

    booked = load_bookings(db, teacher_id)
    clashing = [s for s in slots if s in booked]
    if clashing:
        labels = [f"{s.day_name} {s.time}" for s in clashing]
        raise SlotConflictError(
            f"Créneaux déjà réservés, impossible de les déclarer libres : {', '.join(labels)}.",
            [s.key for s in clashing],
        )

    removed = 0

    def delete_previous() -> None:
        nonlocal removed
        result = db.execute(delete(Availability).where(Availability.teacher_id == teacher_id))
        removed = result.rowcount or 0

    def insert_new() -> None:
        if slots:
            db.bulk_insert_mappings(Availability, [
                {"teacher_id": teacher_id, "day_of_week": s.day_name, "start_time": s.time}
                for s in slots
            ])

    run_steps(db, "publication des disponibilités", [
        ("suppression des disponibilités", delete_previous),
        ("insertion des disponibilités", insert_new),
    ])

    logger.info(
        "Disponibilités publiées pour le professeur %s : %d supprimées, %d insérées",
        teacher_id, removed, len(slots),
    )
    return AvailabilityPublishResult(
        teacher_id=teacher_id,
        removed=removed,
        inserted=len(slots),
        slots=[s.key for s in slots],
    )


def get_week_grid(db: Session, teacher_id: uuid.UUID, tenant_id: Optional[str] = None) -> WeekGridResponse:
    """
    Construit la grille 6 × 37 d'un professeur.
    Un créneau réservé l'emporte sur une disponibilité au même créneau.
    """
    available = load_availability(db, teacher_id)
    try:
        bookings = load_bookings(db, teacher_id, tenant_id)
    except SQLAlchemyError as exc:
        logger.warning("Lecture des bookings impossible (professeur %s) : %s", teacher_id, exc)
        bookings = {}

    cells = []
    for day_index, day_name in enumerate(DAYS):
        for time_value in TIMES:
            slot = WeekSlot(day_index, time_value)
            if slot in bookings:
                state, booking = CELL_BOOKED, bookings[slot]
            elif slot in available:
                state, booking = CELL_AVAILABLE, None
            else:
                state, booking = CELL_FREE, None
            cells.append(WeekGridCell(
                day_index=day_index,
                day_of_week=day_name,
                time=time_value,
                state=state,
                booking=booking,
            ))

    booked_count = len(bookings)
    available_count = len(available - bookings.keys())
    total = booked_count + available_count
    occupancy = math.floor(booked_count * 100 / (total or 1) + 0.5)

    return WeekGridResponse(
        teacher_id=teacher_id,
        days=DAYS,
        times=TIMES,
        cells=cells,
        booked_count=booked_count,
        available_count=available_count,
        occupancy_rate=occupancy,
    )


def get_availability_heatmap(db: Session, tenant_id: str) -> HeatmapResponse:
    """
    Compte, pour chaque créneau, les professeurs du tenant encore libres
    (disponibilité déclarée et pas de booking à ce créneau).
    """
    teacher_ids = db.execute(
        select(Profile.id).where(
            Profile.tenant_id == tenant_id,
            Profile.role == "TEACHER",
        )
    ).scalars().all()

    counts: dict[WeekSlot, int] = defaultdict(int)
    if teacher_ids:
        availabilities = db.execute(
            select(Availability).where(Availability.teacher_id.in_(teacher_ids))
        ).scalars().all()
        bookings = db.execute(
            select(Booking).where(
                Booking.teacher_id.in_(teacher_ids),
                Booking.tenant_id == tenant_id,
            )
        ).scalars().all()

        booked = {
            (b.teacher_id, WeekSlot.from_persisted(b.day_of_week, b.time_slot))
            for b in bookings
        }
        free = {
            (a.teacher_id, WeekSlot.from_persisted(a.day_of_week, a.start_time))
            for a in availabilities
        }
        for teacher_id, slot in free - booked:
            if slot is not None:
                counts[slot] += 1

    cells = [
        HeatmapCell(
            day_index=day_index,
            day_of_week=day_name,
            time=time_value,
            available_teachers=counts.get(WeekSlot(day_index, time_value), 0),
        )
        for day_index, day_name in enumerate(DAYS)
        for time_value in TIMES
    ]
    return HeatmapResponse(
        tenant_id=tenant_id,
        total_teachers=len(teacher_ids),
        max_available=max(counts.values(), default=0),
        cells=cells,
    )
