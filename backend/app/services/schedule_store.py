"""
Port de lecture du moteur de réconciliation.

L'expanseur d'occurrences et le réconciliateur ne parlent qu'à ce port : trois lectures
par jour calendaire (bookings du jour de semaine, reposições datées du jour, class_logs
du jour). SqlScheduleStore est l'implémentation PostgreSQL ; les tests injectent un
store en mémoire.
"""

import uuid
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Protocol, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.class_log import ClassLog
from app.models.profile import Profile
from app.models.reschedule import Reschedule

BookingRow = Tuple[Booking, Optional[Profile]]
RescheduleRow = Tuple[Reschedule, Optional[Profile]]


class ScheduleStore(Protocol):
    """Lectures nécessaires à l'expansion et à la réconciliation d'une journée."""

    def bookings_on_weekday(
        self, teacher_id: uuid.UUID, day_of_week: str, tenant_id: Optional[str] = None
    ) -> List[BookingRow]:
        ...

    def reschedules_on(
        self, teacher_id: uuid.UUID, day: date, tenant_id: Optional[str] = None
    ) -> List[RescheduleRow]:
        ...

    def class_logs_on(
        self, teacher_id: uuid.UUID, day: date, tenant_id: Optional[str] = None
    ) -> List[ClassLog]:
        ...


class SqlScheduleStore:
    """Implémentation SQLAlchemy du port de lecture."""

    def __init__(self, db: Session):
        self.db = db

    def bookings_on_weekday(self, teacher_id, day_of_week, tenant_id=None):
        query = (
            select(Booking, Profile)
            .outerjoin(Profile, Profile.id == Booking.student_id)
            .where(
                Booking.teacher_id == teacher_id,
                Booking.day_of_week == day_of_week,
            )
            .order_by(Booking.time_slot)
        )
        if tenant_id:
            query = query.where(Booking.tenant_id == tenant_id)
        return [(b, p) for b, p in self.db.execute(query).all()]

    def reschedules_on(self, teacher_id, day, tenant_id=None):
        query = (
            select(Reschedule, Profile)
            .outerjoin(Profile, Profile.id == Reschedule.student_id)
            .where(
                Reschedule.teacher_id == teacher_id,
                Reschedule.date == day,
            )
            .order_by(Reschedule.time)
        )
        if tenant_id:
            query = query.where(Reschedule.tenant_id == tenant_id)
        return [(r, p) for r, p in self.db.execute(query).all()]

    def class_logs_on(self, teacher_id, day, tenant_id=None):
        """
        Logs datés du jour, plus les logs legacy sans class_date créés ce jour-là.
        """
        day_start = datetime.combine(day, time.min)
        query = select(ClassLog).where(
            ClassLog.teacher_id == teacher_id,
            or_(
                ClassLog.class_date == day,
                and_(
                    ClassLog.class_date.is_(None),
                    ClassLog.created_at >= day_start,
                    ClassLog.created_at < day_start + timedelta(days=1),
                ),
            ),
        )
        if tenant_id:
            query = query.where(ClassLog.tenant_id == tenant_id)
        return list(self.db.execute(query).scalars().all())
