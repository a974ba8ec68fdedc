"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et fournit un store d'agenda en mémoire pour l'expansion et la réconciliation.
"""

import uuid
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from unittest.mock import MagicMock

from app.database import get_db
from app.main import app
from app.models.booking import Booking
from app.models.class_log import ClassLog
from app.models.profile import Profile
from app.models.reschedule import Reschedule

TEACHER_ID = uuid.UUID("00000000-0000-0000-0000-00000000aaaa")
TENANT_ID = "escola-centro"


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class FakeScheduleStore:
    """
    Store d'agenda en mémoire : mêmes lectures que SqlScheduleStore.
    `fail(stage, key)` simule un échec backend (clé = nom du jour pour "bookings",
    date calendaire pour "reschedules" et "class_logs").
    """

    def __init__(self):
        self.bookings = []
        self.reschedules = []
        self.logs = []
        self.failures = set()
        self.calls = []

    # --- Données ---

    def add_student(self, name="Ana Souza", status="ACTIVE", module="B1") -> Profile:
        return Profile(
            id=uuid.uuid4(), tenant_id=TENANT_ID, full_name=name,
            role="STUDENT", module=module, status=status,
        )

    def add_booking(self, student, day_of_week, time_slot="10:00", start_date=None, teacher_id=TEACHER_ID) -> Booking:
        booking = Booking(
            id=uuid.uuid4(), tenant_id=TENANT_ID, teacher_id=teacher_id,
            student_id=student.id if student else uuid.uuid4(),
            day_of_week=day_of_week, time_slot=time_slot, module="Gen",
            type="Individual", start_date=start_date,
        )
        self.bookings.append((booking, student))
        return booking

    def add_reschedule(self, student, day=None, time="15:00", teacher_id=TEACHER_ID) -> Reschedule:
        reschedule = Reschedule(
            id=uuid.uuid4(), tenant_id=TENANT_ID, teacher_id=teacher_id,
            student_id=student.id, date=day, time=time if day else None,
            created_by_fault="STUDENT",
        )
        self.reschedules.append((reschedule, student))
        return reschedule

    def add_log(self, student_id, class_date=None, booking_id=None, reschedule_id=None,
                created_at=None, presence="Presença") -> ClassLog:
        log = ClassLog(
            id=uuid.uuid4(), tenant_id=TENANT_ID, teacher_id=TEACHER_ID,
            student_id=student_id, booking_id=booking_id, reschedule_id=reschedule_id,
            presence=presence, class_date=class_date,
            created_at=created_at or datetime.combine(class_date or date.today(), datetime.min.time()),
        )
        self.logs.append(log)
        return log

    def fail(self, stage, key):
        self.failures.add((stage, key))

    def _check(self, stage, key):
        self.calls.append((stage, key))
        if (stage, key) in self.failures:
            raise OperationalError("SELECT", {}, Exception("connexion perdue"))

    # --- Lectures ---

    def bookings_on_weekday(self, teacher_id, day_of_week, tenant_id=None):
        self._check("bookings", day_of_week)
        return [
            (b, p) for b, p in self.bookings
            if b.teacher_id == teacher_id and b.day_of_week == day_of_week
            and (tenant_id is None or b.tenant_id == tenant_id)
        ]

    def reschedules_on(self, teacher_id, day, tenant_id=None):
        self._check("reschedules", day)
        return [
            (r, p) for r, p in self.reschedules
            if r.teacher_id == teacher_id and r.date == day
            and (tenant_id is None or r.tenant_id == tenant_id)
        ]

    def class_logs_on(self, teacher_id, day, tenant_id=None):
        self._check("class_logs", day)
        return [
            log for log in self.logs
            if log.teacher_id == teacher_id
            and (log.class_date == day or (log.class_date is None and log.created_at.date() == day))
        ]


@pytest.fixture
def store():
    return FakeScheduleStore()
