"""
Schémas Pydantic des occurrences de cours attendues (dérivées, jamais persistées)
et des résultats de réconciliation avec les class_logs.
"""

import uuid
from datetime import date
from typing import List, Optional

from pydantic import BaseModel

SOURCE_REGULAR = "REGULAR"
SOURCE_RESCHEDULE = "REPOSIÇÃO"
LESSON_TRIAL = "AULA EXPERIMENTAL"

TRIAL_STATUSES = {"TRIAL", "Aula Experimental"}


class Occurrence(BaseModel):
    """Cours attendu à une date donnée, issu d'un booking récurrent ou d'une reposição."""
    source_type: str                # REGULAR, REPOSIÇÃO
    source_id: uuid.UUID
    student_id: uuid.UUID
    student_name: str
    module: str
    date: date
    time: str
    lesson_type: str                # REGULAR, REPOSIÇÃO, AULA EXPERIMENTAL
    is_late: bool = False

    @property
    def key(self) -> str:
        """Identifiant stable côté écran : un booking récurrent est daté, une reposição non."""
        if self.source_type == SOURCE_REGULAR:
            return f"book-{self.source_id}-{self.date.isoformat()}"
        return f"repo-{self.source_id}"


class PartialFailure(BaseModel):
    """Journée ignorée suite à un échec de lecture (bookings, reschedules ou class_logs)."""
    day: date
    stage: str
    message: str


class ExpansionResult(BaseModel):
    occurrences: List[Occurrence]
    failures: List[PartialFailure] = []


class ReconciliationResult(BaseModel):
    """Occurrences sans class_log correspondant sur une fenêtre, et journées non traitées."""
    teacher_id: uuid.UUID
    tenant_id: Optional[str] = None
    window_start: date
    window_end: date
    occurrences: List[Occurrence]
    failures: List[PartialFailure] = []

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)
