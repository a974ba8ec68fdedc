"""
Schémas Pydantic pour l'enregistrement en lot des class_logs (présence + contenu).
Endpoint : POST /api/v1/teachers/{teacher_id}/class-logs
"""

import uuid
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.schemas.lesson import SOURCE_REGULAR, SOURCE_RESCHEDULE

PRESENT = "Presença"
ABSENT = "Falta"
ABSENT_JUSTIFIED = "Falta Justificada"
ABSENT_TEACHER = "Falta do Professor"

VALID_PRESENCES = {PRESENT, ABSENT, ABSENT_JUSTIFIED, ABSENT_TEACHER}
ABSENCE_PRESENCES = {ABSENT, ABSENT_JUSTIFIED, ABSENT_TEACHER}

SUBTYPE_RESCHEDULE = "REPOSIÇÃO"
SUBTYPE_TRIAL = "AULA EXPERIMENTAL"

FAULT_TEACHER = "TEACHER"
FAULT_STUDENT = "STUDENT"

MAX_BATCH_SIZE = 200


class ClassLogEntry(BaseModel):
    """Une occurrence à enregistrer, identifiée par sa source (booking ou reposição)."""
    source_type: str                # REGULAR, REPOSIÇÃO
    source_id: uuid.UUID
    student_id: uuid.UUID
    class_date: date
    presence: str = PRESENT
    subtype: Optional[str] = None   # Motif d'absence libre (Doença, Trabalho, Viagem, Outros)
    is_trial: bool = False          # Aula experimental (élève en essai)
    content_covered: Optional[str] = None
    observations: Optional[str] = None
    homework_assigned: Optional[str] = None
    student_difficulties: Optional[str] = None

    @property
    def key(self) -> str:
        """Même clé que l'occurrence d'origine."""
        if self.source_type == SOURCE_REGULAR:
            return f"book-{self.source_id}-{self.class_date.isoformat()}"
        return f"repo-{self.source_id}"

    @field_validator("source_type")
    @classmethod
    def valid_source_type(cls, v: str) -> str:
        if v not in {SOURCE_REGULAR, SOURCE_RESCHEDULE}:
            raise ValueError(f"Source invalide. Valeurs acceptées : {SOURCE_REGULAR}, {SOURCE_RESCHEDULE}")
        return v

    @field_validator("class_date")
    @classmethod
    def not_sunday(cls, v: date) -> date:
        if v.weekday() == 6:
            raise ValueError("Aucun cours n'a lieu le dimanche.")
        return v

    @field_validator("presence")
    @classmethod
    def valid_presence(cls, v: str) -> str:
        if v not in VALID_PRESENCES:
            raise ValueError(f"Présence invalide. Valeurs acceptées : {VALID_PRESENCES}")
        return v


class ClassLogBatch(BaseModel):
    """Corps de la requête d'enregistrement en lot."""
    tenant_id: str
    entries: List[ClassLogEntry]

    @field_validator("tenant_id")
    @classmethod
    def tenant_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le tenant ne peut pas être vide.")
        return v.strip()

    @field_validator("entries")
    @classmethod
    def entries_size(cls, v: List[ClassLogEntry]) -> List[ClassLogEntry]:
        if not v:
            raise ValueError("Le lot ne contient aucun cours.")
        if len(v) > MAX_BATCH_SIZE:
            raise ValueError(f"Lot trop grand : maximum {MAX_BATCH_SIZE} cours par requête.")
        return v


class AbsencePolicyResult(BaseModel):
    """Reposições générées par les absences d'un lot."""
    created: List[uuid.UUID] = []       # ids des reposições créées
    capped: List[uuid.UUID] = []        # élèves ayant atteint le plafond mensuel
    failed: List[uuid.UUID] = []        # élèves dont la création a échoué (loggé, non bloquant)


class ClassLogBatchResult(BaseModel):
    """Rapport d'enregistrement retourné au client."""
    inserted: List[uuid.UUID]           # ids des class_logs créés
    duplicate: List[str]                # clés d'occurrence déjà enregistrées
    consumed_reschedules: List[uuid.UUID]
    absence_policy: AbsencePolicyResult
    total_received: int
    total_inserted: int
