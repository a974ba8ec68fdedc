"""
Schémas Pydantic pour les disponibilités, la grille hebdomadaire et la heatmap.
Les créneaux circulent sous leur clé "{jour}-{heure}" (ex. "0-08:00" = Segunda 08:00).
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.schemas.booking import BookingView
from app.services.slots import WeekSlot

CELL_FREE = "FREE"
CELL_AVAILABLE = "AVAILABLE"
CELL_BOOKED = "BOOKED"


class AvailabilityPublish(BaseModel):
    """Corps de requête : ensemble complet des créneaux libres (remplace l'existant)."""
    slots: List[str]

    @field_validator("slots")
    @classmethod
    def valid_slot_keys(cls, v: List[str]) -> List[str]:
        normalized = []
        for key in v:
            try:
                slot = WeekSlot.from_key(key.strip())
            except ValueError as e:
                raise ValueError(f"Créneau invalide '{key}' : {e}")
            if slot.key not in normalized:
                normalized.append(slot.key)
        return normalized

    def week_slots(self) -> set[WeekSlot]:
        return {WeekSlot.from_key(k) for k in self.slots}


class AvailabilityResponse(BaseModel):
    teacher_id: uuid.UUID
    slots: List[str]
    total: int


class AvailabilityPublishResult(BaseModel):
    """Rapport de publication : anciens créneaux supprimés, nouveaux insérés."""
    teacher_id: uuid.UUID
    removed: int
    inserted: int
    slots: List[str]


class WeekGridCell(BaseModel):
    day_index: int
    day_of_week: str
    time: str
    state: str                      # FREE, AVAILABLE, BOOKED
    booking: Optional[BookingView] = None


class WeekGridResponse(BaseModel):
    """Grille 6 × 37 d'un professeur avec son taux d'occupation."""
    teacher_id: uuid.UUID
    days: List[str]
    times: List[str]
    cells: List[WeekGridCell]
    booked_count: int
    available_count: int
    occupancy_rate: int             # pourcentage arrondi


class HeatmapCell(BaseModel):
    day_index: int
    day_of_week: str
    time: str
    available_teachers: int


class HeatmapResponse(BaseModel):
    """Nombre de professeurs disponibles par créneau pour un tenant."""
    tenant_id: str
    total_teachers: int
    max_available: int
    cells: List[HeatmapCell]
