"""
Modèle de créneaux hebdomadaires (grille jour × heure).

La semaine planifiable va de Segunda (0) à Sábado (5) ; Domingo n'a jamais d'index.
La grille horaire compte 37 pas de 30 minutes de 06:00 à 24:00, le dernier étant
étiqueté "00:00". Ces valeurs sont persistées telles quelles dans bookings,
availabilities et reschedules : ne pas modifier le format.
"""

from dataclasses import dataclass
from functools import total_ordering
from datetime import date, time as dt_time
from typing import Optional, Union

DAYS = ["Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado"]
SUNDAY = "Domingo"

# date.weekday() : 0 = lundi … 6 = dimanche
_WEEKDAY_NAMES = DAYS + [SUNDAY]

GRID_START_HOUR = 6
GRID_SIZE = 37
MIDNIGHT_LABEL = "00:00"


def weekday_index(name: str) -> Optional[int]:
    """Retourne l'index 0..5 d'un nom de jour, ou None (Domingo ou nom inconnu)."""
    try:
        return DAYS.index(name.strip())
    except (AttributeError, ValueError):
        return None


def weekday_name(day: date) -> str:
    """Nom du jour (pt-BR) d'une date calendaire, Domingo compris."""
    return _WEEKDAY_NAMES[day.weekday()]


def is_schedulable(day: date) -> bool:
    return day.weekday() < len(DAYS)


def time_grid() -> list[str]:
    """Les 37 heures de la grille, de "06:00" à "00:00" (= 24:00)."""
    times = []
    for i in range(GRID_SIZE):
        hour = i // 2 + GRID_START_HOUR
        minutes = "00" if i % 2 == 0 else "30"
        if hour == 24:
            times.append(MIDNIGHT_LABEL)
        else:
            times.append(f"{hour:02d}:{minutes}")
    return times


TIMES = time_grid()


def normalize_time(value: Union[str, dt_time, None]) -> Optional[str]:
    """
    Ramène une heure persistée au format de la grille "HH:MM".
    Accepte "HH:MM", "HH:MM:SS" (colonnes time Postgres) et datetime.time.
    """
    if value is None:
        return None
    if isinstance(value, dt_time):
        return value.strftime("%H:%M")
    value = str(value).strip()
    if len(value) < 5 or value[2] != ":":
        return None
    return value[:5]


def is_valid_slot_time(value: Union[str, dt_time, None]) -> bool:
    return normalize_time(value) in TIMES


def slot_minutes(value: str) -> int:
    """
    Minutes écoulées depuis 00:00 pour une heure de la grille.
    L'étiquette "00:00" désigne la fin de journée (24:00).
    """
    normalized = normalize_time(value)
    if normalized is None:
        raise ValueError(f"Heure invalide : {value!r}")
    hours, minutes = int(normalized[:2]), int(normalized[3:])
    if normalized == MIDNIGHT_LABEL:
        return 24 * 60
    return hours * 60 + minutes


def slot_key(day_index: int, time_value: str) -> str:
    """Clé composite "{jour}-{heure}" utilisée par les écrans de grille."""
    return f"{day_index}-{time_value}"


@total_ordering
@dataclass(frozen=True)
class WeekSlot:
    """Cellule (jour, heure) de la grille hebdomadaire. Tri par jour puis heure, "00:00" en dernier."""
    day_index: int
    time: str

    def __post_init__(self):
        if not 0 <= self.day_index < len(DAYS):
            raise ValueError(f"Jour hors grille : {self.day_index}")
        normalized = normalize_time(self.time)
        if normalized not in TIMES:
            raise ValueError(f"Heure hors grille : {self.time!r}")
        object.__setattr__(self, "time", normalized)

    def __lt__(self, other: "WeekSlot") -> bool:
        if not isinstance(other, WeekSlot):
            return NotImplemented
        return (self.day_index, slot_minutes(self.time)) < (other.day_index, slot_minutes(other.time))

    @property
    def day_name(self) -> str:
        return DAYS[self.day_index]

    @property
    def key(self) -> str:
        return slot_key(self.day_index, self.time)

    @classmethod
    def from_key(cls, key: str) -> "WeekSlot":
        day_part, _, time_part = key.partition("-")
        if not day_part.isdigit() or not time_part:
            raise ValueError(f"Clé de créneau invalide : {key!r}")
        return cls(int(day_part), time_part)

    @classmethod
    def from_persisted(cls, day_of_week: str, time_value) -> Optional["WeekSlot"]:
        """Construit un créneau depuis (day_of_week, heure) persistés, None si hors grille."""
        index = weekday_index(day_of_week) if day_of_week else None
        normalized = normalize_time(time_value)
        if index is None or normalized not in TIMES:
            return None
        return cls(index, normalized)
