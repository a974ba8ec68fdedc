"""
Exceptions métier du moteur d'agenda.

Les violations de règles restent des ValueError (traduites en 404/409 par les routers) ;
les échecs d'écriture en base sont remontés en WriteFailedError avec le message brut du backend.
"""

from typing import List


class SchedulingError(Exception):
    """Base des erreurs du moteur d'agenda."""


class SlotConflictError(SchedulingError, ValueError):
    """Un ou plusieurs jours demandés sont déjà occupés (ou indisponibles) à cette heure."""

    def __init__(self, message: str, days: List[str]):
        super().__init__(message)
        self.days = days


class DayFetchError(SchedulingError):
    """Lecture impossible pour une journée ; la journée est ignorée par l'appelant."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"{stage} : {cause}")
        self.stage = stage
        self.cause = cause


class WriteFailedError(SchedulingError):
    """Une étape d'écriture a échoué ; les étapes précédentes de la même transaction sont annulées."""

    def __init__(self, step: str, message: str):
        super().__init__(f"Échec à l'étape '{step}' : {message}")
        self.step = step
        self.message = message
