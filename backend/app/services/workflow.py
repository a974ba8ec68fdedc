"""
Exécution des écritures en plusieurs étapes (publication de disponibilités,
attribution d'élève, enregistrement de class_logs).

Toutes les étapes d'un workflow partagent la session et sont commitées une seule fois
à la fin. Si une étape échoue, la session est rollbackée : aucune étape précédente ne
reste appliquée, et l'appelant reçoit une WriteFailedError nommant l'étape fautive.
"""

import logging
from typing import Callable, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import WriteFailedError

logger = logging.getLogger(__name__)

Step = Tuple[str, Callable[[], None]]


def run_steps(db: Session, label: str, steps: List[Step]) -> None:
    """
    Exécute les étapes dans l'ordre puis commite.
    Chaque étape est flushée pour que ses erreurs de contrainte soient imputées à la bonne étape.
    """
    current = "commit"
    try:
        for name, action in steps:
            current = name
            action()
            db.flush()
        current = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Workflow %s interrompu à l'étape %s : %s", label, current, exc)
        raise WriteFailedError(current, str(exc)) from exc
