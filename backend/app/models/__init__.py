# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# profiles doit être chargé en premier : bookings, reschedules et class_logs y pointent.

from app.models.profile import Profile  # noqa: F401  doit précéder booking
from app.models.booking import Availability, Booking  # noqa: F401
from app.models.reschedule import Reschedule  # noqa: F401
from app.models.class_log import ClassLog  # noqa: F401
