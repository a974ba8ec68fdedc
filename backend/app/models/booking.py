"""
Modèles SQLAlchemy pour la grille hebdomadaire d'un professeur :
bookings récurrents et créneaux de disponibilité déclarés.
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Booking(Base):
    """Engagement hebdomadaire récurrent professeur ↔ élève sur un créneau (jour, heure)."""
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(100), nullable=False, index=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    day_of_week = Column(String(20), nullable=False)   # Segunda … Sábado
    time_slot = Column(String(5), nullable=False)      # "HH:MM" (grille 06:00 → 00:00)
    module = Column(String(100), nullable=True)
    type = Column(String(30), default="Individual")
    start_date = Column(Date, nullable=True)           # NULL = actif depuis toujours

    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        # Un créneau ne peut résoudre qu'un seul booking actif
        UniqueConstraint("teacher_id", "day_of_week", "time_slot", name="uq_booking_teacher_slot"),
    )


class Availability(Base):
    """Créneau libre déclaré par un professeur. Remplacé en bloc à chaque publication."""
    __tablename__ = "availabilities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(String(20), nullable=False)
    start_time = Column(String(8), nullable=False)     # "HH:MM" ou "HH:MM:SS" (legacy)
    created_at = Column(DateTime, server_default=func.now())
