"""
Modèle SQLAlchemy pour les reposições (cours de rattrapage ponctuels).

Cycle de vie :
- créée automatiquement par la politique d'absence (date/time NULL = "Pendente")
  ou manuellement par l'équipe pédagogique
- planifiée ensuite sur une date et une heure précises
- supprimée dès qu'un class_log la consomme
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Reschedule(Base):
    __tablename__ = "reschedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(100), nullable=False, index=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    date = Column(Date, nullable=True)                 # NULL = à planifier
    time = Column(String(5), nullable=True)            # NULL = à planifier
    original_booking_id = Column(
        UUID(as_uuid=True), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )
    created_by_fault = Column(String(10), nullable=True)  # TEACHER, STUDENT

    created_at = Column(DateTime, server_default=func.now(), index=True)
