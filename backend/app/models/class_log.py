"""
Modèle SQLAlchemy pour les class_logs (présence + contenu d'une occurrence de cours).

Un log référence soit le booking récurrent d'origine, soit la reposição consommée,
jamais les deux. L'unicité (booking_id, class_date) / (reschedule_id) est garantie
par des index uniques partiels en plus du contrôle applicatif avant insertion.
"""

import uuid
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class ClassLog(Base):
    __tablename__ = "class_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(100), nullable=False, index=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)

    booking_id = Column(UUID(as_uuid=True), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    # Pas de FK : la reposição est supprimée une fois consommée
    reschedule_id = Column(UUID(as_uuid=True), nullable=True)

    presence = Column(String(30), nullable=False)       # Presença, Falta, Falta Justificada, Falta do Professor
    subtype = Column(String(30), nullable=True)         # REPOSIÇÃO, AULA EXPERIMENTAL, Doença, Trabalho...
    content_covered = Column(Text, nullable=True)
    observations = Column(Text, nullable=True)
    homework_assigned = Column(Text, nullable=True)
    student_difficulties = Column(Text, nullable=True)

    class_date = Column(Date, nullable=True)            # NULL sur les logs legacy → date de created_at
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "booking_id IS NULL OR reschedule_id IS NULL",
            name="ck_class_log_single_source",
        ),
        Index(
            "uq_class_log_booking_date",
            "booking_id", "class_date",
            unique=True,
            postgresql_where=text("booking_id IS NOT NULL"),
        ),
        Index(
            "uq_class_log_reschedule",
            "reschedule_id",
            unique=True,
            postgresql_where=text("reschedule_id IS NOT NULL"),
        ),
        Index("ix_class_log_teacher_date", "teacher_id", "class_date"),
    )
