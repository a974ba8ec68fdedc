"""
Modèle SQLAlchemy pour la table profiles (élèves et professeurs).
Dépendance en lecture seule du moteur d'agenda : noms, modules et avatars dénormalisés.
"""

import uuid
from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(100), nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False)      # STUDENT, TEACHER, SCHOOL_ADMIN, SUPER_ADMIN
    module = Column(String(100), nullable=True)    # Niveau / module pédagogique de l'élève
    status = Column(String(50), nullable=True)     # TRIAL, "Aula Experimental", ACTIVE...
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
