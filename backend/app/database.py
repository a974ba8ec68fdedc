"""
Connexion PostgreSQL pour le moteur d'agenda (bookings, reposições, class_logs).
Chaque requête HTTP reçoit sa propre session SQLAlchemy via get_db.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings

# pool_pre_ping : la base managée coupe les connexions inactives
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : ouvre une session par requête et la ferme après la réponse."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
