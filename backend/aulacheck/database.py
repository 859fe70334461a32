"""
Connexion PostgreSQL (SQLAlchemy, moteur synchrone).

Une session par requête HTTP via get_db ; le scheduler ouvre la sienne avec SessionLocal.
autoflush=False : les services appellent db.flush() avant de relire leurs propres écritures.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from aulacheck.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.SQL_ECHO,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : session de la requête, toujours fermée en fin de requête."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
