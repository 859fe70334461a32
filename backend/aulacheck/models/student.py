"""
Modèle SQLAlchemy pour la table students.
Un élève n'est jamais supprimé : il est seulement désinscrit de ses cours.
"""

import uuid
from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from aulacheck.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)        # Format international normalisé : +5491144445555
    external_id = Column(String(64), nullable=True)  # Matricule / DNI
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
