"""
Modèle SQLAlchemy pour la table courses.

Les colonnes student_count / avg_attendance / avg_grade forment un cache
dénormalisé : elles sont toujours recalculables depuis enrollments, attendance
et grades (voir services/calculations.py).
"""

import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from aulacheck.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(String(128), nullable=False, index=True)  # Identifiant du principal (fournisseur d'identité)
    name = Column(String(200), nullable=False)
    institution_name = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)

    join_code = Column(String(16), unique=True, nullable=True)
    allow_join_requests = Column(Boolean, nullable=False, default=False)

    # Métriques en cache
    student_count = Column(Integer, nullable=False, default=0)
    avg_attendance = Column(Float, nullable=False, default=0.0)  # 0-1
    avg_grade = Column(Float, nullable=True)                     # 0-10, NULL = aucune note

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
