"""
Modèle SQLAlchemy pour les notes. Plusieurs notes par élève et par cours.
"""

import uuid
from sqlalchemy import CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID

from aulacheck.database import Base


class Grade(Base):
    __tablename__ = "grades"
    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 10", name="ck_grades_score_range"),
        CheckConstraint("weight > 0", name="ck_grades_weight_positive"),
        Index("ix_grades_course_student", "course_id", "student_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False)
    assessment = Column(String(200), nullable=False)  # Nom de l'évaluation
    date = Column(Date, nullable=False)
    score = Column(Float, nullable=False)
    weight = Column(Float, nullable=False, default=1.0)  # Poids dans la moyenne pondérée
    created_at = Column(DateTime, server_default=func.now())
