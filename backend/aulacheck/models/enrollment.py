"""
Modèle SQLAlchemy pour les inscriptions (lien élève ↔ cours).

Une seule ligne par couple (cours, élève) : une réinscription réactive la ligne
existante. La désinscription est logique (status = inactive).
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from aulacheck.database import Base

ENROLLMENT_ACTIVE = "active"
ENROLLMENT_INACTIVE = "inactive"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("course_id", "student_id", name="uq_enrollments_course_student"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ENROLLMENT_ACTIVE)  # active, inactive
    enroll_date = Column(DateTime, server_default=func.now())

    withdrawal_date = Column(DateTime, nullable=True)
    withdrawal_reason = Column(String(30), nullable=True)  # course_change, school_change, other
    withdrawal_note = Column(Text, nullable=True)
