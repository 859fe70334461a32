"""
Modèle SQLAlchemy pour les présences (une ligne par élève et par date).

Une ligne sans student_id est un marqueur de suspension : la date est réservée
(cours annulé) et porte le motif de suspension, sans statut.
Les deux index uniques partiels garantissent :
- au plus une ligne par (cours, élève, date)
- au plus un marqueur par (cours, date)
"""

import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID

from aulacheck.database import Base

STATUS_PRESENT = "present"
STATUS_ABSENT = "absent"
STATUS_LATE = "late"
ATTENDED_STATUSES = (STATUS_PRESENT, STATUS_LATE)


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        Index(
            "uq_attendance_course_student_date",
            "course_id", "student_id", "date",
            unique=True,
            postgresql_where=text("student_id IS NOT NULL"),
        ),
        Index(
            "uq_attendance_suspension_marker",
            "course_id", "date",
            unique=True,
            postgresql_where=text("student_id IS NULL"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=True)  # NULL = marqueur
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=True)  # present, absent, late

    suspension_reason = Column(String(30), nullable=True)  # class_suspension, teacher_leave, other
    suspension_note = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
