"""
Schémas Pydantic pour les cours.

Note : on importe datetime en tant que module (dt) pour éviter le conflit de nommage
entre les champs de date et le type `datetime.date` dans Pydantic v2.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CourseCreate(BaseModel):
    name: str
    institution_name: str
    start_date: dt.date
    description: Optional[str] = None

    @field_validator("name", "institution_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class CourseUpdate(BaseModel):
    """Seuls les champs fournis sont modifiés (model_dump(exclude_unset=True))."""
    name: Optional[str] = None
    institution_name: Optional[str] = None
    start_date: Optional[dt.date] = None
    description: Optional[str] = None

    @field_validator("name", "institution_name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class CourseMetrics(BaseModel):
    """Métriques en cache, recalculables depuis les données sources."""
    student_count: int
    avg_attendance: float
    avg_grade: Optional[float] = None


class CourseResponse(BaseModel):
    id: uuid.UUID
    owner_id: str
    name: str
    institution_name: str
    start_date: dt.date
    description: Optional[str]
    join_code: Optional[str] = None
    allow_join_requests: bool
    meta: CourseMetrics
    created_at: Optional[datetime] = None

    @classmethod
    def from_course(cls, course) -> "CourseResponse":
        return cls(
            id=course.id,
            owner_id=course.owner_id,
            name=course.name,
            institution_name=course.institution_name,
            start_date=course.start_date,
            description=course.description,
            join_code=course.join_code,
            allow_join_requests=bool(course.allow_join_requests),
            meta=CourseMetrics(
                student_count=course.student_count or 0,
                avg_attendance=course.avg_attendance or 0.0,
                avg_grade=course.avg_grade,
            ),
            created_at=course.created_at,
        )


class CourseReconciliation(BaseModel):
    """Résultat du recalcul des métriques d'un cours."""
    course_id: uuid.UUID
    student_count_before: int
    student_count_after: int
    avg_attendance: float
    avg_grade: Optional[float] = None
    drift: bool


class ReconciliationSummary(BaseModel):
    courses_checked: int
    courses_corrected: int
    orphan_approvals: list[uuid.UUID]
