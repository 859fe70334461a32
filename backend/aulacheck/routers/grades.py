"""
Router pour les notes d'un cours.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.schemas.grade import GradeCreate, GradeCreateResult, GradeList
from aulacheck.services import grade_service
from aulacheck.services.ownership import require_course_owner

router = APIRouter(prefix="/api/v1/courses/{course_id}/grades", tags=["Notes"])


@router.get("", response_model=GradeList, summary="Lister les notes")
def list_grades(
    course_id: uuid.UUID,
    student_id: Optional[uuid.UUID] = Query(None),
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Filtrée sur un élève, la réponse contient aussi sa moyenne pondérée."""
    return grade_service.list_grades(db, course_id, student_id)


@router.post("", response_model=GradeCreateResult, status_code=201, summary="Ajouter une note")
def create_grade(
    course_id: uuid.UUID,
    data: GradeCreate,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    return grade_service.create_grade(db, course_id, data)
