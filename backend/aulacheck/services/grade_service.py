"""
Service métier pour les notes.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from aulacheck.exceptions import NotFoundError
from aulacheck.models.course import Course
from aulacheck.models.enrollment import Enrollment
from aulacheck.models.grade import Grade
from aulacheck.schemas.grade import GradeCreate, GradeCreateResult, GradeList, GradeResponse
from aulacheck.services.calculations import calculate_student_average, refresh_course_metrics

logger = logging.getLogger(__name__)


def list_grades(db: Session, course_id: uuid.UUID, student_id: Optional[uuid.UUID] = None) -> GradeList:
    """
    Retourne les notes du cours, de la plus récente à la plus ancienne.
    Filtrée sur un élève, la réponse inclut aussi sa moyenne pondérée.
    """
    query = select(Grade).where(Grade.course_id == course_id)
    if student_id is not None:
        query = query.where(Grade.student_id == student_id)

    grades = db.execute(query.order_by(Grade.date.desc())).scalars().all()

    average = None
    if student_id is not None:
        average = calculate_student_average(db, course_id, student_id)

    return GradeList(grades=[GradeResponse.model_validate(g) for g in grades], average=average)


def create_grade(db: Session, course_id: uuid.UUID, data: GradeCreate) -> GradeCreateResult:
    """
    Ajoute une note à un élève inscrit au cours, puis recalcule les métriques du cours.
    Lève NotFoundError si le cours est introuvable ou si l'élève n'y est pas inscrit.
    """
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Cours introuvable.")

    enrollment = db.execute(
        select(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.student_id == data.student_id,
        )
    ).scalar()
    if enrollment is None:
        raise NotFoundError("Cet élève n'est pas inscrit à ce cours.")

    grade = Grade(
        course_id=course_id,
        student_id=data.student_id,
        assessment=data.assessment,
        date=data.date,
        score=data.score,
        weight=data.weight,
    )
    db.add(grade)
    db.flush()  # Rendre la note visible pour le recalcul

    refresh_course_metrics(db, course)
    db.commit()
    db.refresh(grade)

    average = calculate_student_average(db, course_id, data.student_id)
    logger.info(
        "Note ajoutée : élève %s, cours %s, %s = %s (poids %s)",
        data.student_id, course_id, data.assessment, data.score, data.weight,
    )
    return GradeCreateResult(grade=GradeResponse.model_validate(grade), average=average)
