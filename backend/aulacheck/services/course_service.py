"""
Service métier pour les cours : création, lecture, modification, suppression en cascade.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from aulacheck.models.attendance import Attendance
from aulacheck.models.course import Course
from aulacheck.models.enrollment import Enrollment
from aulacheck.models.grade import Grade
from aulacheck.models.join_request import JoinRequest
from aulacheck.schemas.course import CourseCreate, CourseResponse, CourseUpdate
from aulacheck.services.calculations import refresh_course_metrics

logger = logging.getLogger(__name__)


def create_course(db: Session, data: CourseCreate, owner_id: str) -> CourseResponse:
    """Crée un cours appartenant au principal. Les demandes d'inscription sont désactivées par défaut."""
    course = Course(
        owner_id=owner_id,
        name=data.name,
        institution_name=data.institution_name,
        start_date=data.start_date,
        description=data.description,
        allow_join_requests=False,
        student_count=0,
        avg_attendance=0.0,
        avg_grade=None,
    )
    db.add(course)
    db.commit()
    db.refresh(course)

    logger.info("Cours créé : %s (%s) par %s", course.name, course.id, owner_id)
    return CourseResponse.from_course(course)


def list_courses(db: Session, owner_id: str) -> list[CourseResponse]:
    """Retourne les cours du principal, du plus récent au plus ancien (métriques en cache)."""
    courses = db.execute(
        select(Course)
        .where(Course.owner_id == owner_id)
        .order_by(Course.created_at.desc())
    ).scalars().all()
    return [CourseResponse.from_course(c) for c in courses]


def get_course(db: Session, course_id: uuid.UUID) -> Optional[CourseResponse]:
    """
    Retourne le détail d'un cours après recalcul de ses métriques.
    La lecture réécrit le cache (stratégie de cohérence à la lecture).
    """
    course = db.get(Course, course_id)
    if course is None:
        return None

    refresh_course_metrics(db, course)
    db.commit()
    db.refresh(course)
    return CourseResponse.from_course(course)


def update_course(db: Session, course_id: uuid.UUID, data: CourseUpdate) -> Optional[CourseResponse]:
    """Met à jour les champs fournis d'un cours."""
    course = db.get(Course, course_id)
    if course is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(course, field, value)

    db.commit()
    db.refresh(course)
    return CourseResponse.from_course(course)


def delete_course(db: Session, course_id: uuid.UUID) -> bool:
    """
    Supprime un cours et toutes ses données dépendantes
    (inscriptions, présences, notes, demandes d'inscription).
    Les élèves sont conservés.
    Retourne True si supprimé, False si introuvable.
    """
    course = db.get(Course, course_id)
    if course is None:
        return False

    for model in (Enrollment, Attendance, Grade, JoinRequest):
        db.execute(delete(model).where(model.course_id == course_id))
    db.delete(course)
    db.commit()

    logger.info("Cours supprimé : %s", course_id)
    return True
