"""
Contrôle d'accès : un enseignant n'agit que sur ses propres cours
et sur les élèves inscrits (actifs) dans l'un de ses cours.
"""

import uuid
import logging

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.exceptions import ForbiddenError
from aulacheck.models.course import Course
from aulacheck.models.enrollment import ENROLLMENT_ACTIVE, Enrollment
from aulacheck.security import get_current_principal

logger = logging.getLogger(__name__)


def verify_course_ownership(db: Session, course_id: uuid.UUID, principal_id: str) -> bool:
    """True si le cours existe et appartient au principal. Cours inexistant → False (pas d'erreur)."""
    course = db.get(Course, course_id)
    if course is None:
        return False
    return course.owner_id == principal_id


def verify_student_access(db: Session, student_id: uuid.UUID, principal_id: str) -> bool:
    """True si l'élève a au moins une inscription active dans un cours du principal."""
    owned_course_id = db.execute(
        select(Course.id)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .where(
            Enrollment.student_id == student_id,
            Enrollment.status == ENROLLMENT_ACTIVE,
            Course.owner_id == principal_id,
        )
        .limit(1)
    ).scalar()
    return owned_course_id is not None


def require_course_owner(
    course_id: uuid.UUID,
    principal_id: str = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> str:
    """
    Dépendance FastAPI pour les routes /courses/{course_id}/...
    Retourne le principal ; lève ForbiddenError (403) sinon, y compris pour un cours inexistant.
    """
    if not verify_course_ownership(db, course_id, principal_id):
        logger.info("Accès refusé au cours %s pour %s", course_id, principal_id)
        raise ForbiddenError()
    return principal_id
