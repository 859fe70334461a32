"""
Passe de réconciliation des données dérivées.

Les métriques des cours (student_count, avg_attendance, avg_grade) sont un cache :
cette passe les recalcule depuis les tables sources et signale les écarts.
Elle repère aussi les demandes approuvées sans élève inscrit correspondant.
Lancée périodiquement par le scheduler, elle est idempotente.
"""

import uuid
import logging

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from aulacheck.exceptions import NotFoundError
from aulacheck.models.course import Course
from aulacheck.models.enrollment import Enrollment
from aulacheck.models.join_request import REQUEST_APPROVED, JoinRequest
from aulacheck.models.student import Student
from aulacheck.schemas.course import CourseReconciliation, ReconciliationSummary
from aulacheck.services.calculations import count_active_students, refresh_course_metrics

logger = logging.getLogger(__name__)


def reconcile_course(db: Session, course_id: uuid.UUID) -> CourseReconciliation:
    """Recalcule toutes les métriques en cache d'un cours et les enregistre."""
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Cours introuvable.")

    before = course.student_count or 0
    after = count_active_students(db, course_id)
    drift = before != after
    if drift:
        logger.warning(
            "Cours %s : compteur d'élèves incohérent (%d en cache, %d inscrits actifs), corrigé",
            course_id, before, after,
        )
    course.student_count = after

    refresh_course_metrics(db, course)
    db.commit()

    return CourseReconciliation(
        course_id=course_id,
        student_count_before=before,
        student_count_after=after,
        avg_attendance=course.avg_attendance,
        avg_grade=course.avg_grade,
        drift=drift,
    )


def find_orphan_approvals(db: Session) -> list[JoinRequest]:
    """
    Demandes approuvées dont aucun élève du même nom n'est inscrit au cours :
    trace d'une approbation appliquée partiellement. Signalées, jamais modifiées.
    """
    matching_enrollment = (
        select(Enrollment.id)
        .join(Student, Student.id == Enrollment.student_id)
        .where(
            Enrollment.course_id == JoinRequest.course_id,
            Student.first_name == JoinRequest.first_name,
            Student.last_name == JoinRequest.last_name,
        )
    )
    orphans = db.execute(
        select(JoinRequest).where(
            JoinRequest.status == REQUEST_APPROVED,
            ~exists(matching_enrollment),
        )
    ).scalars().all()

    for join_request in orphans:
        logger.warning(
            "Demande %s approuvée sans inscription correspondante (cours %s, %s %s)",
            join_request.id, join_request.course_id,
            join_request.first_name, join_request.last_name,
        )
    return list(orphans)


def reconcile_all(db: Session) -> ReconciliationSummary:
    """Réconcilie tous les cours puis recherche les approbations orphelines."""
    course_ids = db.execute(select(Course.id)).scalars().all()

    corrected = 0
    for course_id in course_ids:
        if reconcile_course(db, course_id).drift:
            corrected += 1

    orphans = find_orphan_approvals(db)

    logger.info(
        "Réconciliation terminée : %d cours vérifiés, %d corrigés, %d approbation(s) orpheline(s)",
        len(course_ids), corrected, len(orphans),
    )
    return ReconciliationSummary(
        courses_checked=len(course_ids),
        courses_corrected=corrected,
        orphan_approvals=[r.id for r in orphans],
    )
