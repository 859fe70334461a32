"""
Calcul des agrégats d'un cours : pourcentage de présence et moyenne pondérée.

Les fonctions pures (attendance_ratio, weighted_average, ...) portent les règles ;
les fonctions `calculate_*` lisent les lignes sources en base et les appliquent.
Les valeurs mises en cache dans courses sont toujours recalculées entièrement,
jamais maintenues de façon incrémentale.

Règles :
- Séance = date distincte enregistrée pour le cours, marqueurs de suspension compris.
- Présence élève = (présent + retard) / séances.
- Présence cours = (présent + retard des élèves actifs) / (élèves actifs × séances),
  ratio global et non moyenne des ratios individuels.
- Moyenne élève = Σ(note × poids) / Σ(poids), None sans note.
- Moyenne cours = moyenne arithmétique des moyennes des élèves actifs notés.
"""

import uuid
import logging
from collections import defaultdict
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from aulacheck.models.attendance import ATTENDED_STATUSES, Attendance
from aulacheck.models.course import Course
from aulacheck.models.enrollment import ENROLLMENT_ACTIVE, Enrollment
from aulacheck.models.grade import Grade

logger = logging.getLogger(__name__)


# --- Fonctions pures ---

def attendance_ratio(present_count: int, session_count: int) -> float:
    """Ratio 0-1 de présence d'un élève. 0 si aucune séance."""
    if session_count <= 0:
        return 0.0
    return present_count / session_count


def course_attendance_ratio(present_count: int, active_students: int, session_count: int) -> float:
    """Ratio 0-1 de présence global d'un cours. 0 sans élève actif ou sans séance."""
    if active_students <= 0 or session_count <= 0:
        return 0.0
    return present_count / (active_students * session_count)


def weighted_average(grades: Iterable[Tuple[float, float]]) -> Optional[float]:
    """Moyenne pondérée de paires (note, poids). None si vide ou poids total nul."""
    total_weighted = 0.0
    total_weight = 0.0
    for score, weight in grades:
        total_weighted += score * weight
        total_weight += weight

    if total_weight == 0:
        return None
    return total_weighted / total_weight


def mean_of_averages(averages: Iterable[Optional[float]]) -> Optional[float]:
    """Moyenne arithmétique en ignorant les None. None s'il ne reste rien."""
    values = [a for a in averages if a is not None]
    if not values:
        return None
    return sum(values) / len(values)


# --- Lectures en base ---

def _active_students_subquery(course_id: uuid.UUID):
    return (
        select(Enrollment.student_id)
        .where(
            Enrollment.course_id == course_id,
            Enrollment.status == ENROLLMENT_ACTIVE,
        )
    )


def get_active_student_ids(db: Session, course_id: uuid.UUID) -> list[uuid.UUID]:
    return list(db.execute(_active_students_subquery(course_id)).scalars().all())


def count_active_students(db: Session, course_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count())
        .select_from(Enrollment)
        .where(
            Enrollment.course_id == course_id,
            Enrollment.status == ENROLLMENT_ACTIVE,
        )
    ).scalar() or 0


def count_sessions(db: Session, course_id: uuid.UUID) -> int:
    """Nombre de dates distinctes enregistrées pour le cours (marqueurs inclus)."""
    return db.execute(
        select(func.count(distinct(Attendance.date)))
        .where(Attendance.course_id == course_id)
    ).scalar() or 0


def calculate_student_attendance(db: Session, course_id: uuid.UUID, student_id: uuid.UUID) -> float:
    sessions = count_sessions(db, course_id)
    if sessions == 0:
        return 0.0

    present = db.execute(
        select(func.count())
        .select_from(Attendance)
        .where(
            Attendance.course_id == course_id,
            Attendance.student_id == student_id,
            Attendance.status.in_(ATTENDED_STATUSES),
        )
    ).scalar() or 0

    return attendance_ratio(present, sessions)


def calculate_all_students_attendance(db: Session, course_id: uuid.UUID) -> Dict[uuid.UUID, float]:
    """Ratio de présence de chaque élève actif du cours (0 pour un élève sans présence)."""
    student_ids = get_active_student_ids(db, course_id)
    if not student_ids:
        return {}

    sessions = count_sessions(db, course_id)
    if sessions == 0:
        return {sid: 0.0 for sid in student_ids}

    rows = db.execute(
        select(Attendance.student_id, func.count())
        .where(
            Attendance.course_id == course_id,
            Attendance.student_id.in_(student_ids),
            Attendance.status.in_(ATTENDED_STATUSES),
        )
        .group_by(Attendance.student_id)
    ).all()
    present_by_student = {row[0]: row[1] for row in rows}

    return {
        sid: attendance_ratio(present_by_student.get(sid, 0), sessions)
        for sid in student_ids
    }


def calculate_course_attendance(db: Session, course_id: uuid.UUID) -> float:
    active_students = count_active_students(db, course_id)
    if active_students == 0:
        return 0.0

    sessions = count_sessions(db, course_id)
    if sessions == 0:
        return 0.0

    present = db.execute(
        select(func.count())
        .select_from(Attendance)
        .where(
            Attendance.course_id == course_id,
            Attendance.student_id.in_(_active_students_subquery(course_id)),
            Attendance.status.in_(ATTENDED_STATUSES),
        )
    ).scalar() or 0

    return course_attendance_ratio(present, active_students, sessions)


def calculate_student_average(db: Session, course_id: uuid.UUID, student_id: uuid.UUID) -> Optional[float]:
    rows = db.execute(
        select(Grade.score, Grade.weight)
        .where(Grade.course_id == course_id, Grade.student_id == student_id)
    ).all()
    return weighted_average((row[0], row[1]) for row in rows)


def calculate_all_students_averages(db: Session, course_id: uuid.UUID) -> Dict[uuid.UUID, Optional[float]]:
    """Moyenne pondérée de chaque élève actif du cours (None si aucune note)."""
    student_ids = get_active_student_ids(db, course_id)
    if not student_ids:
        return {}

    rows = db.execute(
        select(Grade.student_id, Grade.score, Grade.weight)
        .where(Grade.course_id == course_id, Grade.student_id.in_(student_ids))
    ).all()

    grades_by_student: Dict[uuid.UUID, list] = defaultdict(list)
    for student_id, score, weight in rows:
        grades_by_student[student_id].append((score, weight))

    return {sid: weighted_average(grades_by_student.get(sid, [])) for sid in student_ids}


def calculate_course_average(db: Session, course_id: uuid.UUID) -> Optional[float]:
    return mean_of_averages(calculate_all_students_averages(db, course_id).values())


def refresh_course_metrics(db: Session, course: Course) -> Course:
    """
    Recalcule avg_attendance et avg_grade et les écrit sur le cours.
    Ne commit pas : l'appelant valide la transaction avec ses propres écritures.
    """
    course.avg_attendance = calculate_course_attendance(db, course.id)
    course.avg_grade = calculate_course_average(db, course.id)
    logger.debug(
        "Métriques cours %s : présence=%.3f moyenne=%s",
        course.id, course.avg_attendance, course.avg_grade,
    )
    return course
