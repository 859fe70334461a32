"""
Service métier pour les inscriptions : liste des élèves d'un cours,
inscription directe par l'enseignant, désinscription logique.
"""

import uuid
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aulacheck.exceptions import ConflictError, NotFoundError
from aulacheck.models.course import Course
from aulacheck.models.enrollment import ENROLLMENT_ACTIVE, ENROLLMENT_INACTIVE, Enrollment
from aulacheck.models.student import Student
from aulacheck.schemas.student import (
    CourseStudentResponse,
    EnrollmentCreate,
    StudentResponse,
    WithdrawalRequest,
    WithdrawalResult,
)
from aulacheck.services.calculations import (
    calculate_all_students_attendance,
    calculate_all_students_averages,
)

logger = logging.getLogger(__name__)


def list_course_students(db: Session, course_id: uuid.UUID) -> list[CourseStudentResponse]:
    """
    Retourne tous les élèves inscrits au cours (actifs et désinscrits),
    triés par nom puis prénom, avec leur présence et leur moyenne.
    Les métriques ne sont calculées que pour les inscriptions actives.
    """
    rows = db.execute(
        select(Student, Enrollment)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .where(Enrollment.course_id == course_id)
        .order_by(Student.last_name, Student.first_name)
    ).all()

    if not rows:
        return []

    attendance_map = calculate_all_students_attendance(db, course_id)
    grades_map = calculate_all_students_averages(db, course_id)

    return [
        CourseStudentResponse(
            id=student.id,
            first_name=student.first_name,
            last_name=student.last_name,
            email=student.email,
            phone=student.phone,
            external_id=student.external_id,
            created_at=student.created_at,
            enrollment_status=enrollment.status,
            enroll_date=enrollment.enroll_date,
            withdrawal_date=enrollment.withdrawal_date,
            withdrawal_reason=enrollment.withdrawal_reason,
            attendance_percentage=attendance_map.get(student.id, 0.0),
            grade_average=grades_map.get(student.id),
        )
        for student, enrollment in rows
    ]


def _find_enrollment(
    db: Session, course_id: uuid.UUID, student_id: uuid.UUID, status: Optional[str] = None
) -> Optional[Enrollment]:
    query = select(Enrollment).where(
        Enrollment.course_id == course_id,
        Enrollment.student_id == student_id,
    )
    if status is not None:
        query = query.where(Enrollment.status == status)
    return db.execute(query).scalar()


def enroll_student(db: Session, course_id: uuid.UUID, data: EnrollmentCreate) -> StudentResponse:
    """
    Inscrit un élève existant (student_id) ou crée un nouvel élève puis l'inscrit.

    - Inscription active existante → ConflictError
    - Inscription inactive existante → réactivée (date d'inscription remise à zéro)
    - Sinon → nouvelle inscription active
    Dans les deux derniers cas, le compteur d'élèves du cours est incrémenté.
    """
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Cours introuvable.")

    if data.student_id is not None:
        student = db.get(Student, data.student_id)
        if student is None:
            raise NotFoundError("Élève introuvable.")
        existing = _find_enrollment(db, course_id, student.id)
    else:
        student = Student(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            external_id=data.external_id,
        )
        db.add(student)
        db.flush()  # Obtenir l'ID avant de créer l'inscription
        existing = None

    if existing is not None and existing.status == ENROLLMENT_ACTIVE:
        raise ConflictError("Cet élève est déjà inscrit à ce cours.")

    if existing is not None:
        existing.status = ENROLLMENT_ACTIVE
        existing.enroll_date = datetime.now()
        existing.withdrawal_date = None
        existing.withdrawal_reason = None
        existing.withdrawal_note = None
        action = "réactivée"
    else:
        db.add(Enrollment(
            course_id=course_id,
            student_id=student.id,
            status=ENROLLMENT_ACTIVE,
            enroll_date=datetime.now(),
        ))
        action = "créée"

    course.student_count = (course.student_count or 0) + 1

    try:
        db.commit()
    except IntegrityError:
        # Deux inscriptions simultanées du même élève : la contrainte unique tranche
        db.rollback()
        raise ConflictError("Cet élève est déjà inscrit à ce cours.")
    db.refresh(student)

    logger.info("Inscription %s : élève %s → cours %s", action, student.id, course_id)
    return StudentResponse.model_validate(student)


def withdraw_student(
    db: Session,
    course_id: uuid.UUID,
    student_id: uuid.UUID,
    data: Optional[WithdrawalRequest] = None,
) -> WithdrawalResult:
    """
    Désinscrit un élève (suppression logique) : status → inactive,
    date et motif de désinscription enregistrés, compteur décrémenté.
    L'élève et ses présences/notes historiques sont conservés.
    """
    data = data or WithdrawalRequest()

    enrollment = _find_enrollment(db, course_id, student_id, status=ENROLLMENT_ACTIVE)
    if enrollment is None:
        raise NotFoundError("Inscription introuvable.")

    withdrawal_date = datetime.now()
    enrollment.status = ENROLLMENT_INACTIVE
    enrollment.withdrawal_date = withdrawal_date
    enrollment.withdrawal_reason = data.reason
    enrollment.withdrawal_note = data.note

    course = db.get(Course, course_id)
    course.student_count = max((course.student_count or 0) - 1, 0)

    db.commit()

    logger.info(
        "Désinscription élève %s du cours %s (motif : %s)",
        student_id, course_id, data.reason or "non précisé",
    )
    return WithdrawalResult(
        course_id=course_id,
        student_id=student_id,
        status=ENROLLMENT_INACTIVE,
        withdrawal_date=withdrawal_date,
        withdrawal_reason=data.reason,
        student_count=course.student_count,
    )
