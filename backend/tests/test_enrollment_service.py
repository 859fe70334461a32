"""
Tests unitaires pour les inscriptions (inscription directe, réactivation, désinscription)
et la modification d'un élève.
"""

import uuid
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from aulacheck.exceptions import ConflictError, NotFoundError
from aulacheck.models.course import Course
from aulacheck.models.enrollment import ENROLLMENT_ACTIVE, ENROLLMENT_INACTIVE, Enrollment
from aulacheck.models.student import Student
from aulacheck.schemas.student import EnrollmentCreate, StudentUpdate, WithdrawalRequest
from aulacheck.services.enrollment_service import (
    enroll_student,
    list_course_students,
    withdraw_student,
)
from aulacheck.services.student_service import update_student


# --- Helpers ---

def make_course_mock(student_count=0):
    c = MagicMock()
    c.id = uuid.uuid4()
    c.student_count = student_count
    return c


def make_student_mock(first_name="Juan", last_name="Pérez"):
    s = MagicMock()
    s.id = uuid.uuid4()
    s.first_name = first_name
    s.last_name = last_name
    s.email = None
    s.phone = None
    s.external_id = None
    s.created_at = datetime.now()
    return s


def make_enrollment_mock(status=ENROLLMENT_ACTIVE):
    e = MagicMock()
    e.status = status
    e.enroll_date = datetime(2025, 3, 1)
    e.withdrawal_date = None
    e.withdrawal_reason = None
    return e


def make_db_mock(course=None, student=None, enrollment=None):
    db = MagicMock()

    def fake_get(model, _id):
        if model is Course:
            return course
        if model is Student:
            return student
        return None

    db.get.side_effect = fake_get
    db.execute.return_value.scalar.return_value = enrollment

    def fake_refresh(obj):
        if getattr(obj, "id", None) is None:
            obj.id = uuid.uuid4()

    db.refresh.side_effect = fake_refresh
    return db


def added_of_type(db, model):
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], model)]


# --- Validation des schémas ---

def test_enrollment_create_sans_id_ni_nom_rejete():
    with pytest.raises(ValidationError):
        EnrollmentCreate(first_name="Juan")


def test_enrollment_create_email_invalide_rejete():
    with pytest.raises(ValidationError):
        EnrollmentCreate(first_name="Juan", last_name="Pérez", email="pas-un-email")


def test_enrollment_create_telephone_normalise():
    data = EnrollmentCreate(first_name="Juan", last_name="Pérez", phone="11 4444-5555")
    assert data.phone == "+5491144445555"


def test_enrollment_create_champs_vides_deviennent_none():
    data = EnrollmentCreate(first_name="Juan", last_name="Pérez", email="", phone="", external_id=" ")
    assert data.email is None
    assert data.phone is None
    assert data.external_id is None


def test_enrollment_create_telephone_invalide_rejete():
    with pytest.raises(ValidationError):
        EnrollmentCreate(first_name="Juan", last_name="Pérez", phone="123")


def test_withdrawal_motif_inconnu_rejete():
    with pytest.raises(ValidationError):
        WithdrawalRequest(reason="vacances")


# --- enroll_student ---

def test_enroll_nouvel_eleve():
    course = make_course_mock(student_count=2)
    db = make_db_mock(course=course)

    result = enroll_student(db, course.id, EnrollmentCreate(first_name="Juan", last_name="Pérez"))

    students = added_of_type(db, Student)
    enrollments = added_of_type(db, Enrollment)
    assert len(students) == 1
    assert len(enrollments) == 1
    assert enrollments[0].status == ENROLLMENT_ACTIVE
    assert course.student_count == 3
    db.commit.assert_called_once()
    assert result.first_name == "Juan"


def test_enroll_eleve_existant():
    course = make_course_mock()
    student = make_student_mock()
    db = make_db_mock(course=course, student=student, enrollment=None)

    result = enroll_student(db, course.id, EnrollmentCreate(student_id=student.id))

    assert len(added_of_type(db, Enrollment)) == 1
    assert added_of_type(db, Student) == []
    assert course.student_count == 1
    assert result.id == student.id


def test_enroll_deja_actif_conflit():
    course = make_course_mock(student_count=1)
    student = make_student_mock()
    db = make_db_mock(course=course, student=student, enrollment=make_enrollment_mock(ENROLLMENT_ACTIVE))

    with pytest.raises(ConflictError):
        enroll_student(db, course.id, EnrollmentCreate(student_id=student.id))

    assert course.student_count == 1
    db.commit.assert_not_called()


def test_enroll_reactive_inscription_inactive():
    course = make_course_mock(student_count=0)
    student = make_student_mock()
    enrollment = make_enrollment_mock(ENROLLMENT_INACTIVE)
    enrollment.withdrawal_reason = "school_change"
    db = make_db_mock(course=course, student=student, enrollment=enrollment)

    enroll_student(db, course.id, EnrollmentCreate(student_id=student.id))

    assert enrollment.status == ENROLLMENT_ACTIVE
    assert enrollment.withdrawal_date is None
    assert enrollment.withdrawal_reason is None
    assert added_of_type(db, Enrollment) == []
    assert course.student_count == 1


def test_enroll_cours_introuvable():
    db = make_db_mock(course=None)
    with pytest.raises(NotFoundError):
        enroll_student(db, uuid.uuid4(), EnrollmentCreate(first_name="Juan", last_name="Pérez"))


def test_enroll_eleve_introuvable():
    db = make_db_mock(course=make_course_mock(), student=None)
    with pytest.raises(NotFoundError):
        enroll_student(db, uuid.uuid4(), EnrollmentCreate(student_id=uuid.uuid4()))


def test_enroll_concurrence_contrainte_unique():
    course = make_course_mock()
    student = make_student_mock()
    db = make_db_mock(course=course, student=student, enrollment=None)
    db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

    with pytest.raises(ConflictError):
        enroll_student(db, course.id, EnrollmentCreate(student_id=student.id))
    db.rollback.assert_called_once()


# --- withdraw_student ---

def test_withdraw_avec_motif():
    course = make_course_mock(student_count=3)
    enrollment = make_enrollment_mock(ENROLLMENT_ACTIVE)
    db = make_db_mock(course=course, enrollment=enrollment)
    student_id = uuid.uuid4()

    result = withdraw_student(db, course.id, student_id, WithdrawalRequest(reason="course_change"))

    assert enrollment.status == ENROLLMENT_INACTIVE
    assert enrollment.withdrawal_reason == "course_change"
    assert enrollment.withdrawal_date is not None
    assert course.student_count == 2
    assert result.student_count == 2
    assert result.status == ENROLLMENT_INACTIVE
    # L'historique n'est pas touché : aucune suppression
    db.delete.assert_not_called()
    db.execute.assert_called_once()


def test_withdraw_sans_corps():
    course = make_course_mock(student_count=1)
    enrollment = make_enrollment_mock(ENROLLMENT_ACTIVE)
    db = make_db_mock(course=course, enrollment=enrollment)

    result = withdraw_student(db, course.id, uuid.uuid4())

    assert result.withdrawal_reason is None
    assert enrollment.withdrawal_note is None


def test_withdraw_compteur_jamais_negatif():
    course = make_course_mock(student_count=0)
    db = make_db_mock(course=course, enrollment=make_enrollment_mock(ENROLLMENT_ACTIVE))

    withdraw_student(db, course.id, uuid.uuid4(), WithdrawalRequest(reason="other"))

    assert course.student_count == 0


def test_withdraw_inscription_introuvable():
    db = make_db_mock(course=make_course_mock(), enrollment=None)
    with pytest.raises(NotFoundError):
        withdraw_student(db, uuid.uuid4(), uuid.uuid4())


# --- list_course_students ---

def test_list_course_students_avec_metriques():
    active = make_student_mock("Ana", "Gómez")
    withdrawn = make_student_mock("Luis", "Ruiz")
    db = MagicMock()
    db.execute.return_value.all.return_value = [
        (active, make_enrollment_mock(ENROLLMENT_ACTIVE)),
        (withdrawn, make_enrollment_mock(ENROLLMENT_INACTIVE)),
    ]

    with patch("aulacheck.services.enrollment_service.calculate_all_students_attendance") as mock_att, \
         patch("aulacheck.services.enrollment_service.calculate_all_students_averages") as mock_avg:
        mock_att.return_value = {active.id: 0.75}
        mock_avg.return_value = {active.id: 8.5}
        result = list_course_students(db, uuid.uuid4())

    assert len(result) == 2
    assert result[0].attendance_percentage == 0.75
    assert result[0].grade_average == 8.5
    assert result[1].enrollment_status == ENROLLMENT_INACTIVE
    assert result[1].attendance_percentage == 0.0
    assert result[1].grade_average is None


def test_list_course_students_vide():
    db = MagicMock()
    db.execute.return_value.all.return_value = []
    assert list_course_students(db, uuid.uuid4()) == []


# --- update_student ---

def test_update_student_champs_fournis():
    student = make_student_mock()
    db = MagicMock()
    db.get.return_value = student

    update_student(db, student.id, StudentUpdate(email="juan@escuela.edu.ar"))

    assert student.email == "juan@escuela.edu.ar"
    assert student.first_name == "Juan"
    db.commit.assert_called_once()


def test_update_student_efface_champ_optionnel():
    student = make_student_mock()
    student.phone = "+5491144445555"
    db = MagicMock()
    db.get.return_value = student

    update_student(db, student.id, StudentUpdate(phone=""))

    assert student.phone is None


def test_update_student_introuvable():
    db = MagicMock()
    db.get.return_value = None
    assert update_student(db, uuid.uuid4(), StudentUpdate(first_name="X")) is None
