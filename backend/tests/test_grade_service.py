"""
Tests unitaires pour le service des notes.
"""

import uuid
import datetime as dt
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from aulacheck.exceptions import NotFoundError
from aulacheck.models.grade import Grade
from aulacheck.schemas.grade import GradeCreate
from aulacheck.services.grade_service import create_grade, list_grades


# --- Helpers ---

def make_grade_create(**kwargs) -> GradeCreate:
    return GradeCreate(
        student_id=kwargs.get("student_id", uuid.uuid4()),
        assessment=kwargs.get("assessment", "Parcial 1"),
        date=kwargs.get("date", dt.date(2025, 4, 10)),
        score=kwargs.get("score", 8),
        weight=kwargs.get("weight", 2),
    )


def make_grade_mock(course_id, student_id, score=8.0, weight=2.0):
    g = MagicMock()
    g.id = uuid.uuid4()
    g.course_id = course_id
    g.student_id = student_id
    g.assessment = "Parcial 1"
    g.date = dt.date(2025, 4, 10)
    g.score = score
    g.weight = weight
    g.created_at = None
    return g


def fake_refresh(obj):
    obj.id = obj.id or uuid.uuid4()


# --- Validation du schéma ---

@pytest.mark.parametrize("score", [-0.5, 10.5])
def test_note_hors_bornes_rejetee(score):
    with pytest.raises(ValidationError):
        make_grade_create(score=score)


@pytest.mark.parametrize("score", [0, 10])
def test_note_bornes_incluses(score):
    assert make_grade_create(score=score).score == score


def test_poids_nul_rejete():
    with pytest.raises(ValidationError):
        make_grade_create(weight=0)


def test_poids_par_defaut():
    data = GradeCreate(student_id=uuid.uuid4(), assessment="TP", date="2025-04-10", score=7)
    assert data.weight == 1.0


def test_evaluation_vide_rejetee():
    with pytest.raises(ValidationError):
        make_grade_create(assessment="   ")


# --- create_grade ---

def test_create_grade_recalcule_et_retourne_moyenne():
    course = MagicMock()
    course.id = uuid.uuid4()
    db = MagicMock()
    db.get.return_value = course
    db.execute.return_value.scalar.return_value = MagicMock()  # inscription trouvée
    db.refresh.side_effect = fake_refresh
    data = make_grade_create()

    with patch("aulacheck.services.grade_service.refresh_course_metrics") as mock_refresh, \
         patch("aulacheck.services.grade_service.calculate_student_average", return_value=7.333):
        result = create_grade(db, course.id, data)

    grade = db.add.call_args[0][0]
    assert isinstance(grade, Grade)
    assert grade.score == 8
    assert grade.weight == 2
    db.flush.assert_called_once()
    mock_refresh.assert_called_once_with(db, course)
    db.commit.assert_called_once()
    assert result.average == 7.333
    assert result.grade.assessment == "Parcial 1"


def test_create_grade_eleve_non_inscrit():
    db = MagicMock()
    db.get.return_value = MagicMock()
    db.execute.return_value.scalar.return_value = None

    with pytest.raises(NotFoundError):
        create_grade(db, uuid.uuid4(), make_grade_create())
    db.add.assert_not_called()


def test_create_grade_cours_introuvable():
    db = MagicMock()
    db.get.return_value = None
    with pytest.raises(NotFoundError):
        create_grade(db, uuid.uuid4(), make_grade_create())


# --- list_grades ---

def test_list_grades_cours_sans_moyenne():
    course_id = uuid.uuid4()
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [
        make_grade_mock(course_id, uuid.uuid4()),
        make_grade_mock(course_id, uuid.uuid4()),
    ]

    result = list_grades(db, course_id)

    assert len(result.grades) == 2
    assert result.average is None


def test_list_grades_filtre_eleve_avec_moyenne():
    course_id, student_id = uuid.uuid4(), uuid.uuid4()
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [
        make_grade_mock(course_id, student_id, 8.0, 2.0),
        make_grade_mock(course_id, student_id, 6.0, 1.0),
    ]

    with patch("aulacheck.services.grade_service.calculate_student_average", return_value=7.333) as mock_avg:
        result = list_grades(db, course_id, student_id)

    mock_avg.assert_called_once_with(db, course_id, student_id)
    assert result.average == 7.333
