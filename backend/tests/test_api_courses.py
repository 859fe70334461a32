"""
Tests d'intégration API pour les cours.
Testent les URLs, l'authentification, le contrôle de propriété, la validation et le format des réponses.
"""

import uuid
import datetime as dt
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt

from aulacheck.config import settings
from aulacheck.main import app
from aulacheck.schemas.course import CourseMetrics, CourseResponse

PRINCIPAL_ID = "teacher-uid-123"


# --- Helpers ---

def make_course_response(**kwargs) -> CourseResponse:
    return CourseResponse(
        id=kwargs.get("id", uuid.uuid4()),
        owner_id=PRINCIPAL_ID,
        name=kwargs.get("name", "Matemática 3°A"),
        institution_name="Escuela N°5",
        start_date=dt.date(2025, 3, 3),
        description=None,
        join_code=None,
        allow_join_requests=False,
        meta=CourseMetrics(
            student_count=kwargs.get("student_count", 0),
            avg_attendance=kwargs.get("avg_attendance", 0.0),
            avg_grade=kwargs.get("avg_grade"),
        ),
        created_at=datetime.now(),
    )


def make_token(sub=PRINCIPAL_ID, expires_in=timedelta(hours=1)) -> str:
    return jwt.encode(
        {"sub": sub, "exp": datetime.now(timezone.utc) + expires_in},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


# ============================================================
# Santé et authentification
# ============================================================

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_sans_jeton_401(anonymous_client):
    response = anonymous_client.get("/api/v1/courses")
    assert response.status_code == 401


def test_jeton_invalide_401(anonymous_client):
    response = anonymous_client.get("/api/v1/courses", headers={"Authorization": "Bearer pas-un-jwt"})
    assert response.status_code == 401


def test_jeton_expire_401(anonymous_client):
    token = make_token(expires_in=timedelta(hours=-1))
    response = anonymous_client.get("/api/v1/courses", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_jeton_valide_principal_transmis(anonymous_client):
    token = make_token()
    with patch("aulacheck.routers.courses.course_service.list_courses", return_value=[]) as mock:
        response = anonymous_client.get("/api/v1/courses", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert mock.call_args[0][1] == PRINCIPAL_ID


# ============================================================
# GET / POST /api/v1/courses
# ============================================================

def test_list_courses(client):
    with patch("aulacheck.routers.courses.course_service.list_courses") as mock:
        mock.return_value = [make_course_response(), make_course_response()]
        response = client.get("/api/v1/courses")

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert "avg_attendance" in response.json()[0]["meta"]


def test_create_course_succes(client):
    with patch("aulacheck.routers.courses.course_service.create_course") as mock:
        mock.return_value = make_course_response(name="Historia")
        response = client.post("/api/v1/courses", json={
            "name": "Historia", "institution_name": "Escuela N°5", "start_date": "2025-03-03",
        })

    assert response.status_code == 201
    assert response.json()["name"] == "Historia"
    assert mock.call_args[0][2] == PRINCIPAL_ID


def test_create_course_nom_vide_422(client):
    response = client.post("/api/v1/courses", json={
        "name": "  ", "institution_name": "Escuela", "start_date": "2025-03-03",
    })
    assert response.status_code == 422


def test_create_course_date_invalide_422(client):
    response = client.post("/api/v1/courses", json={
        "name": "Historia", "institution_name": "Escuela", "start_date": "pas-une-date",
    })
    assert response.status_code == 422


# ============================================================
# /api/v1/courses/{id}
# ============================================================

def test_get_course_proprietaire(client, as_owner):
    with patch("aulacheck.routers.courses.course_service.get_course") as mock:
        mock.return_value = make_course_response(avg_attendance=0.667, avg_grade=7.33)
        response = client.get(f"/api/v1/courses/{uuid.uuid4()}")

    assert response.status_code == 200
    assert response.json()["meta"]["avg_grade"] == 7.33


def test_get_course_non_proprietaire_403(client, not_owner):
    with patch("aulacheck.routers.courses.course_service.get_course") as mock:
        response = client.get(f"/api/v1/courses/{uuid.uuid4()}")

    assert response.status_code == 403
    mock.assert_not_called()


def test_get_course_inexistant_403(client, mock_db):
    """Un cours inexistant produit la même réponse qu'un cours d'un autre enseignant."""
    mock_db.get.return_value = None
    response = client.get(f"/api/v1/courses/{uuid.uuid4()}")
    assert response.status_code == 403


def test_get_course_id_invalide_422(client):
    response = client.get("/api/v1/courses/pas-un-uuid")
    assert response.status_code == 422


def test_update_course(client, as_owner):
    with patch("aulacheck.routers.courses.course_service.update_course") as mock:
        mock.return_value = make_course_response(name="Nouveau nom")
        response = client.put(f"/api/v1/courses/{uuid.uuid4()}", json={"name": "Nouveau nom"})

    assert response.status_code == 200
    assert response.json()["name"] == "Nouveau nom"


def test_delete_course(client, as_owner):
    with patch("aulacheck.routers.courses.course_service.delete_course", return_value=True):
        response = client.delete(f"/api/v1/courses/{uuid.uuid4()}")
    assert response.status_code == 204


def test_erreur_inattendue_500_opaque(client, as_owner):
    with patch("aulacheck.routers.courses.course_service.get_course", side_effect=RuntimeError("boom")):
        # Sans raise_server_exceptions, le client renvoie la réponse 500 du handler global
        response = TestClient(app, raise_server_exceptions=False).get(f"/api/v1/courses/{uuid.uuid4()}")

    assert response.status_code == 500
    assert response.json()["detail"] == "Une erreur interne est survenue."
