"""
Configuration partagée pour tous les tests.
Override get_db pour éviter toute connexion réelle à PostgreSQL
et get_current_principal pour simuler un enseignant authentifié.
"""

import os

# Le scheduler ne doit pas tourner pendant les tests (lu à l'import de la config)
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

from aulacheck.database import get_db  # noqa: E402
from aulacheck.main import app  # noqa: E402
from aulacheck.security import get_current_principal  # noqa: E402

PRINCIPAL_ID = "teacher-uid-123"


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Client HTTP de test avec la BDD mockée et un enseignant authentifié."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_principal] = lambda: PRINCIPAL_ID
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(mock_db):
    """Client HTTP sans override d'authentification (en-tête Authorization réel)."""
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def as_owner():
    """Le principal est propriétaire de tout cours demandé."""
    with patch("aulacheck.services.ownership.verify_course_ownership", return_value=True) as mock:
        yield mock


@pytest.fixture
def not_owner():
    """Le principal n'est propriétaire d'aucun cours (ou le cours n'existe pas)."""
    with patch("aulacheck.services.ownership.verify_course_ownership", return_value=False) as mock:
        yield mock
