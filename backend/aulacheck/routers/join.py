"""
Router pour l'auto-inscription des élèves.

Côté enseignant (authentifié, propriétaire du cours) :
  POST/GET/DELETE /courses/{id}/join-code, GET /courses/{id}/join-code/qr,
  GET/POST /courses/{id}/join-requests
Côté élève (public, sans authentification) :
  GET/POST /join/{code}
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.schemas.join_request import (
    JoinCodeResponse,
    JoinRequestAction,
    JoinRequestCreate,
    JoinRequestProcessResult,
    JoinRequestResponse,
    PublicCourseInfo,
)
from aulacheck.services import join_service
from aulacheck.services.ownership import require_course_owner

router = APIRouter(prefix="/api/v1", tags=["Invitations"])


# --- Code d'invitation ---

@router.get("/courses/{course_id}/join-code", response_model=JoinCodeResponse, summary="Code d'invitation actuel")
def get_join_code(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    return join_service.get_join_code(db, course_id)


@router.post("/courses/{course_id}/join-code", response_model=JoinCodeResponse, summary="Générer un code d'invitation")
def create_join_code(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Remplace le code existant par un nouveau code unique et active les demandes d'inscription."""
    return join_service.create_join_code(db, course_id)


@router.delete("/courses/{course_id}/join-code", response_model=JoinCodeResponse, summary="Désactiver le code")
def disable_join_code(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    return join_service.disable_join_code(db, course_id)


@router.get("/courses/{course_id}/join-code/qr", summary="QR code du lien d'invitation")
def get_join_qr(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Image PNG à projeter en classe : encode le lien public d'inscription."""
    png = join_service.get_join_qr(db, course_id)
    return StreamingResponse(iter([png]), media_type="image/png")


# --- Demandes d'inscription ---

@router.get(
    "/courses/{course_id}/join-requests",
    response_model=List[JoinRequestResponse],
    summary="Demandes en attente",
)
def list_pending_requests(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    return join_service.list_pending_requests(db, course_id)


@router.post(
    "/courses/{course_id}/join-requests",
    response_model=JoinRequestProcessResult,
    summary="Approuver ou rejeter une demande",
)
def process_join_request(
    course_id: uuid.UUID,
    data: JoinRequestAction,
    principal_id: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Approuver crée l'élève et son inscription active. Une demande déjà traitée renvoie 409."""
    return join_service.process_join_request(db, course_id, data, principal_id)


# --- Accès public ---

@router.get("/join/{join_code}", response_model=PublicCourseInfo, summary="Cours associé à un code")
def get_public_course_info(join_code: str, db: Session = Depends(get_db)):
    """Public. 404 si le code est inconnu ou désactivé."""
    return join_service.get_public_course_info(db, join_code)


@router.post(
    "/join/{join_code}",
    response_model=JoinRequestResponse,
    status_code=201,
    summary="Envoyer une demande d'inscription",
)
def submit_join_request(join_code: str, data: JoinRequestCreate, db: Session = Depends(get_db)):
    return join_service.submit_join_request(db, join_code, data)
