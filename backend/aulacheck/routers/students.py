"""
Router pour les élèves : liste et inscription dans un cours, désinscription,
modification de la fiche d'un élève.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.exceptions import ForbiddenError
from aulacheck.schemas.student import (
    CourseStudentResponse,
    EnrollmentCreate,
    StudentResponse,
    StudentUpdate,
    WithdrawalRequest,
    WithdrawalResult,
)
from aulacheck.security import get_current_principal
from aulacheck.services import enrollment_service, student_service
from aulacheck.services.ownership import require_course_owner, verify_student_access

router = APIRouter(prefix="/api/v1", tags=["Élèves"])


@router.get(
    "/courses/{course_id}/students",
    response_model=List[CourseStudentResponse],
    summary="Lister les élèves d'un cours",
)
def list_course_students(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Élèves actifs et désinscrits, triés par nom puis prénom, avec présence et moyenne."""
    return enrollment_service.list_course_students(db, course_id)


@router.post(
    "/courses/{course_id}/students",
    response_model=StudentResponse,
    status_code=201,
    summary="Inscrire un élève",
)
def enroll_student(
    course_id: uuid.UUID,
    data: EnrollmentCreate,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """
    Inscrit un élève existant (student_id) ou crée l'élève à partir de ses nom et prénom.
    Un élève désinscrit est réactivé ; un élève déjà actif renvoie 409.
    """
    return enrollment_service.enroll_student(db, course_id, data)


@router.delete(
    "/courses/{course_id}/students/{student_id}",
    response_model=WithdrawalResult,
    summary="Désinscrire un élève",
)
def withdraw_student(
    course_id: uuid.UUID,
    student_id: uuid.UUID,
    data: Optional[WithdrawalRequest] = Body(None),
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Désinscription logique : l'historique de présences et de notes est conservé."""
    return enrollment_service.withdraw_student(db, course_id, student_id, data)


@router.put("/students/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(
    student_id: uuid.UUID,
    data: StudentUpdate,
    principal_id: str = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Réservé aux enseignants ayant l'élève inscrit (actif) dans l'un de leurs cours."""
    if not verify_student_access(db, student_id, principal_id):
        raise ForbiddenError()

    student = student_service.update_student(db, student_id, data)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student
