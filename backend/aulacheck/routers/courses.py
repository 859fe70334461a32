"""
Router pour les cours de l'enseignant connecté.
Toutes les routes /courses/{course_id} exigent que le principal soit propriétaire du cours.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.schemas.course import CourseCreate, CourseResponse, CourseUpdate
from aulacheck.security import get_current_principal
from aulacheck.services import course_service
from aulacheck.services.ownership import require_course_owner

router = APIRouter(prefix="/api/v1/courses", tags=["Cours"])


@router.get("", response_model=List[CourseResponse], summary="Lister mes cours")
def list_courses(
    principal_id: str = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Retourne les cours du principal, du plus récent au plus ancien, avec leurs métriques en cache."""
    return course_service.list_courses(db, principal_id)


@router.post("", response_model=CourseResponse, status_code=201, summary="Créer un cours")
def create_course(
    data: CourseCreate,
    principal_id: str = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return course_service.create_course(db, data, principal_id)


@router.get("/{course_id}", response_model=CourseResponse, summary="Détail d'un cours")
def get_course(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Recalcule la présence moyenne et la moyenne du cours avant de les renvoyer."""
    course = course_service.get_course(db, course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Cours introuvable.")
    return course


@router.put("/{course_id}", response_model=CourseResponse, summary="Modifier un cours")
def update_course(
    course_id: uuid.UUID,
    data: CourseUpdate,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    course = course_service.update_course(db, course_id, data)
    if course is None:
        raise HTTPException(status_code=404, detail="Cours introuvable.")
    return course


@router.delete("/{course_id}", status_code=204, summary="Supprimer un cours")
def delete_course(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """
    Supprime le cours avec ses inscriptions, présences, notes et demandes d'inscription.
    Les fiches élèves sont conservées.
    """
    if not course_service.delete_course(db, course_id):
        raise HTTPException(status_code=404, detail="Cours introuvable.")
