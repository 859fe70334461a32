"""
Router pour la prise de présences d'un cours.
"""

import uuid
import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.schemas.attendance import (
    AttendanceGrid,
    AttendanceResponse,
    AttendanceResult,
    AttendanceSubmit,
)
from aulacheck.services import attendance_service
from aulacheck.services.ownership import require_course_owner

router = APIRouter(prefix="/api/v1/courses/{course_id}", tags=["Présences"])


@router.post("/attendance", response_model=AttendanceResult, summary="Enregistrer les présences d'une date")
def record_attendance(
    course_id: uuid.UUID,
    data: AttendanceSubmit,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """
    Enregistre (ou écrase) les statuts de la date. Sans présences mais avec un motif,
    la date est marquée comme suspendue et ses présences individuelles sont supprimées.
    """
    return attendance_service.record_attendance(db, course_id, data)


@router.get("/attendance", response_model=List[AttendanceResponse], summary="Historique des présences")
def list_attendance(
    course_id: uuid.UUID,
    date_from: Optional[dt.date] = Query(None),
    date_to: Optional[dt.date] = Query(None),
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    return attendance_service.list_attendance(db, course_id, date_from, date_to)


@router.delete(
    "/attendance/{student_id}/{date}",
    status_code=204,
    summary="Supprimer la présence d'un élève pour une date",
)
def delete_attendance_record(
    course_id: uuid.UUID,
    student_id: uuid.UUID,
    date: dt.date,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    if not attendance_service.delete_attendance_record(db, course_id, student_id, date):
        raise HTTPException(status_code=404, detail="Présence introuvable.")


@router.get("/attendance-records", response_model=AttendanceGrid, summary="Grille des présences")
def get_attendance_grid(
    course_id: uuid.UUID,
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """Toutes les dates du cours avec le statut de chaque élève et les suspensions."""
    return attendance_service.get_attendance_grid(db, course_id)
