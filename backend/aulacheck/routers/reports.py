"""
Router pour l'export CSV d'un cours.
"""

import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from aulacheck.database import get_db
from aulacheck.models.course import Course
from aulacheck.schemas.report import ExportOptions
from aulacheck.services.ownership import require_course_owner
from aulacheck.services.report_service import build_course_report, report_filename

router = APIRouter(prefix="/api/v1/courses/{course_id}", tags=["Export"])


@router.get("/report", summary="Exporter le rapport CSV du cours")
def export_report(
    course_id: uuid.UUID,
    options: ExportOptions = Depends(),
    _: str = Depends(require_course_owner),
    db: Session = Depends(get_db),
):
    """
    Colonnes choisies par paramètres booléens (?email=true&grades=true...).
    Sans aucun paramètre coché, toutes les colonnes sont exportées.
    """
    course = db.get(Course, course_id)
    csv_content = build_course_report(db, course, options)

    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(course.name)}"'},
    )
