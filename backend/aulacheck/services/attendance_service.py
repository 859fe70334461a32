"""
Service métier pour la prise de présences.

Flux d'enregistrement d'une date :
  1. Vérifier que tous les élèves envoyés sont inscrits au cours (aucune écriture sinon)
  2. Supprimer le marqueur de suspension existant pour (cours, date)
  3a. Présences fournies → upsert d'une ligne par (cours, élève, date)
  3b. Sinon (suspension) → suppression des présences de la date puis insertion d'un marqueur
  4. Recalculer et mettre en cache la présence moyenne du cours
Une date ne porte donc jamais à la fois un marqueur et des présences individuelles.
"""

import uuid
import logging
import datetime as dt
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from aulacheck.exceptions import NotFoundError, ValidationError
from aulacheck.models.attendance import Attendance
from aulacheck.models.course import Course
from aulacheck.models.enrollment import Enrollment
from aulacheck.schemas.attendance import (
    AttendanceGrid,
    AttendanceResponse,
    AttendanceResult,
    AttendanceSubmit,
    SuspensionInfo,
)
from aulacheck.services.calculations import refresh_course_metrics

logger = logging.getLogger(__name__)


def _get_course(db: Session, course_id: uuid.UUID) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Cours introuvable.")
    return course


def _check_enrolled(db: Session, course_id: uuid.UUID, student_ids: set) -> None:
    """Lève ValidationError si un élève n'a aucune inscription (active ou non) dans le cours."""
    enrolled = set(db.execute(
        select(Enrollment.student_id)
        .where(
            Enrollment.course_id == course_id,
            Enrollment.student_id.in_(list(student_ids)),
        )
    ).scalars().all())

    unknown = student_ids - enrolled
    if unknown:
        raise ValidationError(
            f"Élève(s) non inscrit(s) à ce cours : {', '.join(sorted(str(s) for s in unknown))}"
        )


def record_attendance(db: Session, course_id: uuid.UUID, data: AttendanceSubmit) -> AttendanceResult:
    """
    Enregistre les présences d'une date (ou la suspension du cours ce jour-là).
    Renvoyer la même date écrase les statuts précédents sans créer de doublon.
    """
    course = _get_course(db, course_id)

    # Un même élève envoyé deux fois : la dernière valeur l'emporte
    statuses = {record.student_id: record.status for record in data.records}
    if statuses:
        _check_enrolled(db, course_id, set(statuses))

    db.execute(
        delete(Attendance).where(
            Attendance.course_id == course_id,
            Attendance.date == data.date,
            Attendance.student_id.is_(None),
        )
    )

    suspended = False
    if statuses:
        stmt = pg_insert(Attendance).values([
            {
                "id": uuid.uuid4(),
                "course_id": course_id,
                "student_id": student_id,
                "date": data.date,
                "status": status,
                "suspension_reason": data.suspension_reason,
                "suspension_note": data.suspension_note,
            }
            for student_id, status in statuses.items()
        ])
        stmt = stmt.on_conflict_do_update(
            index_elements=["course_id", "student_id", "date"],
            index_where=Attendance.student_id.isnot(None),
            set_={
                "status": stmt.excluded.status,
                "suspension_reason": stmt.excluded.suspension_reason,
                "suspension_note": stmt.excluded.suspension_note,
                "created_at": func.now(),
            },
        )
        db.execute(stmt)
    else:
        db.execute(
            delete(Attendance).where(
                Attendance.course_id == course_id,
                Attendance.date == data.date,
                Attendance.student_id.isnot(None),
            )
        )
        db.add(Attendance(
            course_id=course_id,
            student_id=None,
            date=data.date,
            status=None,
            suspension_reason=data.suspension_reason,
            suspension_note=data.suspension_note,
        ))
        suspended = True

    db.flush()  # Rendre les nouvelles lignes visibles pour le recalcul
    refresh_course_metrics(db, course)
    db.commit()

    logger.info(
        "Présences cours %s du %s : %d élève(s)%s, présence moyenne %.3f",
        course_id, data.date, len(statuses),
        f", suspension ({data.suspension_reason})" if suspended else "",
        course.avg_attendance,
    )
    return AttendanceResult(
        course_id=course_id,
        date=data.date,
        records_written=len(statuses),
        suspended=suspended,
        avg_attendance=course.avg_attendance,
    )


def delete_attendance_record(
    db: Session, course_id: uuid.UUID, student_id: uuid.UUID, date: dt.date
) -> bool:
    """
    Supprime la présence d'un élève pour une date (correction ponctuelle).
    Retourne False si aucune ligne ne correspondait.
    """
    course = _get_course(db, course_id)

    result = db.execute(
        delete(Attendance).where(
            Attendance.course_id == course_id,
            Attendance.student_id == student_id,
            Attendance.date == date,
        )
    )
    if result.rowcount == 0:
        return False

    refresh_course_metrics(db, course)
    db.commit()
    logger.info("Présence supprimée : élève %s, cours %s, %s", student_id, course_id, date)
    return True


def list_attendance(
    db: Session,
    course_id: uuid.UUID,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
) -> list[AttendanceResponse]:
    """Historique des présences, date la plus récente d'abord, bornes incluses."""
    query = select(Attendance).where(Attendance.course_id == course_id)
    if date_from is not None:
        query = query.where(Attendance.date >= date_from)
    if date_to is not None:
        query = query.where(Attendance.date <= date_to)

    rows = db.execute(
        query.order_by(Attendance.date.desc(), Attendance.student_id)
    ).scalars().all()
    return [AttendanceResponse.model_validate(r) for r in rows]


def get_attendance_grid(db: Session, course_id: uuid.UUID) -> AttendanceGrid:
    """
    Grille complète du cours : dates distinctes (croissantes), statut par élève et par date,
    et motifs des dates suspendues.
    """
    rows = db.execute(
        select(Attendance)
        .where(Attendance.course_id == course_id)
        .order_by(Attendance.date)
    ).scalars().all()

    dates: list[dt.date] = []
    records: dict[str, dict[str, str]] = {}
    suspensions: dict[str, SuspensionInfo] = {}

    for row in rows:
        if not dates or dates[-1] != row.date:
            dates.append(row.date)

        day = row.date.isoformat()
        if row.student_id is None:
            suspensions[day] = SuspensionInfo(reason=row.suspension_reason, note=row.suspension_note)
            continue
        if not row.status:
            continue
        records.setdefault(str(row.student_id), {})[day] = row.status

    return AttendanceGrid(dates=dates, records=records, suspensions=suspensions)
