"""
Génération du rapport CSV d'un cours (export pour l'enseignant).

Structure du fichier :
  Institución: AulaCheck,Curso: <nom>,Fecha: <JJ/MM/AAAA>
  <ligne vide>
  Apellido,Nombre[,Legajo/DNI][,Email][,Teléfono][,Asistencia (%),Inasistencia (%)][,Promedio][,JJ/MM...]
  une ligne par élève actif, triée par nom puis prénom
"""

import io
import re
import csv
import uuid
import logging
import datetime as dt
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from aulacheck.models.attendance import STATUS_ABSENT, STATUS_LATE, STATUS_PRESENT, Attendance
from aulacheck.models.course import Course
from aulacheck.models.enrollment import ENROLLMENT_ACTIVE, Enrollment
from aulacheck.models.student import Student
from aulacheck.schemas.report import ExportOptions
from aulacheck.services.calculations import (
    calculate_all_students_attendance,
    calculate_all_students_averages,
)

logger = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    STATUS_PRESENT: "P",
    STATUS_ABSENT: "A",
    STATUS_LATE: "T",
}
NO_RECORD_SYMBOL = "-"


def report_filename(course_name: str) -> str:
    """Nom de fichier sûr : tout caractère non alphanumérique ASCII devient '_'."""
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', course_name)}_reporte.csv"


def _format_average(average: Optional[float]) -> str:
    return f"{average:.2f}" if average is not None else "N/A"


def _attendance_details(db: Session, course_id: uuid.UUID) -> tuple[list[dt.date], dict]:
    """Dates distinctes du cours (marqueurs compris) et statut par élève et par date."""
    rows = db.execute(
        select(Attendance.student_id, Attendance.date, Attendance.status)
        .where(Attendance.course_id == course_id)
        .order_by(Attendance.date)
    ).all()

    dates = sorted({row[1] for row in rows})
    statuses: dict[uuid.UUID, dict[dt.date, str]] = {}
    for student_id, date, status in rows:
        if student_id is None:
            continue
        statuses.setdefault(student_id, {})[date] = status
    return dates, statuses


def build_course_report(
    db: Session,
    course: Course,
    options: ExportOptions,
    today: Optional[dt.date] = None,
) -> str:
    """Construit le contenu CSV du rapport selon les colonnes demandées."""
    options = options.resolve()
    today = today or dt.date.today()

    students = db.execute(
        select(Student)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .where(
            Enrollment.course_id == course.id,
            Enrollment.status == ENROLLMENT_ACTIVE,
        )
        .order_by(Student.last_name, Student.first_name)
    ).scalars().all()

    attendance_map = calculate_all_students_attendance(db, course.id) if options.attendance_stats else {}
    grades_map = calculate_all_students_averages(db, course.id) if options.grades else {}

    dates: list[dt.date] = []
    statuses: dict = {}
    if options.attendance_details:
        dates, statuses = _attendance_details(db, course.id)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")

    writer.writerow([
        "Institución: AulaCheck",
        f"Curso: {course.name}",
        f"Fecha: {today.strftime('%d/%m/%Y')}",
    ])
    writer.writerow([])

    headers = ["Apellido", "Nombre"]
    if options.external_id:
        headers.append("Legajo/DNI")
    if options.email:
        headers.append("Email")
    if options.phone:
        headers.append("Teléfono")
    if options.attendance_stats:
        headers += ["Asistencia (%)", "Inasistencia (%)"]
    if options.grades:
        headers.append("Promedio")
    headers += [d.strftime("%d/%m") for d in dates]
    writer.writerow(headers)

    for student in students:
        row = [student.last_name, student.first_name]
        if options.external_id:
            row.append(student.external_id or "")
        if options.email:
            row.append(student.email or "")
        if options.phone:
            row.append(student.phone or "")
        if options.attendance_stats:
            attendance_percent = attendance_map.get(student.id, 0.0) * 100
            row += [f"{attendance_percent:.2f}", f"{100 - attendance_percent:.2f}"]
        if options.grades:
            row.append(_format_average(grades_map.get(student.id)))
        if dates:
            student_statuses = statuses.get(student.id, {})
            row += [STATUS_SYMBOLS.get(student_statuses.get(d), NO_RECORD_SYMBOL) for d in dates]
        writer.writerow(row)

    logger.info(
        "Rapport CSV généré pour le cours %s : %d élève(s), %d date(s)",
        course.id, len(students), len(dates),
    )
    return buf.getvalue()
