"""
Service métier pour la fiche élève (modification des coordonnées).
"""

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from aulacheck.models.student import Student
from aulacheck.schemas.student import StudentResponse, StudentUpdate


def update_student(db: Session, student_id: uuid.UUID, data: StudentUpdate) -> Optional[StudentResponse]:
    """
    Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés ;
    un champ optionnel envoyé vide est effacé.
    """
    student = db.get(Student, student_id)
    if student is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in ("first_name", "last_name") and not value:
            continue
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    return StudentResponse.model_validate(student)
