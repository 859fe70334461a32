"""
Schémas Pydantic pour la prise de présences et les marqueurs de suspension.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

AttendanceStatus = Literal["present", "absent", "late"]
SuspensionReason = Literal["class_suspension", "teacher_leave", "other"]


class AttendanceRecordItem(BaseModel):
    student_id: uuid.UUID
    status: AttendanceStatus


class AttendanceSubmit(BaseModel):
    """
    Corps de POST /courses/{id}/attendance.

    - records vide autorisé uniquement avec un motif de suspension
    - motif "other" → note obligatoire
    """
    date: dt.date
    records: List[AttendanceRecordItem]
    suspension_reason: Optional[SuspensionReason] = None
    suspension_note: Optional[str] = None

    @field_validator("suspension_note")
    @classmethod
    def strip_note(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None

    @model_validator(mode="after")
    def records_or_suspension(self) -> "AttendanceSubmit":
        if self.suspension_reason is None and not self.records:
            raise ValueError("La liste des présences ne peut pas être vide sans motif de suspension.")
        if self.suspension_reason == "other" and not self.suspension_note:
            raise ValueError("Une note est obligatoire pour le motif de suspension 'other'.")
        return self


class AttendanceResult(BaseModel):
    """Rapport retourné après l'enregistrement d'une date."""
    course_id: uuid.UUID
    date: dt.date
    records_written: int
    suspended: bool
    avg_attendance: float


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    student_id: Optional[uuid.UUID] = None
    date: dt.date
    status: Optional[str] = None
    suspension_reason: Optional[str] = None
    suspension_note: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SuspensionInfo(BaseModel):
    reason: Optional[str] = None
    note: Optional[str] = None


class AttendanceGrid(BaseModel):
    """
    Grille de présences d'un cours :
    dates triées, records[student_id][date] = statut, suspensions[date] = motif.
    """
    dates: List[dt.date]
    records: Dict[str, Dict[str, str]]
    suspensions: Dict[str, SuspensionInfo]
