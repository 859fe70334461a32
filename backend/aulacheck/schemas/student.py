"""
Schémas Pydantic pour les élèves et leurs inscriptions.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, field_validator, model_validator

from aulacheck.services.contact import normalize_phone

WithdrawalReason = Literal["course_change", "school_change", "other"]


def _blank_to_none(v):
    """Les formulaires envoient "" pour un champ optionnel non rempli."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


class ContactFields(BaseModel):
    """Coordonnées optionnelles communes aux élèves et aux demandes d'inscription."""
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None

    @field_validator("email", "phone", "external_id", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("phone")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)

    @field_validator("external_id")
    @classmethod
    def strip_external_id(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class EnrollmentCreate(ContactFields):
    """
    Inscription directe par l'enseignant (POST /courses/{id}/students).
    Soit student_id (élève existant), soit first_name + last_name (nouvel élève).
    """
    student_id: Optional[uuid.UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode="after")
    def student_or_names(self) -> "EnrollmentCreate":
        if self.student_id is None and (not self.first_name or not self.last_name):
            raise ValueError("Prénom et nom sont obligatoires pour un nouvel élève.")
        return self


class StudentUpdate(ContactFields):
    """Schéma de mise à jour d'un élève (PUT /students/{id})."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class StudentResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CourseStudentResponse(StudentResponse):
    """Élève d'un cours avec son statut d'inscription et ses métriques."""
    enrollment_status: str
    enroll_date: Optional[datetime] = None
    withdrawal_date: Optional[datetime] = None
    withdrawal_reason: Optional[str] = None
    attendance_percentage: float = 0.0
    grade_average: Optional[float] = None


class WithdrawalRequest(BaseModel):
    """Corps optionnel de DELETE /courses/{id}/students/{student_id}."""
    reason: Optional[WithdrawalReason] = None
    note: Optional[str] = None

    @field_validator("note", mode="before")
    @classmethod
    def blank_note(cls, v):
        return _blank_to_none(v)


class WithdrawalResult(BaseModel):
    course_id: uuid.UUID
    student_id: uuid.UUID
    status: str
    withdrawal_date: datetime
    withdrawal_reason: Optional[str] = None
    student_count: int
