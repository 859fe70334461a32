"""
Schémas Pydantic pour les codes d'invitation et les demandes d'inscription.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from aulacheck.schemas.student import ContactFields


class JoinCodeResponse(BaseModel):
    join_code: Optional[str] = None
    join_url: Optional[str] = None
    allow_join_requests: bool


class PublicCourseInfo(BaseModel):
    """Informations publiques d'un cours, visibles sans authentification."""
    course_id: uuid.UUID
    course_name: str
    institution_name: str
    description: Optional[str] = None


class JoinRequestCreate(ContactFields):
    """Formulaire public envoyé par l'élève (POST /join/{code})."""
    first_name: str
    last_name: str

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Prénom et nom sont obligatoires.")
        return v.strip()


class JoinRequestResponse(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None

    model_config = {"from_attributes": True}


class JoinRequestAction(BaseModel):
    """Corps de POST /courses/{id}/join-requests."""
    request_id: uuid.UUID
    action: Literal["approve", "reject"]


class JoinRequestProcessResult(BaseModel):
    request_id: uuid.UUID
    status: str
    student_id: Optional[uuid.UUID] = None
    message: str
