"""
Schémas Pydantic pour les notes.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

MIN_SCORE = 0.0
MAX_SCORE = 10.0


class GradeCreate(BaseModel):
    student_id: uuid.UUID
    assessment: str
    date: dt.date
    score: float
    weight: float = 1.0

    @field_validator("assessment")
    @classmethod
    def assessment_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de l'évaluation ne peut pas être vide.")
        return v.strip()

    @field_validator("score")
    @classmethod
    def score_in_range(cls, v: float) -> float:
        if v < MIN_SCORE or v > MAX_SCORE:
            raise ValueError(f"La note doit être comprise entre {MIN_SCORE:g} et {MAX_SCORE:g}.")
        return v

    @field_validator("weight")
    @classmethod
    def weight_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Le poids doit être strictement positif.")
        return v


class GradeResponse(BaseModel):
    id: uuid.UUID
    course_id: uuid.UUID
    student_id: uuid.UUID
    assessment: str
    date: dt.date
    score: float
    weight: float
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GradeCreateResult(BaseModel):
    grade: GradeResponse
    average: Optional[float] = None


class GradeList(BaseModel):
    """average n'est renseigné que si la liste est filtrée sur un élève."""
    grades: List[GradeResponse]
    average: Optional[float] = None
