"""
Service d'auto-inscription des élèves via un code d'invitation.

Flux :
  1. L'enseignant génère un code (8 caractères, sans 0/O/1/I) → lien public + QR code
  2. L'élève ouvre le lien et envoie ses coordonnées → demande "pending"
  3. L'enseignant approuve (élève + inscription active créés) ou rejette la demande
Désactiver le code conserve sa valeur ; en générer un nouveau réactive les demandes.
"""

import io
import uuid
import logging
import secrets
from datetime import datetime
from typing import Optional

import qrcode
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aulacheck.config import settings
from aulacheck.exceptions import ConflictError, NotFoundError
from aulacheck.models.course import Course
from aulacheck.models.enrollment import ENROLLMENT_ACTIVE, Enrollment
from aulacheck.models.join_request import (
    REQUEST_APPROVED,
    REQUEST_PENDING,
    REQUEST_REJECTED,
    JoinRequest,
)
from aulacheck.models.student import Student
from aulacheck.schemas.join_request import (
    JoinCodeResponse,
    JoinRequestAction,
    JoinRequestCreate,
    JoinRequestProcessResult,
    JoinRequestResponse,
    PublicCourseInfo,
)

logger = logging.getLogger(__name__)

# Caractères visuellement ambigus exclus : 0, O, 1, I
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_join_code(length: Optional[int] = None) -> str:
    """Tire un code aléatoire dans l'alphabet restreint (unicité non garantie)."""
    length = length or settings.JOIN_CODE_LENGTH
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def build_join_url(join_code: str) -> str:
    return f"{settings.JOIN_BASE_URL.rstrip('/')}/join/{join_code}"


def generate_join_qr(join_code: str) -> bytes:
    """Génère une image PNG du QR code encodant le lien d'invitation."""
    qr = qrcode.QRCode(version=None, box_size=10, border=4)
    qr.add_data(build_join_url(join_code))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _get_course(db: Session, course_id: uuid.UUID) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Cours introuvable.")
    return course


def _to_code_response(course: Course) -> JoinCodeResponse:
    return JoinCodeResponse(
        join_code=course.join_code,
        join_url=build_join_url(course.join_code) if course.join_code else None,
        allow_join_requests=bool(course.allow_join_requests),
    )


def get_join_code(db: Session, course_id: uuid.UUID) -> JoinCodeResponse:
    return _to_code_response(_get_course(db, course_id))


def create_join_code(db: Session, course_id: uuid.UUID) -> JoinCodeResponse:
    """
    Génère un nouveau code unique pour le cours et réactive les demandes d'inscription.
    Un tirage déjà utilisé par un cours (y compris celui-ci) est rejeté et retiré.
    """
    course = _get_course(db, course_id)

    join_code = None
    for _ in range(settings.JOIN_CODE_MAX_ATTEMPTS):
        candidate = generate_join_code()
        taken = db.execute(
            select(Course.id).where(Course.join_code == candidate)
        ).scalar()
        if taken is None:
            join_code = candidate
            break
        logger.debug("Code d'invitation déjà utilisé, nouveau tirage : %s", candidate)

    if join_code is None:
        raise RuntimeError(
            f"Aucun code d'invitation libre après {settings.JOIN_CODE_MAX_ATTEMPTS} tentatives."
        )

    course.join_code = join_code
    course.allow_join_requests = True
    try:
        db.commit()
    except IntegrityError:
        # Même code attribué simultanément à un autre cours : la contrainte unique tranche
        db.rollback()
        raise ConflictError("Code d'invitation attribué simultanément, veuillez réessayer.")

    logger.info("Code d'invitation généré pour le cours %s : %s", course_id, join_code)
    return _to_code_response(course)


def disable_join_code(db: Session, course_id: uuid.UUID) -> JoinCodeResponse:
    """Désactive les demandes d'inscription. Le code est conservé pour l'historique."""
    course = _get_course(db, course_id)
    course.allow_join_requests = False
    db.commit()

    logger.info("Demandes d'inscription désactivées pour le cours %s", course_id)
    return _to_code_response(course)


def get_join_qr(db: Session, course_id: uuid.UUID) -> bytes:
    """QR code du lien d'invitation actif. NotFoundError si aucun code actif."""
    course = _get_course(db, course_id)
    if not course.join_code or not course.allow_join_requests:
        raise NotFoundError("Aucun code d'invitation actif pour ce cours.")
    return generate_join_qr(course.join_code)


def _find_open_course(db: Session, join_code: str) -> Course:
    course = db.execute(
        select(Course).where(
            Course.join_code == join_code.strip().upper(),
            Course.allow_join_requests.is_(True),
        )
    ).scalar()
    if course is None:
        raise NotFoundError("Code d'invitation invalide ou expiré.")
    return course


def get_public_course_info(db: Session, join_code: str) -> PublicCourseInfo:
    """Informations publiques du cours associé à un code actif."""
    course = _find_open_course(db, join_code)
    return PublicCourseInfo(
        course_id=course.id,
        course_name=course.name,
        institution_name=course.institution_name,
        description=course.description,
    )


def submit_join_request(db: Session, join_code: str, data: JoinRequestCreate) -> JoinRequestResponse:
    """
    Crée une demande d'inscription "pending" (envoi anonyme).
    Aucun élève ni inscription n'est créé avant approbation.
    """
    course = _find_open_course(db, join_code)

    join_request = JoinRequest(
        course_id=course.id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        external_id=data.external_id,
        status=REQUEST_PENDING,
    )
    db.add(join_request)
    db.commit()
    db.refresh(join_request)

    logger.info("Demande d'inscription %s reçue pour le cours %s", join_request.id, course.id)
    return JoinRequestResponse.model_validate(join_request)


def list_pending_requests(db: Session, course_id: uuid.UUID) -> list[JoinRequestResponse]:
    """Demandes en attente du cours, de la plus récente à la plus ancienne."""
    requests = db.execute(
        select(JoinRequest)
        .where(
            JoinRequest.course_id == course_id,
            JoinRequest.status == REQUEST_PENDING,
        )
        .order_by(JoinRequest.created_at.desc())
    ).scalars().all()
    return [JoinRequestResponse.model_validate(r) for r in requests]


def process_join_request(
    db: Session,
    course_id: uuid.UUID,
    data: JoinRequestAction,
    processed_by: str,
) -> JoinRequestProcessResult:
    """
    Approuve ou rejette une demande en attente.

    Approbation : création de l'élève, de l'inscription active, incrément du compteur
    et passage de la demande à "approved", validés dans une seule transaction.
    Rejet : seul le statut de la demande change.
    """
    join_request = db.execute(
        select(JoinRequest).where(
            JoinRequest.id == data.request_id,
            JoinRequest.course_id == course_id,
        )
    ).scalar()
    if join_request is None:
        raise NotFoundError("Demande introuvable.")
    if join_request.status != REQUEST_PENDING:
        raise ConflictError("Cette demande a déjà été traitée.")

    now = datetime.now()
    student_id = None

    if data.action == "approve":
        course = _get_course(db, course_id)
        student = Student(
            first_name=join_request.first_name,
            last_name=join_request.last_name,
            email=join_request.email,
            phone=join_request.phone,
            external_id=join_request.external_id,
        )
        db.add(student)
        db.flush()  # Obtenir l'ID avant de créer l'inscription

        db.add(Enrollment(
            course_id=course_id,
            student_id=student.id,
            status=ENROLLMENT_ACTIVE,
            enroll_date=now,
        ))
        course.student_count = (course.student_count or 0) + 1

        join_request.status = REQUEST_APPROVED
        student_id = student.id
        message = "Élève ajouté au cours."
    else:
        join_request.status = REQUEST_REJECTED
        message = "Demande rejetée."

    join_request.processed_at = now
    join_request.processed_by = processed_by
    db.commit()

    logger.info(
        "Demande %s %s par %s (cours %s)",
        join_request.id, join_request.status, processed_by, course_id,
    )
    return JoinRequestProcessResult(
        request_id=join_request.id,
        status=join_request.status,
        student_id=student_id,
        message=message,
    )
