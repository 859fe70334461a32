"""
Validation et mise en forme des coordonnées (email, téléphone mobile argentin).

Format de stockage : +54 9 <indicatif> <numéro> sans séparateurs,
ex. +54 9 11 4444-5555 est stocké +5491144445555.
"""

import re
from typing import Optional, Tuple

from aulacheck.config import settings
from aulacheck.exceptions import ValidationError

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
AREA_CODE_REGEX = re.compile(r"^\d{2,4}$")
LOCAL_NUMBER_REGEX = re.compile(r"^\d{6,8}$")
MOBILE_PREFIX = "9"

COMMON_AREA_CODES = [
    ("11", "Buenos Aires"),
    ("221", "La Plata"),
    ("223", "Mar del Plata"),
    ("261", "Mendoza"),
    ("341", "Rosario"),
    ("351", "Córdoba"),
    ("381", "Tucumán"),
    ("387", "Salta"),
]


def is_valid_email(email: Optional[str]) -> bool:
    """Un email vide est valide (champ optionnel)."""
    if not email:
        return True
    return bool(EMAIL_REGEX.match(email))


def is_valid_phone(area_code: str, number: str) -> bool:
    """
    Valide les composants d'un numéro : indicatif sans 0 (2 à 4 chiffres)
    et numéro local sans 15 (6 à 8 chiffres, tirets tolérés).
    Les deux vides = valide ; un seul renseigné = invalide.
    """
    if not area_code and not number:
        return True
    if not area_code or not number:
        return False
    if not AREA_CODE_REGEX.match(area_code):
        return False
    return bool(LOCAL_NUMBER_REGEX.match(number.replace("-", "")))


def format_phone_for_storage(country_code: str, area_code: str, number: str) -> str:
    """("+54", "11", "4444-5555") → "+5491144445555". Chaîne vide si incomplet."""
    if not area_code or not number:
        return ""
    clean_number = re.sub(r"[-\s]", "", number)
    return f"{country_code}{MOBILE_PREFIX}{area_code}{clean_number}"


def _split_national(national: str) -> Tuple[str, str]:
    """Sépare indicatif et numéro local (partie après +549)."""
    if national.startswith("11"):
        return national[:2], national[2:]
    if len(national) >= 10:
        return national[:3], national[3:]
    return national[:2], national[2:]


def _strip_national_mobile_prefix(national: str) -> str:
    """"2966 15 123456" → "2966123456" : retire le 15 placé après un indicatif de 2 à 4 chiffres."""
    if len(national) != 12:
        return national
    for area_length in (2, 3, 4):
        if national[area_length:area_length + 2] == "15":
            return national[:area_length] + national[area_length + 2:]
    return national


def _mobile_prefix() -> str:
    return settings.DEFAULT_COUNTRY_CODE + MOBILE_PREFIX


def parse_phone(phone: Optional[str]) -> Tuple[str, str, str]:
    """
    "+5491144445555" → ("+54", "11", "44445555").
    Format non reconnu → indicatif et numéro vides.
    """
    country_code = settings.DEFAULT_COUNTRY_CODE
    if not phone:
        return country_code, "", ""

    cleaned = re.sub(r"[^\d+]", "", phone)
    if cleaned.startswith(_mobile_prefix()):
        area_code, number = _split_national(cleaned[len(_mobile_prefix()):])
        return country_code, area_code, number

    return country_code, "", ""


def format_phone_display(phone: Optional[str]) -> str:
    """"+5491144445555" → "+54 9 11 4444-5555". Retourné tel quel si non reconnu."""
    if not phone:
        return ""

    cleaned = re.sub(r"[^\d+]", "", phone)
    if not cleaned.startswith(_mobile_prefix()):
        return phone

    area_code, number = _split_national(cleaned[len(_mobile_prefix()):])
    if len(number) > 4:
        number = f"{number[:4]}-{number[4:]}"
    return f"{settings.DEFAULT_COUNTRY_CODE} {MOBILE_PREFIX} {area_code} {number}"


def format_phone_whatsapp(phone: Optional[str]) -> str:
    """"+5491144445555" → "5491144445555"."""
    if not phone:
        return ""
    return phone.lstrip("+")


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """
    Normalise un numéro saisi librement vers le format de stockage.

    Accepte un numéro déjà international (+54 9 11 4444-5555) ou national
    (11 4444-5555, 011 15 4444-5555). Retourne None si vide.
    Lève ValidationError si les chiffres ne forment pas un numéro valide.
    """
    if raw is None or not raw.strip():
        return None

    cleaned = re.sub(r"[^\d+]", "", raw)
    if cleaned.startswith(_mobile_prefix()):
        national = cleaned[len(_mobile_prefix()):]
    elif cleaned.startswith(settings.DEFAULT_COUNTRY_CODE):
        national = cleaned[len(settings.DEFAULT_COUNTRY_CODE):]
    else:
        national = cleaned.lstrip("+").lstrip("0")

    if not national:
        raise ValidationError(f"Numéro de téléphone invalide : {raw}")

    area_code, number = _split_national(_strip_national_mobile_prefix(national))

    if not is_valid_phone(area_code, number):
        raise ValidationError(f"Numéro de téléphone invalide : {raw}")

    return format_phone_for_storage(settings.DEFAULT_COUNTRY_CODE, area_code, number)
