"""
Authentification des requêtes : vérification du jeton Bearer (JWT).

Le jeton est émis par le fournisseur d'identité externe ; l'API se contente
d'en vérifier la signature et d'en extraire l'identifiant du principal (claim `sub`).
"""

import logging
from typing import Any, Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt

from aulacheck.config import settings

logger = logging.getLogger(__name__)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Décode un JWT. Retourne None si la signature ou l'expiration est invalide."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        logger.debug("Jeton refusé : %s", exc)
        return None


def get_current_principal(authorization: Optional[str] = Header(None)) -> str:
    """
    Dépendance FastAPI : retourne l'identifiant de l'enseignant authentifié.
    Lève 401 si l'en-tête est absent, mal formé ou si le jeton est invalide.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentification requise.")

    payload = decode_access_token(authorization[len("Bearer "):])
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Jeton invalide ou expiré.")

    return str(payload["sub"])
