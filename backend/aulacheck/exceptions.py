"""
Erreurs métier levées par les services.
main.py les convertit en réponses HTTP (400, 403, 404, 409).
"""


class ValidationError(ValueError):
    """Donnée refusée avant toute écriture (400)."""


class ConflictError(ValueError):
    """Opération incompatible avec l'état actuel (409)."""


class NotFoundError(LookupError):
    """Élève, inscription, demande ou code introuvable (404)."""


class ForbiddenError(Exception):
    """
    Le principal n'a pas accès à la ressource (403).
    Un cours inexistant produit aussi cette erreur : on ne révèle pas son existence.
    """

    def __init__(self, message: str = "Accès refusé."):
        super().__init__(message)
