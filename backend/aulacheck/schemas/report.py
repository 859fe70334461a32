"""
Options d'export CSV d'un cours.

Nom et prénom sont toujours exportés. Si aucune option n'est cochée, toutes
les colonnes sont exportées : une sélection vide ne se distingue pas d'une
absence de choix.
"""

from pydantic import BaseModel


class ExportOptions(BaseModel):
    external_id: bool = False
    email: bool = False
    phone: bool = False
    attendance_stats: bool = False
    grades: bool = False
    attendance_details: bool = False

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())

    def resolve(self) -> "ExportOptions":
        """Applique le jeu par défaut (toutes les options) quand rien n'est sélectionné."""
        if self.is_empty():
            return ExportOptions(**{field: True for field in ExportOptions.model_fields})
        return self
