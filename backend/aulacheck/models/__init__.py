# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.

from aulacheck.models.course import Course  # noqa: F401  doit précéder les tables dépendantes
from aulacheck.models.student import Student  # noqa: F401
from aulacheck.models.enrollment import Enrollment  # noqa: F401
from aulacheck.models.attendance import Attendance  # noqa: F401
from aulacheck.models.grade import Grade  # noqa: F401
from aulacheck.models.join_request import JoinRequest  # noqa: F401
