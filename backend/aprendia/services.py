"""Business logic services used by HTTP controllers and scripts.

Services are intentionally thin: they enforce the registration rules
that need storage (email uniqueness) and shape aggregates; field
validation has already happened on the request payload.
"""

import logging
from enum import Enum
from typing import Dict, List

from sqlmodel import Session

from . import models, repositories
from .errors import DuplicateEmailError

logger = logging.getLogger("aprendia.api")

SAMPLE_REGISTRANTS = [
    {"name": "Juan Pérez", "email": "juan@test.com", "municipality": "tuxtla", "education": "universidad"},
    {"name": "María González", "email": "maria@test.com", "municipality": "san-cristobal", "education": "preparatoria"},
    {"name": "Carlos López", "email": "carlos@test.com", "municipality": "tapachula", "education": "secundaria"},
]


def _group_rows(rows) -> List[Dict[str, object]]:
    out = []
    for value, count in rows:
        if isinstance(value, Enum):
            value = value.value
        out.append({"_id": value, "count": count})
    return out


class RegistrationService:
    """Register new people and read back the active population."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.RegistrantRepository(session)

    def register(self, payload: models.RegistrantCreate) -> models.Registrant:
        """Create an active registrant.

        Raises `DuplicateEmailError` when the email is already taken by
        any registrant, active or not. Existing records are never
        updated.
        """
        if self.repo.get_by_email(payload.email):
            raise DuplicateEmailError(payload.email)
        registrant = self.repo.create(models.new_registrant(payload, status=models.Status.ACTIVE))
        logger.info("registrant created id=%s", registrant.id)
        return registrant

    def list_active(self) -> List[models.Registrant]:
        return self.repo.list_by_status(models.Status.ACTIVE)

    def stats(self) -> dict:
        """Total and grouped counts over active registrants."""
        active = models.Status.ACTIVE
        return {
            "totalUsers": self.repo.count(active),
            "usersByMunicipality": _group_rows(self.repo.count_grouped_by(models.Registrant.municipality, active)),
            "usersByEducation": _group_rows(self.repo.count_grouped_by(models.Registrant.education, active)),
        }


class SetupService:
    """Seeding helpers for the standalone setup script."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.RegistrantRepository(session)

    def count_all(self) -> int:
        return self.repo.count()

    def seed_samples(self) -> List[models.Registrant]:
        """Insert the example registrants (validated like a request)."""
        rows = [models.new_registrant(models.RegistrantCreate.model_validate(s)) for s in SAMPLE_REGISTRANTS]
        return self.repo.create_many(rows)

    def municipality_summary(self) -> List[Dict[str, object]]:
        """Counts per municipality over every registrant, largest first."""
        return _group_rows(self.repo.count_grouped_by(models.Registrant.municipality))
