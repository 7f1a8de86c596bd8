"""Repository classes encapsulating database operations.

Repositories return SQLModel objects and perform commits/refreshes
where appropriate. Grouped counts are delegated to the database with
``GROUP BY`` rather than computed in Python.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from . import models


class RegistrantRepository:
    """CRUD and aggregate queries for `Registrant` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, registrant: models.Registrant) -> models.Registrant:
        """Persist a new registrant and return the managed instance."""
        self.session.add(registrant)
        self.session.commit()
        self.session.refresh(registrant)
        return registrant

    def create_many(self, registrants: List[models.Registrant]) -> List[models.Registrant]:
        """Persist several registrants in one transaction."""
        self.session.add_all(registrants)
        self.session.commit()
        for r in registrants:
            self.session.refresh(r)
        return registrants

    def get_by_email(self, email: str) -> Optional[models.Registrant]:
        """Return a registrant by (lowercased) email or `None`."""
        stmt = select(models.Registrant).where(models.Registrant.email == email.strip().lower())
        return self.session.exec(stmt).first()

    def list_by_status(self, status: models.Status) -> List[models.Registrant]:
        stmt = select(models.Registrant).where(models.Registrant.status == status)
        return list(self.session.exec(stmt).all())

    def count(self, status: Optional[models.Status] = None) -> int:
        """Count registrants, optionally restricted to one status."""
        stmt = select(func.count()).select_from(models.Registrant)
        if status is not None:
            stmt = stmt.where(models.Registrant.status == status)
        return self.session.exec(stmt).one()

    def count_grouped_by(self, column, status: Optional[models.Status] = None) -> List[Tuple[object, int]]:
        """Return ``(value, count)`` pairs for `column`, largest count first.

        Ties keep whatever order the database produces.
        """
        total = func.count().label("count")
        stmt = select(column, total).group_by(column)
        if status is not None:
            stmt = stmt.where(models.Registrant.status == status)
        stmt = stmt.order_by(total.desc())
        return [(value, n) for value, n in self.session.exec(stmt).all()]
