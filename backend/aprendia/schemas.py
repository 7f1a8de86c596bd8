"""Pydantic response schemas used by the API.

Stored rows use snake_case attributes; the JSON wire format is
camelCase (`registrationDate`, `createdAt`, ...).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .models import Education, Municipality, Status


class _CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class RegisteredUserOut(_CamelModel):
    """Echo of a freshly created registrant."""
    id: str
    name: str
    email: str
    municipality: Municipality
    education: Education
    registration_date: datetime


class RegistrantOut(RegisteredUserOut):
    """Registrant as returned by the listing endpoint."""
    status: Status
    created_at: datetime
    updated_at: datetime
