"""SQLModel data models.

A single schema describes a registrant. `RegistrantBase` carries the
field rules, the `Registrant` table and the `RegistrantCreate` request
payload both derive from it so storage and validation cannot drift.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import sqlalchemy as sa
from email_validator import EmailNotValidError, validate_email
from pydantic import EmailStr, field_validator
from sqlmodel import Field, SQLModel


class Municipality(str, Enum):
    TUXTLA = "tuxtla"
    SAN_CRISTOBAL = "san-cristobal"
    TAPACHULA = "tapachula"
    PALENQUE = "palenque"
    COMITAN = "comitan"
    OTRO = "otro"


class Education(str, Enum):
    PRIMARIA = "primaria"
    SECUNDARIA = "secundaria"
    PREPARATORIA = "preparatoria"
    UNIVERSIDAD = "universidad"
    POSGRADO = "posgrado"


class Status(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def _enum_column(enum_cls, name: str) -> sa.Enum:
    # store the lowercase values, not the member names
    return sa.Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class RegistrantBase(SQLModel):
    """Fields supplied by a person registering for the program."""
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(max_length=254)
    municipality: Municipality = Field(sa_type=_enum_column(Municipality, "municipality"))
    education: Education = Field(sa_type=_enum_column(Education, "education"))

    @field_validator("name", mode="before")
    @classmethod
    def _trim_name(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value):
        return value.strip().lower()


class Registrant(RegistrantBase, table=True):
    """A stored registrant.

    `email` is unique across every row regardless of `status`; only
    `active` rows are listed or counted by the API.
    """
    __tablename__ = "registrants"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=32)
    email: str = Field(max_length=254, unique=True, index=True)
    registration_date: datetime = Field(default_factory=_utcnow, sa_type=sa.DateTime(timezone=True))
    status: Status = Field(default=Status.ACTIVE, index=True, sa_type=_enum_column(Status, "status"))
    created_at: datetime = Field(default_factory=_utcnow, sa_type=sa.DateTime(timezone=True))
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_type=sa.DateTime(timezone=True), sa_column_kwargs={"onupdate": _utcnow}
    )


class RegistrantCreate(RegistrantBase):
    """Registration request body."""
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _bare_address(cls, value):
        # EmailStr alone accepts and strips "Name <addr>" forms
        if isinstance(value, str):
            try:
                validate_email(value, check_deliverability=False)
            except EmailNotValidError as exc:
                raise ValueError(str(exc))
        return value


def new_registrant(payload: RegistrantCreate, status: Optional[Status] = None) -> Registrant:
    """Build a `Registrant` row from a validated payload."""
    registrant = Registrant(**payload.model_dump())
    if status is not None:
        registrant.status = status
    return registrant
