# inventory_admin/models/admin.py
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

Role = Literal["admin", "super_admin"]
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"


def _non_blank_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("name must not be blank")
    return value


@dataclass(frozen=True)
class CurrentAdmin:
    """Identity taken from a verified bearer token."""

    id: str
    email: str


class AdminCreate(BaseModel):
    # all optional so the route can answer with its own 400 messages
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Role = ROLE_ADMIN


class AdminUpdate(BaseModel):
    """
    Partial update of an admin record. Only fields explicitly sent are applied;
    `password` is plaintext and gets hashed by the repository.
    """

    name: Optional[str] = None
    password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        return _non_blank_name(v)


class AdminSelfUpdate(BaseModel):
    name: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        return _non_blank_name(v)
