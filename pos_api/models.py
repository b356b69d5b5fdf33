"""Domain models for users and business units."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class BusinessUnitType(str, Enum):
    GROUP = "group"
    COMPANY = "company"
    BRANCH = "branch"


@dataclass(frozen=True)
class User:
    """Public view of a user account. Never carries the password hash."""

    id: int
    email: str
    created_at: datetime


@dataclass(frozen=True)
class UserCredentials:
    """A user together with its stored password hash, for login checks only."""

    user: User
    password_hash: str


@dataclass(frozen=True)
class BusinessUnit:
    """A group, company or branch node in the business hierarchy."""

    id: int
    name: str
    type: BusinessUnitType
    parent_id: Optional[int]


__all__ = ["BusinessUnit", "BusinessUnitType", "User", "UserCredentials"]
