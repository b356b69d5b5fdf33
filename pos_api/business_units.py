"""Creation and listing of groups, companies and branches."""
from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from .database import Database
from .errors import InternalError, ValidationError
from .models import BusinessUnit, BusinessUnitType

logger = logging.getLogger("pos.business_units")

_ALLOWED_TYPES = ", ".join(member.value for member in BusinessUnitType)


class BusinessUnitService:
    def __init__(self, database: Database) -> None:
        self._database = database

    def create(
        self,
        name: Optional[str],
        unit_type: Optional[str],
        parent_id: Optional[int] = None,
    ) -> BusinessUnit:
        normalized_name = (name or "").strip()
        normalized_type = (unit_type or "").strip().lower()
        if not normalized_name or not normalized_type:
            raise ValidationError("Name and type are required")

        try:
            resolved_type = BusinessUnitType(normalized_type)
        except ValueError as exc:
            raise ValidationError(f"Type must be one of: {_ALLOWED_TYPES}") from exc

        try:
            unit = self._database.create_business_unit(normalized_name, resolved_type, parent_id)
        except sqlite3.Error as exc:
            logger.exception("Failed to create business unit %r", normalized_name)
            raise InternalError() from exc

        logger.info(
            "Created %s business unit %s (%s) under %s",
            unit.type.value,
            unit.id,
            unit.name,
            unit.parent_id,
        )
        return unit

    def list(self) -> List[BusinessUnit]:
        try:
            return self._database.list_business_units()
        except sqlite3.Error as exc:
            logger.exception("Failed to list business units")
            raise InternalError() from exc


__all__ = ["BusinessUnitService"]
