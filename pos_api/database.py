"""SQLite-backed persistence for users and business units."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .errors import DuplicateUserError, ValidationError
from .models import BusinessUnit, BusinessUnitType, User, UserCredentials


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively and without surrounding whitespace."""

    return email.strip().lower()


class Database:
    """Simple wrapper around SQLite for persisting users and business units."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS business_units (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    parent_id INTEGER REFERENCES business_units(id)
                );

                CREATE INDEX IF NOT EXISTS idx_business_units_parent_id ON business_units(parent_id);
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, email: str, password_hash: str) -> User:
        """Insert a new user row and return its public fields.

        The unique index on ``email`` is the final arbiter for concurrent
        registrations: a conflicting insert raises :class:`DuplicateUserError`.
        """

        created_at = _current_timestamp()
        normalized_email = normalize_email(email)

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (email, password_hash, created_at) VALUES (?, ?, ?)",
                    (normalized_email, password_hash, _serialize_datetime(created_at)),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateUserError() from exc

            user_id = cursor.lastrowid

        return User(id=int(user_id), email=normalized_email, created_at=created_at)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> Optional[User]:
        credentials = self.get_user_credentials(email)
        if credentials is None:
            return None
        return credentials.user

    def get_user_credentials(self, email: str) -> Optional[UserCredentials]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?",
                (normalize_email(email),),
            ).fetchone()
        if row is None:
            return None
        return UserCredentials(user=self._row_to_user(row), password_hash=str(row["password_hash"]))

    def list_users(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        return [self._row_to_user(row) for row in rows]

    # ------------------------------------------------------------------
    # Business units
    # ------------------------------------------------------------------
    def create_business_unit(
        self,
        name: str,
        unit_type: BusinessUnitType,
        parent_id: Optional[int] = None,
    ) -> BusinessUnit:
        with self._connect() as conn:
            # The new row's id is unassigned until insert, so this also rejects
            # self-references.
            if parent_id is not None:
                # Ids beyond SQLite's signed 64-bit range cannot be bound at all.
                try:
                    parent = conn.execute(
                        "SELECT id FROM business_units WHERE id = ?",
                        (parent_id,),
                    ).fetchone()
                except OverflowError as exc:
                    raise ValidationError("Parent business unit does not exist") from exc
                if parent is None:
                    raise ValidationError("Parent business unit does not exist")

            try:
                cursor = conn.execute(
                    "INSERT INTO business_units (name, type, parent_id) VALUES (?, ?, ?)",
                    (name, unit_type.value, parent_id),
                )
            except sqlite3.IntegrityError as exc:
                raise ValidationError("Parent business unit does not exist") from exc

            unit_id = cursor.lastrowid

        return BusinessUnit(id=int(unit_id), name=name, type=unit_type, parent_id=parent_id)

    def get_business_unit(self, unit_id: int) -> Optional[BusinessUnit]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM business_units WHERE id = ?", (unit_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_business_unit(row)

    def list_business_units(self) -> List[BusinessUnit]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM business_units ORDER BY id ASC").fetchall()
        return [self._row_to_business_unit(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            email=str(row["email"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )

    def _row_to_business_unit(self, row: sqlite3.Row) -> BusinessUnit:
        parent_id = row["parent_id"]
        return BusinessUnit(
            id=int(row["id"]),
            name=str(row["name"]),
            type=BusinessUnitType(str(row["type"])),
            parent_id=int(parent_id) if parent_id is not None else None,
        )


__all__ = ["Database", "normalize_email"]
