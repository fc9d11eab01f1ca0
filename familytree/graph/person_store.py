"""SQLite store for persons."""

import sqlite3
from pathlib import Path
from typing import Optional
from datetime import date, datetime

from familytree.config import settings
from familytree.errors import NotFoundError, StoreError
from familytree.models import Gender, Person


class PersonStore:
    """Store persons in SQLite, scoped by owner."""

    ORDERINGS = {
        "created_at": "created_at DESC, rowid DESC",
        "first_name": "first_name COLLATE NOCASE ASC, last_name COLLATE NOCASE ASC",
    }
    UPDATABLE = {"first_name", "last_name", "birth_date", "gender"}

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or settings.database.persons_db_path
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS persons (
                    id TEXT PRIMARY KEY,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    birth_date TEXT,
                    gender TEXT,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_person_user ON persons(user_id)")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def create(self, person: Person) -> Person:
        """Add a person and return the stored record."""
        try:
            with self._connect() as conn:
                conn.execute("""
                    INSERT INTO persons (id, first_name, last_name, birth_date, gender, user_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    person.id,
                    person.first_name,
                    person.last_name,
                    person.birth_date.isoformat() if person.birth_date else None,
                    person.gender.value if person.gender else None,
                    person.user_id,
                    person.created_at.isoformat(),
                ))
        except sqlite3.Error as e:
            raise StoreError(f"Failed to create person: {e}") from e
        return person

    def get(self, person_id: str, user_id: str) -> Person:
        """Get person by ID within the owner's scope."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM persons WHERE id = ? AND user_id = ?", (person_id, user_id)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read person {person_id}: {e}") from e

        if row is None:
            raise NotFoundError(f"Person {person_id} not found")
        return self._row_to_person(row)

    def list_by_owner(self, user_id: str, order_by: str = "created_at") -> list[Person]:
        """All persons of one owner; newest first unless ordered by first_name."""
        order = self.ORDERINGS.get(order_by)
        if order is None:
            raise ValueError(f"Unknown ordering: {order_by}")
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT * FROM persons WHERE user_id = ? ORDER BY {order}", (user_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list persons: {e}") from e
        return [self._row_to_person(row) for row in rows]

    def search(self, user_id: str, name: str, limit: int = 50) -> list[Person]:
        """Find the owner's persons by name (partial, case-insensitive match)."""
        term = name.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        if not term:
            return []
        pattern = f"%{term}%"
        try:
            with self._connect() as conn:
                rows = conn.execute(f"""
                    SELECT * FROM persons
                    WHERE user_id = ? AND (
                        first_name LIKE ? ESCAPE '\\'
                        OR last_name LIKE ? ESCAPE '\\'
                        OR first_name || ' ' || last_name LIKE ? ESCAPE '\\'
                    )
                    ORDER BY {self.ORDERINGS["first_name"]}
                    LIMIT ?
                """, (user_id, pattern, pattern, pattern, limit)).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to search persons: {e}") from e
        return [self._row_to_person(row) for row in rows]

    def update(self, person_id: str, user_id: str, **kwargs) -> Person:
        """Update person attributes and return the stored record."""
        updates = {k: v for k, v in kwargs.items() if k in self.UPDATABLE}
        if not updates:
            return self.get(person_id, user_id)

        if "birth_date" in updates and updates["birth_date"]:
            updates["birth_date"] = updates["birth_date"].isoformat()
        if "gender" in updates and updates["gender"]:
            updates["gender"] = Gender(updates["gender"]).value

        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        values = list(updates.values()) + [person_id, user_id]

        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE persons SET {set_clause} WHERE id = ? AND user_id = ?", values
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to update person {person_id}: {e}") from e

        if cursor.rowcount == 0:
            raise NotFoundError(f"Person {person_id} not found")
        return self.get(person_id, user_id)

    def delete(self, person_id: str, user_id: str) -> None:
        """Delete a person by ID. Edges are the caller's concern."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM persons WHERE id = ? AND user_id = ?", (person_id, user_id)
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete person {person_id}: {e}") from e

        if cursor.rowcount == 0:
            raise NotFoundError(f"Person {person_id} not found")

    def _row_to_person(self, row: sqlite3.Row) -> Person:
        """Convert database row to Person model."""
        return Person(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            birth_date=date.fromisoformat(row["birth_date"]) if row["birth_date"] else None,
            gender=Gender(row["gender"]) if row["gender"] else None,
            user_id=row["user_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
