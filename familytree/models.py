"""Data models for the family tree."""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


def new_id() -> str:
    """Opaque identifier for persons and edges."""
    return str(uuid.uuid4())


class Gender(str, Enum):
    """Recorded gender of a person."""
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class Person(BaseModel):
    """Person owned by a single user."""

    id: str = Field(default_factory=new_id)
    first_name: str
    last_name: str
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    user_id: str
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self) -> Optional[int]:
        """Calculate current age."""
        if not self.birth_date:
            return None
        today = date.today()
        return today.year - self.birth_date.year - (
            (today.month, today.day) < (self.birth_date.month, self.birth_date.day)
        )


class RelationshipEdge(BaseModel):
    """Directed parent -> child relationship."""

    id: str = Field(default_factory=new_id)
    parent_id: str
    child_id: str
    user_id: str
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.parent_id, self.child_id)


class PersonView(Person):
    """Person with direct parents and children attached.

    Derived on every load, never persisted.
    """

    parents: list[Person] = Field(default_factory=list)
    children: list[Person] = Field(default_factory=list)


class Lineage(BaseModel):
    """Ancestors and descendants of one person, nearest generation first."""

    person_id: str
    person_name: str
    ancestors: list[Person] = Field(default_factory=list)
    descendants: list[Person] = Field(default_factory=list)
    generations_up: int
    generations_down: int
