"""User model owning habits, achievements and insights."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Application user (a single local profile in the desktop/CLI setup)."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(nullable=False, unique=True, index=True, max_length=64)
    display_name: Optional[str] = Field(default=None, max_length=80)
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
