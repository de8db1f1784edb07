"""SQLAlchemy ORM models.

Tables:
- workspaces: owner scope for paints (auth-free, resolved per request)
- paints: commercial paints and AI/hand-made mixes; mixes carry a recipe
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    String,
    DateTime,
    Text,
    Boolean,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Workspace(Base):
    """Owner of a palette."""
    __tablename__ = "workspaces"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    slug: Mapped[str] = mapped_column(String(80), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    paints: Mapped[list["Paint"]] = relationship(
        "Paint", back_populates="workspace", cascade="all, delete-orphan"
    )


class Paint(Base):
    """A paint in a palette.

    ``recipe_json`` is only set for mixes and is stored in the canonical
    ``{components, totalDrops}`` shape; older rows may still hold legacy
    shapes until cleaned (see scripts/clean_recipe_format.py).
    """
    __tablename__ = "paints"
    __table_args__ = (
        Index("ix_paints_workspace_id", "workspace_id"),
        Index("ix_paints_workspace_brand", "workspace_id", "brand"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    workspace_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    is_mix: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    recipe_json: Mapped[Any] = mapped_column(JSON, nullable=True)
    ai_metadata_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    workspace: Mapped["Workspace"] = relationship("Workspace", back_populates="paints")
