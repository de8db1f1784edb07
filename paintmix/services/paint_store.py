"""Owner-scoped paint persistence.

Recipes are normalized on every write and every read, so callers only
ever see the canonical ``{components, totalDrops}`` shape.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..models import Paint
from .recipe_format import RecipeFormatError, normalize_paint_recipe

logger = logging.getLogger("paintmix")

PAINT_FIELDS = ("brand", "name", "reference", "color", "is_mix", "notes", "in_stock")


def paint_to_dict(paint: Paint) -> dict:
    try:
        recipe, notes = normalize_paint_recipe(paint.recipe_json, paint.notes)
    except RecipeFormatError as e:
        # One bad row must not break the whole palette listing.
        logger.warning(f"Paint {paint.id} has an unreadable recipe: {e}")
        recipe, notes = None, paint.notes
    return {
        "id": paint.id,
        "workspaceId": paint.workspace_id,
        "brand": paint.brand,
        "name": paint.name,
        "reference": paint.reference,
        "color": paint.color,
        "isMix": paint.is_mix,
        "notes": notes or "",
        "inStock": paint.in_stock,
        "recipe": recipe,
        "aiMetadata": paint.ai_metadata_json,
        "createdAt": paint.created_at,
        "updatedAt": paint.updated_at,
    }


class PaintStore:
    def __init__(self, db: Session):
        self.db = db

    def list_by_owner(
        self,
        owner_id: str,
        brand: Optional[str] = None,
        is_mix: Optional[bool] = None,
        in_stock: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[Paint]:
        stmt = select(Paint).where(Paint.workspace_id == owner_id)
        if brand:
            stmt = stmt.where(Paint.brand == brand)
        if is_mix is not None:
            stmt = stmt.where(Paint.is_mix == is_mix)
        if in_stock is not None:
            stmt = stmt.where(Paint.in_stock == in_stock)
        if search:
            term = f"%{search}%"
            stmt = stmt.where(or_(
                Paint.name.ilike(term),
                Paint.brand.ilike(term),
                Paint.reference.ilike(term),
            ))
        stmt = stmt.order_by(Paint.brand, Paint.name, Paint.id)
        return list(self.db.scalars(stmt).all())

    def get_owned(self, owner_id: str, paint_id: str) -> Optional[Paint]:
        return self.db.scalars(
            select(Paint).where(Paint.id == paint_id, Paint.workspace_id == owner_id)
        ).first()

    def create_owned(self, owner_id: str, draft: dict) -> Paint:
        paint = Paint(workspace_id=owner_id)
        for field in PAINT_FIELDS:
            if field in draft:
                setattr(paint, field, draft[field])
        self._apply_recipe(paint, draft)
        if "ai_metadata" in draft:
            paint.ai_metadata_json = draft["ai_metadata"]

        self.db.add(paint)
        self.db.commit()
        self.db.refresh(paint)
        logger.info(f"Created paint {paint.id} ({paint.brand} {paint.name}) for owner {owner_id}")
        return paint

    def update_owned(self, owner_id: str, paint_id: str, changes: dict) -> Optional[Paint]:
        paint = self.get_owned(owner_id, paint_id)
        if paint is None:
            return None

        for field in PAINT_FIELDS:
            if field in changes:
                setattr(paint, field, changes[field])
        self._apply_recipe(paint, changes)

        self.db.commit()
        self.db.refresh(paint)
        return paint

    def delete_owned(self, owner_id: str, paint_id: str) -> bool:
        paint = self.get_owned(owner_id, paint_id)
        if paint is None:
            return False
        self.db.delete(paint)
        self.db.commit()
        return True

    def _apply_recipe(self, paint: Paint, data: dict) -> None:
        if "recipe" in data:
            recipe, notes = normalize_paint_recipe(data["recipe"], paint.notes)
            paint.recipe_json = recipe
            paint.notes = notes
        if paint.recipe_json is not None and not paint.is_mix:
            raise RecipeFormatError("Only mix paints can carry a recipe")
