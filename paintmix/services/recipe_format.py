"""Recipe shape normalization.

Three shapes have been stored over time:

1. Legacy array: ``[{"paintId", "name" | "paintName", "drops", ...}, ...]``
2. Extended object: ``{"components", "totalDrops", "notes", "confidence", "isManual", "isEdited"}``
3. Canonical object: ``{"components", "totalDrops"}``

Only the canonical shape is written. ``totalDrops`` is always recomputed.
"""

from typing import Any, Optional, Tuple

EXTRA_RECIPE_FIELDS = ("notes", "confidence", "isManual", "isEdited")


class RecipeFormatError(ValueError):
    """Stored recipe value is not one of the known shapes."""


def _drops_value(component: Any) -> int:
    if not isinstance(component, dict):
        return 0
    drops = component.get("drops")
    if isinstance(drops, bool) or not isinstance(drops, (int, float)):
        return 0
    return int(drops)


def total_drops(components: list) -> int:
    return sum(_drops_value(c) for c in components)


def _from_legacy_component(c: Any) -> dict:
    if not isinstance(c, dict):
        raise RecipeFormatError(f"Legacy recipe component is not an object: {c!r}")
    return {
        "paintId": c.get("paintId"),
        "paintName": c.get("name") or c.get("paintName"),
        "brand": c.get("brand"),
        "drops": c.get("drops") or 0,
        "color": c.get("color"),
        "percentage": c.get("percentage") or 0,
    }


def normalize_recipe(raw: Any) -> Optional[dict]:
    """Convert any known recipe representation into ``{components, totalDrops}``.

    Returns None when there is no recipe. Idempotent.
    """
    if raw is None:
        return None

    if isinstance(raw, (list, tuple)):
        components = [_from_legacy_component(c) for c in raw]
        return {"components": components, "totalDrops": total_drops(components)}

    if isinstance(raw, dict) and "components" in raw:
        components = raw.get("components") or []
        if not isinstance(components, list):
            raise RecipeFormatError("Recipe components must be a list")
        # Extended-form extras (EXTRA_RECIPE_FIELDS) are dropped here; notes are
        # relocated by normalize_paint_recipe.
        return {"components": list(components), "totalDrops": total_drops(components)}

    raise RecipeFormatError(f"Unrecognized recipe format: {type(raw).__name__}")


def extract_recipe_notes(raw: Any) -> str:
    if isinstance(raw, dict):
        notes = raw.get("notes")
        if isinstance(notes, str):
            return notes
    return ""


def normalize_paint_recipe(raw: Any, paint_notes: Optional[str]) -> Tuple[Optional[dict], Optional[str]]:
    """Normalize a paint's recipe and relocate recipe notes onto the paint.

    Paint notes win when both exist.
    """
    recipe = normalize_recipe(raw)
    recipe_notes = extract_recipe_notes(raw)
    notes = paint_notes if paint_notes else (recipe_notes or paint_notes)
    return recipe, notes
