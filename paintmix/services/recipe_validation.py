from typing import Any

from ..ai.errors import StructureError

MIN_COMPONENTS = 2


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    if not _is_number(value):
        return False
    if isinstance(value, float) and not value.is_integer():
        return False
    return value > 0


def validate_recipe(recipe: Any) -> None:
    """Check a provider recipe before reconciliation.

    Checks run in order and stop at the first failure, raising StructureError.
    Paint ids are only checked for presence here; matching them against the
    palette happens later in the mix service.
    """
    if not isinstance(recipe, dict):
        raise StructureError("Invalid recipe structure")

    brand = recipe.get("targetBrand")
    name = recipe.get("targetName")
    if not isinstance(brand, str) or not brand or not isinstance(name, str) or not name:
        raise StructureError("Missing target brand or name")

    components = recipe.get("components")
    if not isinstance(components, list) or len(components) < MIN_COMPONENTS:
        raise StructureError(f"Recipe must have at least {MIN_COMPONENTS} components")

    if any(not isinstance(c, dict) or not c.get("paintId") for c in components):
        raise StructureError("Component missing paintId")

    if any(not _is_positive_int(c.get("drops")) for c in components):
        raise StructureError("Drops must be positive integers")

    if "confidence" in recipe:
        confidence = recipe["confidence"]
        if not _is_number(confidence) or not 0 <= confidence <= 1:
            raise StructureError("Confidence must be between 0 and 1")
