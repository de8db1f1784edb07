"""AI mix generation workflow.

palette load -> provider -> reconciliation -> totals -> (optional) save.
No retries: any failure ends the request with MixGenerationError.
"""

import logging
from typing import Any, Optional, Protocol

from ..ai.errors import ConfigurationError
from ..ai.factory import ProviderCache, provider_cache
from ..ai.provider import PaletteEntry, ProviderKind, utc_now_iso
from ..models import Paint
from .paint_store import paint_to_dict
from .recipe_format import normalize_recipe, total_drops

logger = logging.getLogger("paintmix.mix")

EMPTY_PALETTE_MESSAGE = "Your palette is empty. Add some paints before generating mixes."


class PaletteStore(Protocol):
    def list_by_owner(self, owner_id: str) -> list[Paint]: ...

    def create_owned(self, owner_id: str, draft: dict) -> Paint: ...


class MixGenerationError(Exception):
    """Uniform failure for mix generation; the original error is ``__cause__``."""

    def __init__(self, cause: Exception):
        super().__init__(f"Mix generation failed: {cause}")
        self.cause = cause

    @property
    def not_configured(self) -> bool:
        err: Optional[BaseException] = self.cause
        while err is not None:
            if isinstance(err, ConfigurationError):
                return True
            err = err.__cause__
        return False


def with_reference(target_name: str, target_reference: Optional[str]) -> str:
    if target_reference:
        return f"{target_name} (Ref: {target_reference})"
    return target_name


def _equals(term: str, value: str) -> bool:
    return bool(value) and value == term


def _contains(term: str, value: str) -> bool:
    return bool(value) and (term in value or value in term)


def _search_keys(entry: PaletteEntry) -> tuple[str, str, str]:
    name = (entry.name or "").lower()
    brand = (entry.brand or "").lower()
    return name, brand, f"{brand} {name}".strip()


def find_palette_match(paint_id: Any, palette: list[PaletteEntry]) -> Optional[PaletteEntry]:
    """Exact id match, then case-insensitive fuzzy match in tiers.

    Tiers, each scanned in palette order:
    1. name or "brand name" equals the value
    2. name or "brand name" contains, or is contained in, the value
    3. brand alone matches either way

    Containment works in both directions, so a short name like "Red" can
    still match "Bright Red Shade" ahead of "Bright Red" if listed first.
    """
    if paint_id is None:
        return None

    for entry in palette:
        if entry.id == paint_id:
            return entry

    term = str(paint_id).lower().strip()
    if not term:
        return None

    keyed = [(entry, _search_keys(entry)) for entry in palette]

    for entry, (name, _, full_name) in keyed:
        if _equals(term, name) or _equals(term, full_name):
            return entry

    for entry, (name, _, full_name) in keyed:
        if _contains(term, name) or _contains(term, full_name):
            return entry

    # Brand-only hits cannot tell two paints of one brand apart.
    for entry, (_, brand, _) in keyed:
        if _contains(term, brand):
            return entry

    return None


def reconcile_components(components: list, palette: list[PaletteEntry]) -> list:
    reconciled = []
    for component in components:
        paint_id = component.get("paintId") if isinstance(component, dict) else None
        entry = find_palette_match(paint_id, palette)
        if entry is None:
            logger.warning(f"Could not find paint for component: {component!r}")
            reconciled.append(component)
            continue

        reconciled.append({
            "paintId": entry.id,
            "paintName": entry.name,
            "brand": entry.brand,
            "drops": component.get("drops"),
            "color": entry.color,
            "percentage": component.get("percentage") or 0,
        })
    return reconciled


class MixService:
    def __init__(self, store: PaletteStore, providers: ProviderCache = provider_cache):
        self.store = store
        self.providers = providers

    def load_palette(self, owner_id: str) -> list[PaletteEntry]:
        return [PaletteEntry.model_validate(p) for p in self.store.list_by_owner(owner_id)]

    def generate_mix_preview(
        self,
        owner_id: str,
        target_brand: str,
        target_name: str,
        target_color: Optional[str] = None,
        target_reference: Optional[str] = None,
    ) -> dict:
        """Generate a recipe without saving it."""
        try:
            return self._preview(owner_id, target_brand, target_name, target_color, target_reference)
        except MixGenerationError:
            raise
        except Exception as e:
            logger.error(f"Mix generation failed for owner {owner_id}: {e}")
            raise MixGenerationError(e) from e

    def _preview(self, owner_id, target_brand, target_name, target_color, target_reference) -> dict:
        palette = self.load_palette(owner_id)

        if not palette:
            logger.info(f"Owner {owner_id} has an empty palette; skipping AI call")
            return {
                "targetBrand": target_brand,
                "targetName": target_name,
                "targetColor": target_color,
                "targetReference": target_reference,
                "recipe": {
                    "components": [],
                    "notes": EMPTY_PALETTE_MESSAGE,
                    "confidence": 0,
                    "totalDrops": 0,
                },
                "aiMetadata": {
                    "provider": ProviderKind.NONE.value,
                    "model": "none",
                    "timestamp": utc_now_iso(),
                    "error": "Empty palette",
                },
            }

        provider = self.providers.create()

        logger.info(
            f"Generating mix for owner {owner_id}: {target_brand} {target_name} "
            f"(palette={len(palette)}, provider={provider.kind.value})"
        )
        recipe = provider.generate_mix(
            target_brand, with_reference(target_name, target_reference), palette
        )

        components = reconcile_components(recipe.get("components") or [], palette)

        return {
            "targetBrand": target_brand,
            "targetName": target_name,
            "targetColor": target_color,
            "targetReference": target_reference,
            "recipe": {
                "components": components,
                "notes": recipe.get("explanation") or "",
                "confidence": recipe.get("confidence") or 0,
                "totalDrops": total_drops(components),
            },
            "aiMetadata": recipe.get("aiMetadata"),
        }

    def generate_mix(
        self,
        owner_id: str,
        target_brand: str,
        target_name: str,
        target_color: Optional[str] = None,
        target_reference: Optional[str] = None,
    ) -> dict:
        """Generate a recipe and save it as a new mix paint.

        Returns the preview unchanged when there is nothing to save.
        """
        preview = self.generate_mix_preview(
            owner_id, target_brand, target_name, target_color, target_reference
        )

        components = preview["recipe"]["components"]
        if not components:
            return preview

        try:
            paint = self.store.create_owned(owner_id, {
                "brand": target_brand,
                "name": target_name,
                "color": target_color or None,
                "reference": target_reference or "",
                "is_mix": True,
                "recipe": normalize_recipe({"components": components}),
                "notes": preview["recipe"]["notes"],
                "in_stock": True,
                "ai_metadata": preview["aiMetadata"],
            })
        except Exception as e:
            logger.error(f"Saving generated mix failed for owner {owner_id}: {e}")
            raise MixGenerationError(e) from e

        logger.info(f"Mix saved for owner {owner_id}: {paint.id} ({paint.name})")
        result = paint_to_dict(paint)
        result["confidence"] = preview["recipe"]["confidence"]
        result["explanation"] = preview["recipe"]["notes"]
        return result
