"""Rewrite stored mix recipes into the canonical {components, totalDrops} shape.

Legacy array recipes are converted, extended-object extras
(notes, confidence, isManual, isEdited) are dropped, and recipe notes are
moved onto the paint when the paint has none of its own.

Usage: python scripts/clean_recipe_format.py [--dry-run]
"""

import argparse
import os
import sys

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from paintmix.db import get_sessionmaker
from paintmix.models import Paint
from paintmix.services.recipe_format import (
    EXTRA_RECIPE_FIELDS,
    RecipeFormatError,
    normalize_paint_recipe,
)


def needs_cleaning(raw) -> bool:
    if isinstance(raw, list):
        return True
    if isinstance(raw, dict):
        if any(field in raw for field in EXTRA_RECIPE_FIELDS):
            return True
        return set(raw) != {"components", "totalDrops"}
    return False


def clean_recipes(db, dry_run: bool = False) -> dict:
    mixes = db.query(Paint).filter(Paint.is_mix.is_(True)).all()
    print(f"Found {len(mixes)} mixes to process")

    counts = {"updated": 0, "skipped": 0, "errors": 0}

    for mix in mixes:
        raw = mix.recipe_json
        if raw is None:
            counts["skipped"] += 1
            continue

        try:
            recipe, notes = normalize_paint_recipe(raw, mix.notes)
        except RecipeFormatError as e:
            print(f"Error processing {mix.name} ({mix.id}): {e}")
            counts["errors"] += 1
            continue

        stale_total = isinstance(raw, dict) and raw.get("totalDrops") != recipe["totalDrops"]
        if not needs_cleaning(raw) and not stale_total:
            counts["skipped"] += 1
            continue

        if not dry_run:
            mix.recipe_json = recipe
            mix.notes = notes
        print(f"Cleaned: {mix.name} ({mix.id})")
        counts["updated"] += 1

    if not dry_run:
        db.commit()

    return counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="report without writing")
    args = parser.parse_args(argv)

    db = get_sessionmaker()()
    try:
        counts = clean_recipes(db, dry_run=args.dry_run)
    finally:
        db.close()

    print("=" * 60)
    print(f"Updated: {counts['updated']}")
    print(f"Skipped: {counts['skipped']}")
    print(f"Errors:  {counts['errors']}")
    print("=" * 60)
    return 1 if counts["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
