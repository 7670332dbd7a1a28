# src/utils/recipe_store.py

"""Recipe files: one JSON file per recipe, plus portable bundles.

``RecipeStore`` keeps a directory of recipe files that are written
atomically. ``export_recipes``/``import_recipes`` move several recipes at
once through a versioned bundle for backup or sharing.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from src.services.smart_sets.models import (
    SmartSetRecipe,
    now_ts,
    recipe_from_dict,
    recipe_from_json,
    recipe_to_dict,
    recipe_to_json,
)
from src.utils.name_utils import sanitize_name

__all__ = ["RecipeStore", "export_recipes", "import_recipes", "make_safe_file_name"]

logger = logging.getLogger("smartsets.recipe_store")

_FORMAT_VERSION = "1.0"


def make_safe_file_name(name: str | None) -> str:
    """Returns a file-system safe base name (without extension) for a recipe."""
    return sanitize_name(name, fallback="Recipe")


class RecipeStore:
    """Directory of recipe JSON files.

    Attributes:
        recipes_dir: The directory holding ``*.json`` recipes.
    """

    def __init__(self, recipes_dir: Path) -> None:
        """Initializes the store, creating the directory if needed.

        Args:
            recipes_dir: Directory for recipe files.
        """
        self.recipes_dir = Path(recipes_dir)
        self.recipes_dir.mkdir(parents=True, exist_ok=True)

    def list_recipe_files(self) -> list[Path]:
        """Returns every recipe file, sorted by path."""
        if not self.recipes_dir.is_dir():
            return []
        return sorted(self.recipes_dir.glob("*.json"))

    def get_default_path_for_recipe(self, recipe: SmartSetRecipe) -> Path:
        return self.recipes_dir / f"{make_safe_file_name(recipe.name)}.json"

    def load(self, path: Path) -> SmartSetRecipe:
        """Loads a recipe file.

        Args:
            path: The recipe file.

        Returns:
            The parsed recipe.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not a valid recipe.
        """
        path = Path(path)
        if not path.exists():
            msg = f"File not found: {path}"
            raise FileNotFoundError(msg)
        return recipe_from_json(path.read_text(encoding="utf-8"))

    def load_all(self) -> list[SmartSetRecipe]:
        """Loads every readable recipe, skipping invalid files with a warning."""
        recipes: list[SmartSetRecipe] = []
        for path in self.list_recipe_files():
            try:
                recipes.append(self.load(path))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable recipe %s: %s", path, exc)
        return recipes

    def save(self, recipe: SmartSetRecipe, path: Path | None = None) -> Path:
        """Writes a recipe through a temporary file, then replaces the target.

        Updates ``recipe.updated_at``.

        Args:
            recipe: The recipe to save.
            path: Target file; defaults to the recipe's safe file name.

        Returns:
            The path written.
        """
        target = Path(path) if path is not None else self.get_default_path_for_recipe(recipe)
        target.parent.mkdir(parents=True, exist_ok=True)
        recipe.updated_at = now_ts()

        tmp = target.with_name(target.name + ".tmp")
        tmp.write_text(recipe_to_json(recipe), encoding="utf-8")
        os.replace(tmp, target)

        logger.info("Saved recipe '%s' to %s", recipe.name, target)
        return target

    def delete(self, path: Path) -> bool:
        """Deletes a recipe file. Returns False if it did not exist."""
        path = Path(path)
        if not path.exists():
            return False
        path.unlink()
        return True


def export_recipes(recipes: list[SmartSetRecipe], output_path: Path) -> None:
    """Exports recipes to a single portable JSON bundle.

    Args:
        recipes: The recipes to export.
        output_path: The file path to write the bundle to.

    Raises:
        OSError: If the file cannot be written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "version": _FORMAT_VERSION,
        "count": len(recipes),
        "recipes": [recipe_to_dict(r) for r in recipes],
    }

    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)

    logger.info("Exported %d recipes to %s", len(recipes), output_path)


def import_recipes(file_path: Path) -> list[SmartSetRecipe]:
    """Imports recipes from a bundle written by ``export_recipes``.

    Entries without a name or with malformed rules are skipped.

    Args:
        file_path: Path to the bundle.

    Returns:
        The imported recipes.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is malformed or missing required fields.
    """
    if not file_path.exists():
        msg = f"File not found: {file_path}"
        raise FileNotFoundError(msg)

    with open(file_path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON: {exc}"
            raise ValueError(msg) from exc

    if not isinstance(data, dict) or "recipes" not in data:
        msg = "Missing 'recipes' key in JSON"
        raise ValueError(msg)

    raw_recipes = data["recipes"]
    if not isinstance(raw_recipes, list):
        msg = "'recipes' must be a list"
        raise ValueError(msg)

    result: list[SmartSetRecipe] = []
    for entry in raw_recipes:
        try:
            if not isinstance(entry, dict) or not str(entry.get("name", "")).strip():
                msg = "Recipe name is required"
                raise ValueError(msg)
            result.append(recipe_from_dict(entry))
        except (ValueError, KeyError) as exc:
            logger.warning("Skipping invalid recipe entry: %s", exc)

    logger.info("Imported %d recipes from %s", len(result), file_path)
    return result
