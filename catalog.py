"""Catalog of items, buildings and their recipes."""

import json
import sysconfig
from dataclasses import dataclass
from functools import cache
from pathlib import Path
from typing import Mapping

from frozendict import frozendict

# All quantities are "per minute"

_CATALOG_FILE = "catalog.json"

# Beside the module in a checkout or editable install, under the data prefix
# once installed from a wheel
_LOCAL_CATALOG_PATH = Path(__file__).with_name(_CATALOG_FILE)
_INSTALLED_CATALOG_PATH = Path(sysconfig.get_path("data"), "share", "flowplanner", _CATALOG_FILE)


@dataclass(frozen=True)
class Recipe:
    """a single recipe run by one building"""

    output: str
    amount: float
    inputs: Mapping[str, float]


@dataclass(frozen=True)
class Building:
    """a building type and the recipes it can run"""

    id: str
    name: str
    power: float
    recipes: tuple[Recipe, ...]
    extractor: bool = False


@dataclass(frozen=True)
class Catalog:
    """all known items and buildings"""

    items: Mapping[str, str]
    buildings: tuple[Building, ...]

    def item_name(self, item_id: str) -> str:
        """Get the display name of an item, falling back to its id."""
        return self.items.get(item_id, item_id)

    def find_producer(self, item_id: str) -> tuple[Building, int, Recipe] | None:
        """Find the first recipe producing an item.

        Precondition:
            item_id is a non-empty string

        Postcondition:
            returns (building, recipe_index, recipe) for the first recipe,
            in catalog order, whose output is item_id
            returns None if no recipe produces item_id

        Args:
            item_id: item to produce

        Returns:
            producing building, recipe index within the building, and recipe
        """
        for building in self.buildings:
            for recipe_index, recipe in enumerate(building.recipes):
                if recipe.output == item_id:
                    return building, recipe_index, recipe
        return None


def _parse_recipe(recipe_data: dict, building_id: str) -> Recipe:
    """Create a Recipe from its raw JSON form.

    Precondition:
        recipe_data has "output" and "amount" keys, "inputs" is optional

    Postcondition:
        returns a Recipe with a frozen inputs mapping

    Args:
        recipe_data: raw recipe dict
        building_id: owning building, for error messages

    Returns:
        Recipe object

    Raises:
        ValueError: if a required key is missing or an amount is not a number
    """
    try:
        inputs = {item: float(amount) for item, amount in recipe_data.get("inputs", {}).items()}
        return Recipe(recipe_data["output"], float(recipe_data["amount"]), frozendict(inputs))
    except KeyError as exc:
        raise ValueError(f"Recipe of building '{building_id}' is missing {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid amount in recipe of building '{building_id}': {exc}") from exc


def _parse_building(building_data: dict) -> Building:
    """Create a Building and its recipes from raw JSON form.

    Precondition:
        building_data has "id", "name" and "recipes" keys

    Postcondition:
        returns a Building; "power" defaults to 0 and "extractor" to False

    Args:
        building_data: raw building dict

    Returns:
        Building object

    Raises:
        ValueError: if a required key is missing
    """
    try:
        building_id = building_data["id"]
        recipes = tuple(_parse_recipe(recipe, building_id) for recipe in building_data["recipes"])
        return Building(
            building_id,
            building_data["name"],
            float(building_data.get("power", 0)),
            recipes,
            bool(building_data.get("extractor", False)),
        )
    except KeyError as exc:
        raise ValueError(f"Building is missing {exc}: {building_data}") from exc


def parse_catalog(data: dict) -> Catalog:
    """Build a Catalog from decoded JSON.

    Precondition:
        data has an "items" list of {"id", "name"} and a "buildings" list

    Postcondition:
        returns a frozen Catalog preserving building and recipe order

    Args:
        data: decoded catalog JSON

    Returns:
        Catalog object

    Raises:
        ValueError: if the structure is malformed
    """
    try:
        items = frozendict({item["id"]: item["name"] for item in data["items"]})
        buildings = tuple(_parse_building(building) for building in data["buildings"])
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed catalog: {exc}") from exc
    return Catalog(items, buildings)


def load_catalog(path: str | Path) -> Catalog:
    """Load a catalog from a JSON file.

    Precondition:
        path names a readable UTF-8 JSON file

    Postcondition:
        returns the parsed Catalog

    Args:
        path: catalog file path

    Returns:
        Catalog object

    Raises:
        ValueError: if the file is not valid JSON or the structure is malformed
        OSError: if the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid catalog file {path}: {exc}") from exc
    return parse_catalog(data)


def _default_catalog_path() -> Path:
    """Locate the bundled catalog, preferring the copy beside this module."""
    if _LOCAL_CATALOG_PATH.exists():
        return _LOCAL_CATALOG_PATH
    return _INSTALLED_CATALOG_PATH


@cache
def get_default_catalog() -> Catalog:
    """Get the catalog shipped with this package."""
    return load_catalog(_default_catalog_path())
