"""Tests for catalog loading and lookups"""

import json
from pathlib import Path

import pytest
from pytest import raises

import catalog
from catalog import get_default_catalog, load_catalog, parse_catalog


def test_default_catalog_loads():
    """the bundled catalog should contain items and buildings"""
    catalog = get_default_catalog()
    assert len(catalog.items) > 0
    assert len(catalog.buildings) > 0
    assert catalog.item_name("titanium_ore") == "Titanium Ore"


def test_default_catalog_is_cached():
    """the bundled catalog should only be loaded once"""
    assert get_default_catalog() is get_default_catalog()


def test_item_name_falls_back_to_id():
    """unknown items should be named by their id"""
    assert get_default_catalog().item_name("mystery") == "mystery"


def test_find_producer():
    """find_producer should return building, recipe index and recipe"""
    building, recipe_index, recipe = get_default_catalog().find_producer("wolfram_bar")
    assert building.id == "smelter"
    assert recipe_index == 1
    assert recipe.amount == 30
    assert dict(recipe.inputs) == {"wolfram_ore": 60}


def test_find_producer_none():
    """find_producer should return None when nothing produces the item"""
    assert get_default_catalog().find_producer("mystery") is None


def test_extractor_flag():
    """extractor buildings should be flagged"""
    buildings = {building.id: building for building in get_default_catalog().buildings}
    assert buildings["ore_excavator"].extractor
    assert not buildings["smelter"].extractor


def test_load_catalog_from_file(tmp_path):
    """load_catalog should read a JSON file and apply defaults"""
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "items": [{"id": "rock", "name": "Rock"}],
        "buildings": [{"id": "drill", "name": "Drill", "recipes": [{"output": "rock", "amount": 5}]}],
    }), encoding="utf-8")

    catalog = load_catalog(path)

    drill = catalog.buildings[0]
    assert drill.power == 0
    assert not drill.extractor
    assert dict(drill.recipes[0].inputs) == {}
    assert catalog.item_name("rock") == "Rock"


def test_load_catalog_invalid_json(tmp_path):
    """invalid JSON should raise ValueError"""
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with raises(ValueError, match="Invalid catalog file"):
        load_catalog(path)


def test_parse_catalog_missing_items():
    """a catalog without items should raise ValueError"""
    with raises(ValueError, match="Malformed catalog"):
        parse_catalog({"buildings": []})


def test_parse_catalog_missing_recipe_output():
    """a recipe without output should raise ValueError naming the building"""
    data = {
        "items": [],
        "buildings": [{"id": "drill", "name": "Drill", "recipes": [{"amount": 5}]}],
    }
    with raises(ValueError, match="drill"):
        parse_catalog(data)


def test_parse_catalog_bad_amount():
    """a non-numeric amount should raise ValueError"""
    data = {
        "items": [],
        "buildings": [{"id": "drill", "name": "Drill", "recipes": [{"output": "rock", "amount": "lots"}]}],
    }
    with raises(ValueError, match="Invalid amount"):
        parse_catalog(data)


def test_default_catalog_path_prefers_local_copy(monkeypatch, tmp_path):
    """the catalog beside the module should win over the installed copy"""
    local = tmp_path / "local.json"
    local.write_text("{}", encoding="utf-8")
    monkeypatch.setattr(catalog, "_LOCAL_CATALOG_PATH", local)
    monkeypatch.setattr(catalog, "_INSTALLED_CATALOG_PATH", tmp_path / "installed.json")

    assert catalog._default_catalog_path() == local


def test_default_catalog_path_falls_back_to_installed_copy(monkeypatch, tmp_path):
    """without a local copy the catalog should be read from the data prefix"""
    installed = tmp_path / "share" / "flowplanner" / "catalog.json"
    installed.parent.mkdir(parents=True)
    installed.write_text(json.dumps({"items": [{"id": "rock", "name": "Rock"}], "buildings": []}), encoding="utf-8")
    monkeypatch.setattr(catalog, "_LOCAL_CATALOG_PATH", tmp_path / "missing.json")
    monkeypatch.setattr(catalog, "_INSTALLED_CATALOG_PATH", installed)

    path = catalog._default_catalog_path()

    assert path == installed
    assert load_catalog(path).item_name("rock") == "Rock"


def test_catalog_is_installed_as_data_file():
    """the distribution should install catalog.json where the loader looks for it"""
    tomllib = pytest.importorskip("tomllib")
    pyproject = Path(catalog.__file__).with_name("pyproject.toml")
    if not pyproject.exists():
        pytest.skip("not running from a source checkout")

    with open(pyproject, "rb") as f:
        data_files = tomllib.load(f)["tool"]["setuptools"]["data-files"]

    installed_dir = catalog._INSTALLED_CATALOG_PATH.parent
    assert "catalog.json" in data_files["share/flowplanner"]
    assert installed_dir.parts[-2:] == ("share", "flowplanner")
    assert Path(catalog.__file__).with_name("catalog.json").exists()
