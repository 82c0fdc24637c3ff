"""Utility functions for parsing item:value specifications."""

from sources import OreQuality


def _split_pair(text: str, expected: str) -> tuple[str, str]:
    """Split text on its first colon and trim whitespace from both parts.

    Precondition:
        text is a non-None string
        expected names the format for error messages, e.g. "Item:Rate"

    Postcondition:
        returns (item_id, value_string), both stripped of whitespace

    Args:
        text: string in format "item:value"
        expected: human readable format description

    Returns:
        tuple of (item_id, value_string)

    Raises:
        ValueError: if text contains no colon or the item part is empty
    """
    if ":" not in text:
        raise ValueError(f"Invalid format: '{text}'. Expected '{expected}'")
    item_id, value = text.split(":", 1)
    item_id = item_id.strip()
    if not item_id:
        raise ValueError(f"Invalid format: '{text}'. Missing item before ':'")
    return item_id, value.strip()


def _parse_rate_value(rate_str: str, item_id: str) -> float:
    """Convert rate string to float.

    Precondition:
        rate_str is a non-None string
        item_id is a non-None string (used for error messages)

    Postcondition:
        returns float value of rate_str

    Raises:
        ValueError: if rate_str cannot be converted to float
    """
    try:
        return float(rate_str)
    except ValueError as exc:
        raise ValueError(
            f"Invalid rate '{rate_str}' for {item_id}. Must be a number."
        ) from exc


def parse_material_rate(text: str) -> tuple[str, float]:
    """Parse an 'item:rate' string into an (item_id, rate) tuple.

    Precondition:
        text is a non-None string in format "item:rate"

    Postcondition:
        returns (item_id, rate) where item_id is trimmed and rate is a float

    Args:
        text: String in format "item:rate" (e.g., "titanium_bar:120")

    Returns:
        Tuple of (item_id, rate)

    Raises:
        ValueError: If format is invalid or rate is not a number
    """
    item_id, rate_str = _split_pair(text, "Item:Rate")
    return item_id, _parse_rate_value(rate_str, item_id)


def parse_item_quality(text: str) -> tuple[str, OreQuality]:
    """Parse an 'item:QUALITY' string into an (item_id, OreQuality) tuple.

    Precondition:
        text is a non-None string in format "item:quality"

    Postcondition:
        returns (item_id, quality); quality names are case-insensitive

    Args:
        text: String like "titanium_ore:PURE"

    Returns:
        Tuple of (item_id, OreQuality)

    Raises:
        ValueError: If format is invalid or quality is not recognized
    """
    item_id, quality_str = _split_pair(text, "Item:Quality")
    try:
        quality = OreQuality[quality_str.upper()]
    except KeyError as exc:
        names = ", ".join(quality.name for quality in OreQuality)
        raise ValueError(f"Invalid quality '{quality_str}'. Must be {names}.") from exc
    return item_id, quality
