"""Ore qualities and the per-item ore source configuration."""

from enum import IntEnum
from typing import Mapping, Sequence

from frozendict import frozendict


class OreQuality(IntEnum):
    """ore deposit quality levels"""

    IMPURE = 0
    NORMAL = 1
    PURE = 2


# Items per minute yielded by one excavator on a deposit of each quality
_ORE_QUALITY_RATES = [30, 60, 120]

ORE_QUALITY_RATES: Mapping[OreQuality, float] = frozendict(
    {quality: float(_ORE_QUALITY_RATES[quality]) for quality in OreQuality}
)

ORE_QUALITY_LABELS: Mapping[OreQuality, str] = frozendict({
    OreQuality.IMPURE: "Impure",
    OreQuality.NORMAL: "Normal",
    OreQuality.PURE: "Pure",
})

DEFAULT_ORE_SOURCES: tuple[OreQuality, ...] = (OreQuality.NORMAL,)

SourceMapping = Mapping[str, Sequence[OreQuality]]


def get_ore_quality_rate(quality: OreQuality, quality_rates: Mapping[OreQuality, float] | None = None) -> float:
    """Get the extraction rate for an ore quality.

    Precondition:
        quality is an OreQuality
        quality_rates is None or maps every quality in use to a rate

    Postcondition:
        returns the rate from quality_rates when given, else the default table

    Args:
        quality: deposit quality
        quality_rates: optional override of the default rate table

    Returns:
        items per minute for one excavator
    """
    rates = ORE_QUALITY_RATES if quality_rates is None else quality_rates
    return rates[quality]


def get_ore_sources(ore_sources_by_item: SourceMapping, item_id: str) -> tuple[OreQuality, ...]:
    """Get the ordered ore sources configured for an item.

    Precondition:
        ore_sources_by_item maps item ids to sequences of OreQuality

    Postcondition:
        returns the configured sources as a tuple, in order
        returns (NORMAL,) when the item is absent or its list is empty

    Args:
        ore_sources_by_item: per-item source configuration
        item_id: item to look up

    Returns:
        tuple of OreQuality, never empty
    """
    sources = ore_sources_by_item.get(item_id)
    return tuple(sources) if sources else DEFAULT_ORE_SOURCES


def selected_qualities(ore_sources_by_item: SourceMapping) -> Mapping[str, OreQuality]:
    """Reduce each item's source list to its first quality.

    The production graph is sized against a single quality per item; the
    remaining sources only matter once extractor nodes are expanded.
    """
    return frozendict({
        item_id: sources[0] if sources else OreQuality.NORMAL
        for item_id, sources in ore_sources_by_item.items()
    })


def freeze_sources(ore_sources_by_item: SourceMapping) -> frozendict:
    """Copy a source mapping into an immutable one with tuple values."""
    return frozendict({item_id: tuple(sources) for item_id, sources in ore_sources_by_item.items()})


def _check_source_index(sources: tuple[OreQuality, ...], item_id: str, source_index: int) -> None:
    """Raise ValueError if source_index does not address one of sources.

    Precondition:
        sources is the effective source tuple of item_id

    Postcondition:
        returns None if 0 <= source_index < len(sources)

    Raises:
        ValueError: if the index is out of range
    """
    if not 0 <= source_index < len(sources):
        raise ValueError(
            f"Invalid source index {source_index} for {item_id}: "
            f"{len(sources)} source(s) configured"
        )


def set_source_quality(
    ore_sources_by_item: SourceMapping, item_id: str, source_index: int, quality: OreQuality
) -> frozendict:
    """Return a new mapping with one source of an item changed to quality.

    Precondition:
        source_index addresses one of the item's effective sources

    Postcondition:
        returns a new frozen mapping; the input mapping is not modified
        the item entry holds its effective sources with index replaced

    Args:
        ore_sources_by_item: current configuration
        item_id: item whose source changes
        source_index: position of the source in the item's list
        quality: new quality

    Returns:
        updated frozen configuration

    Raises:
        ValueError: if source_index is out of range
    """
    sources = get_ore_sources(ore_sources_by_item, item_id)
    _check_source_index(sources, item_id, source_index)
    updated = sources[:source_index] + (quality,) + sources[source_index + 1:]
    return freeze_sources(ore_sources_by_item).set(item_id, updated)


def add_ore_source(
    ore_sources_by_item: SourceMapping, item_id: str, quality: OreQuality = OreQuality.NORMAL
) -> frozendict:
    """Return a new mapping with an extra source appended for an item.

    Precondition:
        item_id is a non-empty string

    Postcondition:
        the item's effective sources gain quality at the end
        the input mapping is not modified

    Args:
        ore_sources_by_item: current configuration
        item_id: item receiving a source
        quality: quality of the new source

    Returns:
        updated frozen configuration
    """
    sources = get_ore_sources(ore_sources_by_item, item_id)
    return freeze_sources(ore_sources_by_item).set(item_id, sources + (quality,))


def remove_ore_source(
    ore_sources_by_item: SourceMapping, item_id: str, source_index: int
) -> frozendict:
    """Return a new mapping with one source of an item removed.

    Precondition:
        source_index addresses one of the item's effective sources

    Postcondition:
        the addressed source is removed, order of the rest is kept
        removing the only source drops the item entry, so the item
        falls back to the default single NORMAL source
        the input mapping is not modified

    Args:
        ore_sources_by_item: current configuration
        item_id: item losing a source
        source_index: position of the source to remove

    Returns:
        updated frozen configuration

    Raises:
        ValueError: if source_index is out of range
    """
    sources = get_ore_sources(ore_sources_by_item, item_id)
    _check_source_index(sources, item_id, source_index)
    remaining = sources[:source_index] + sources[source_index + 1:]
    frozen = freeze_sources(ore_sources_by_item)
    if not remaining:
        return frozen.delete(item_id) if item_id in frozen else frozen
    return frozen.set(item_id, remaining)
