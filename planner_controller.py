"""Controller for flow planning state - no GUI dependencies"""

import logging
from typing import Optional

from frozendict import frozendict

from assembler import FlowGraph
from catalog import Catalog
from layout import LayoutConfig, LayoutOracle, layered_layout
from planner import FlowDataParams, generate_flow_data
from sources import (
    OreQuality,
    SourceMapping,
    add_ore_source,
    freeze_sources,
    get_ore_sources,
    remove_ore_source,
    set_source_quality,
)

_LOGGER = logging.getLogger("flowplanner")


class PlannerController:
    """Stateful controller - single source of truth for the planning configuration

    The ore source callbacks (on_ore_quality_change, on_add_ore_source,
    on_remove_ore_source) are the hooks a presentation layer wires to the
    controls of extractor nodes. They only edit configuration;
    generate_flow_graph re-runs the pipeline on the new state.
    """

    def __init__(
        self,
        catalog: Catalog,
        layout: LayoutOracle = layered_layout,
        layout_config: LayoutConfig = LayoutConfig(),
    ):
        """Initialize controller with a catalog.

        Precondition:
            catalog is a Catalog with at least one item

        Postcondition:
            target item is the first catalog item, target amount is 1
            no ore sources are configured
            no flow graph has been generated

        Args:
            catalog: item and building catalog
            layout: layout oracle used for generation
            layout_config: layout direction, spacing and node footprint
        """
        self.catalog = catalog
        self._layout = layout
        self._layout_config = layout_config
        self._target_item_id = next(iter(catalog.items), "")
        self._target_amount = 1.0
        self._ore_sources = frozendict()
        self._current_flow_graph: Optional[FlowGraph] = None

    # ========== State Getters ==========

    def get_target_item(self) -> str:
        """Get the target item id."""
        return self._target_item_id

    def get_target_amount(self) -> float:
        """Get the target amount as entered, before any coercion."""
        return self._target_amount

    def get_ore_sources(self, item_id: str) -> tuple[OreQuality, ...]:
        """Get the effective ore sources of an item, never empty."""
        return get_ore_sources(self._ore_sources, item_id)

    def get_ore_source_config(self) -> SourceMapping:
        """Get the full ore source configuration."""
        return self._ore_sources

    def get_current_flow_graph(self) -> Optional[FlowGraph]:
        """Get the most recently generated flow graph, if any."""
        return self._current_flow_graph

    # ========== State Setters ==========

    def set_target_item(self, item_id: str) -> None:
        """Set the target item id.

        Precondition:
            item_id is a non-empty string

        Postcondition:
            self._target_item_id == item_id

        Raises:
            ValueError: if item_id is not in the catalog
        """
        if item_id not in self.catalog.items:
            raise ValueError(f"Unknown item '{item_id}'")
        self._target_item_id = item_id

    def set_target_amount(self, amount: float) -> None:
        """Set the target amount; non-positive values are kept as entered."""
        self._target_amount = amount

    def set_ore_sources(self, ore_sources_by_item: SourceMapping) -> None:
        """Replace the ore source configuration with a frozen copy."""
        self._ore_sources = freeze_sources(ore_sources_by_item)

    # ========== Ore Source Callbacks ==========

    def on_ore_quality_change(self, item_id: str, source_index: int, quality: OreQuality) -> None:
        """Change the quality of one ore source of an item.

        Precondition:
            source_index addresses one of the item's sources

        Postcondition:
            the addressed source has the new quality, others are unchanged

        Raises:
            ValueError: if source_index is out of range
        """
        self._ore_sources = set_source_quality(self._ore_sources, item_id, source_index, quality)
        _LOGGER.info("Source %s of %s set to %s", source_index + 1, item_id, quality.name)

    def on_add_ore_source(self, item_id: str) -> None:
        """Append a NORMAL ore source to an item."""
        self._ore_sources = add_ore_source(self._ore_sources, item_id)
        _LOGGER.info("Added ore source to %s (%s total)", item_id, len(self.get_ore_sources(item_id)))

    def on_remove_ore_source(self, item_id: str, source_index: int) -> None:
        """Remove one ore source of an item.

        Precondition:
            source_index addresses one of the item's sources

        Postcondition:
            the addressed source is gone; an item left without sources
            falls back to the default single NORMAL source

        Raises:
            ValueError: if source_index is out of range
        """
        self._ore_sources = remove_ore_source(self._ore_sources, item_id, source_index)
        _LOGGER.info("Removed ore source %s from %s", source_index + 1, item_id)

    # ========== Actions ==========

    def build_params(self) -> FlowDataParams:
        """Snapshot the current state into generation parameters."""
        return FlowDataParams(
            target_item_id=self._target_item_id,
            target_amount=self._target_amount,
            catalog=self.catalog,
            ore_sources_by_item=self._ore_sources,
        )

    def generate_flow_graph(self) -> FlowGraph:
        """Generate the flow graph for the current state.

        Precondition:
            target item is set

        Postcondition:
            self._current_flow_graph is the generated graph
            info messages are logged

        Returns:
            generated FlowGraph

        Raises:
            ValueError: if the target is unknown or the catalog is cyclic
        """
        _LOGGER.info("Generating flow graph...")
        flow_graph = generate_flow_data(
            self.build_params(),
            layout=self._layout,
            layout_config=self._layout_config,
        )
        self._current_flow_graph = flow_graph
        _LOGGER.info("Flow graph generated successfully")
        return flow_graph
