"""
MSFT_lod node extension.
========================
An ``LOD`` property holds the ordered alternates for one mesh usage and the
screen coverage thresholds that switch between them. One ``LOD`` instance is
shared by every node instantiating the same source mesh; it is serialized
separately onto each of those nodes since the extension is node-local in the
file format.

Reading MSFT_lod from an input asset is not supported.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from notso_lod.errors import UnsupportedFeatureError
from notso_lod.graph.document import Extension
from notso_lod.graph.properties import ExtensionProperty, Node, Property, PropertyType
from notso_lod.utils.constants import COVERAGE_EXTRAS_KEY, LOD_EXTENSION_NAME

if TYPE_CHECKING:
    from notso_lod.graph.document import Graph
    from notso_lod.graph.io import ReaderContext, WriterContext


class LOD(ExtensionProperty):
    """Ordered chain of alternate nodes plus coverage thresholds."""

    property_type = "LOD"
    extension_name = LOD_EXTENSION_NAME
    parent_types = (PropertyType.NODE,)

    def __init__(self, graph: Graph, name: str = "") -> None:
        super().__init__(graph, name)
        self._coverages: list[float] = []

    def copy(self, other: Self) -> Self:
        super().copy(other)
        self._coverages = list(other._coverages)
        return self

    def equals(self, other: Property, skip: frozenset[str] = frozenset({"name"})) -> bool:
        return (
            super().equals(other, skip)
            and isinstance(other, LOD)
            and self._coverages == other._coverages
        )

    def add_lod(self, node: Node) -> Self:
        """Append an alternate. Coverage length is not checked here."""
        return self._add_ref("lods", node)

    def remove_lod(self, node: Node) -> Self:
        return self._remove_ref("lods", node)

    def list_lods(self) -> list[Node]:
        return self._list_refs("lods")

    def set_coverages(self, coverages: list[float]) -> Self:
        self._coverages = [float(c) for c in coverages]
        return self

    def list_coverages(self) -> list[float]:
        return list(self._coverages)


class LODExtension(Extension):
    """Creates ``LOD`` properties and writes them as MSFT_lod."""

    extension_name = LOD_EXTENSION_NAME

    def create_lod(self, name: str = "") -> LOD:
        """Create an empty LOD chain owned by the document graph."""
        lod = LOD(self.document.graph, name)
        self._track(lod)
        return lod

    def read(self, context: ReaderContext) -> LODExtension:
        raise UnsupportedFeatureError(f"{LOD_EXTENSION_NAME}: read() not implemented")

    def write(self, context: WriterContext) -> LODExtension:
        json_doc = context.json_doc

        for lod in self.list_properties():
            assert isinstance(lod, LOD)
            ids = [context.node_index_map[node] for node in lod.list_lods()]
            coverages = lod.list_coverages()
            for parent in lod.list_parents():
                if not isinstance(parent, Node):
                    continue
                node_def = json_doc.nodes[context.node_index_map[parent]]
                if node_def.extensions is None:
                    node_def.extensions = {}
                node_def.extensions[LOD_EXTENSION_NAME] = {"ids": list(ids)}
                if node_def.extras is None:
                    node_def.extras = {}
                node_def.extras[COVERAGE_EXTRAS_KEY] = list(coverages)

        return self
