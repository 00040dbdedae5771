"""Vertex welding: merge bitwise-identical vertices within each primitive."""

import numpy as np

from notso_lod.functions.common import read_indices, remap_attributes, replace_indices
from notso_lod.graph import Document, Primitive


def weld_primitive(document: Document, prim: Primitive) -> int:
    """
    Merge vertices whose attributes are identical in every semantic.

    Unindexed primitives receive an index buffer. Vertex order follows the
    first occurrence of each unique vertex.

    Returns:
        Number of vertices removed
    """
    if prim.get_mode() == Primitive.POINTS:
        return 0
    attributes = prim.list_attributes()
    if not attributes:
        return 0

    count = prim.get_vertex_count()
    if count == 0:
        return 0
    rows = np.concatenate(
        [np.ascontiguousarray(a.get_array()).view(np.uint8).reshape(count, -1) for a in attributes],
        axis=1,
    )
    _, first, inverse = np.unique(rows, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)

    if len(first) == count:
        if prim.get_indices() is None:
            replace_indices(document, prim, np.arange(count), count)
        return 0

    # Rank unique vertices by first occurrence to keep the original ordering
    order = np.argsort(first, kind="stable")
    rank = np.empty(len(first), dtype=np.uint32)
    rank[order] = np.arange(len(first), dtype=np.uint32)
    vertex_remap = rank[inverse]

    indices = vertex_remap[read_indices(prim)]
    remap_attributes(document, prim, first[order])
    replace_indices(document, prim, indices, len(first))
    return count - len(first)


def weld(document: Document) -> int:
    """Weld every primitive in the document. Returns vertices removed."""
    return sum(weld_primitive(document, prim) for prim in document.list_primitives())
