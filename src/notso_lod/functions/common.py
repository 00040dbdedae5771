"""Accessor helpers shared by the geometry functions."""

import numpy as np

from notso_lod.graph import Accessor, Document, Primitive


def index_dtype(vertex_count: int) -> np.dtype:
    """Smallest unsigned index type for ``vertex_count`` (65535 is reserved)."""
    if vertex_count < 0xFFFF:
        return np.dtype(np.uint16)
    return np.dtype(np.uint32)


def read_indices(prim: Primitive) -> np.ndarray:
    """Flat uint32 index list; sequential when the primitive is unindexed."""
    indices = prim.get_indices()
    if indices is None:
        return np.arange(prim.get_vertex_count(), dtype=np.uint32)
    return indices.get_array().reshape(-1).astype(np.uint32)


def create_indices(document: Document, indices: np.ndarray, vertex_count: int, name: str = "") -> Accessor:
    array = np.asarray(indices).reshape(-1).astype(index_dtype(vertex_count))
    return document.create_accessor(name).set_array(array, "SCALAR")


def remap_attributes(document: Document, prim: Primitive, keep: np.ndarray) -> None:
    """
    Point every vertex attribute of ``prim`` at a new accessor holding only
    the rows in ``keep``. Source accessors are left untouched and disposed
    only once nothing references them.
    """
    for semantic in prim.list_semantics():
        source = prim.get_attribute(semantic)
        assert source is not None
        target = document.create_accessor(source.get_name())
        target.set_array(source.get_array()[keep], source.get_type())
        target.set_normalized(source.get_normalized())
        prim.set_attribute(semantic, target)
        if not source.list_parents():
            source.dispose()


def replace_indices(document: Document, prim: Primitive, indices: np.ndarray, vertex_count: int) -> None:
    previous = prim.get_indices()
    name = previous.get_name() if previous is not None else ""
    prim.set_indices(create_indices(document, indices, vertex_count, name))
    if previous is not None and not previous.list_parents():
        previous.dispose()
