"""
Primitive simplification.
=========================
The simplifier itself is an external collaborator (meshoptimizer by default);
this module prepares index/position buffers for it and compacts the result
into fresh accessors so the source primitive's data is never modified.
"""

from __future__ import annotations

from types import ModuleType
from typing import Protocol

import numpy as np

from notso_lod.errors import SimplificationError
from notso_lod.functions.common import read_indices, remap_attributes, replace_indices
from notso_lod.graph import Document, Primitive
from notso_lod.utils.logging import log_warn


class Simplifier(Protocol):
    """Reduces a triangle index buffer under a target count and error bound."""

    def ready(self) -> Simplifier: ...

    def simplify(
        self,
        indices: np.ndarray,
        positions: np.ndarray,
        target_index_count: int,
        target_error: float,
    ) -> np.ndarray: ...


class MeshoptSimplifier:
    """Simplifier backed by the ``meshoptimizer`` package."""

    def __init__(self, options: int = 0) -> None:
        self.options = options
        self._module: ModuleType | None = None

    def ready(self) -> MeshoptSimplifier:
        """Load the native module; raises ImportError if it is unavailable."""
        if self._module is None:
            import meshoptimizer

            self._module = meshoptimizer
        return self

    def simplify(
        self,
        indices: np.ndarray,
        positions: np.ndarray,
        target_index_count: int,
        target_error: float,
    ) -> np.ndarray:
        module = self.ready()._module
        assert module is not None

        indices = np.ascontiguousarray(indices, dtype=np.uint32).reshape(-1)
        positions = np.ascontiguousarray(positions[:, :3], dtype=np.float32)
        # meshoptimizer writes into destination and returns the index count
        destination = np.zeros(len(indices), dtype=np.uint32)
        result_count = module.simplify(
            destination=destination,
            indices=indices,
            vertex_positions=positions,
            target_index_count=target_index_count,
            target_error=target_error,
            options=self.options,
        )
        return destination[: int(result_count)].copy()


def simplify_primitive(
    document: Document,
    prim: Primitive,
    ratio: float,
    error: float,
    simplifier: Simplifier,
) -> Primitive:
    """
    Simplify ``prim`` in place to roughly ``ratio`` of its triangles.

    Callers pass a clone when the source must be preserved; new accessors are
    created for the result either way, so shared accessors are untouched.

    Args:
        document: Document owning ``prim``
        prim: Triangle primitive to simplify
        ratio: Target fraction of indices to keep, (0, 1]
        error: Maximum relative error the simplifier may introduce
        simplifier: Simplifier collaborator

    Returns:
        ``prim``

    Raises:
        SimplificationError: If the simplifier output is empty or invalid
    """
    if prim.get_mode() != Primitive.TRIANGLES:
        log_warn(f"Skipping simplification of primitive with mode {prim.get_mode()}")
        return prim

    position = prim.get_attribute("POSITION")
    if position is None:
        raise SimplificationError("Cannot simplify a primitive without POSITION")

    vertex_count = position.get_count()
    src = read_indices(prim)
    target_index_count = int(ratio * len(src) / 3) * 3

    dst = np.asarray(
        simplifier.simplify(src, position.get_array(), target_index_count, error)
    ).reshape(-1)

    if len(dst) == 0:
        raise SimplificationError(
            f"Simplifier removed every triangle (ratio={ratio}, error={error})"
        )
    if len(dst) % 3 != 0:
        raise SimplificationError(f"Simplifier returned {len(dst)} indices, not triangles")
    if int(dst.max()) >= vertex_count:
        raise SimplificationError("Simplifier returned out-of-range vertex indices")

    # Compact: keep only referenced vertices, in ascending original order
    used = np.unique(dst)
    remap = np.zeros(vertex_count, dtype=np.uint32)
    remap[used] = np.arange(len(used), dtype=np.uint32)

    remap_attributes(document, prim, used)
    replace_indices(document, prim, remap[dst], len(used))
    return prim
