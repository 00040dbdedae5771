"""Document-level geometry and texture functions."""

from notso_lod.functions.dedup import DEDUP_TYPES, dedup
from notso_lod.functions.simplify import MeshoptSimplifier, Simplifier, simplify_primitive
from notso_lod.functions.textures import resize_texture, resize_textures
from notso_lod.functions.weld import weld, weld_primitive

__all__ = [
    "DEDUP_TYPES",
    "MeshoptSimplifier",
    "Simplifier",
    "dedup",
    "resize_texture",
    "resize_textures",
    "simplify_primitive",
    "weld",
    "weld_primitive",
]
