"""LOD chain generation: simplified meshes, material variants, attachment."""

from notso_lod.generators.attach import attach_lod_chain
from notso_lod.generators.lod import (
    LODGenerationResult,
    generate_lods,
    generate_mesh_lods,
    resize_lod_textures,
)
from notso_lod.generators.variants import resolve_material_variant

__all__ = [
    "LODGenerationResult",
    "attach_lod_chain",
    "generate_lods",
    "generate_mesh_lods",
    "resize_lod_textures",
    "resolve_material_variant",
]
