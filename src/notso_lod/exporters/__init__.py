"""GLB/glTF LOD export functions."""

from notso_lod.exporters.gltf import create_io, generate_and_export, get_document_stats

__all__ = [
    "create_io",
    "generate_and_export",
    "get_document_stats",
]
