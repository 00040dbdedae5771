"""
glTF LOD Generator
==================
Adds discrete levels of detail to GLB/glTF assets as MSFT_lod node
extensions, with MSFT_screencoverage thresholds in node extras.

Per mesh and per level:
- Simplifies every primitive with meshoptimizer (source left untouched)
- Clones materials whose textures exceed the level's size budget
- Attaches one shared LOD chain to every node using the mesh

Afterwards, LOD textures are resized per level and identical resources are
merged.

Usage:
    CLI:
        notso-lod model.glb model_lod.glb --ratio 0.5,0.1 --error 0.01,0.05 \\
            --coverage 0.7,0.3,0.0 --texture 512x512,128x128

    Python:
        from notso_lod.config import LODConfig
        from notso_lod.exporters import generate_and_export

        config = LODConfig.from_strings("0.5,0.1", "0.01,0.05", "0.7,0.3,0.0")
        generate_and_export("model.glb", "model_lod.glb", config)
"""

from importlib.metadata import PackageNotFoundError, version

from notso_lod.cli import main

try:
    __version__ = version("notso-lod")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["main"]
