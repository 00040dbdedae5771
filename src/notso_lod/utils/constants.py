"""Constants and defaults for LOD generation."""

from typing import TypedDict

# Node extension written for every node that owns an LOD chain
LOD_EXTENSION_NAME = "MSFT_lod"

# Key under node extras holding the screen coverage thresholds
COVERAGE_EXTRAS_KEY = "MSFT_screencoverage"

# Name suffix for everything derived from LOD level i (1-based)
LOD_SUFFIX_FORMAT = "_LOD{}"

# Material texture slots inspected when deciding on material variants
TEXTURE_SLOTS: tuple[str, ...] = (
    "base_color",
    "emissive",
    "metallic_roughness",
    "normal",
    "occlusion",
)

# Accepted input/output extensions
SUPPORTED_EXTENSIONS: tuple[str, ...] = (".glb", ".gltf")


class GenerateDefaults(TypedDict):
    """CLI defaults for LOD generation."""

    interleaved: bool
    weld: bool
    dedup: bool
    coverage_order: str | None
    quiet: bool


DEFAULT_CONFIG: GenerateDefaults = {
    "interleaved": False,  # Separate vertex buffers unless asked otherwise
    "weld": True,  # Merge identical vertices before simplifying
    "dedup": True,  # Merge identical materials/textures after generation
    "coverage_order": "descending",  # None = don't check monotonicity
    "quiet": False,  # Per-mesh detail lines
}
