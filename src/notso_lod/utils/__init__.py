"""Naming and size helpers shared by the LOD passes."""

from notso_lod.utils.constants import LOD_SUFFIX_FORMAT


def lod_suffix(level: int) -> str:
    """Name suffix for properties derived from LOD level ``level`` (1-based)."""
    if level < 1:
        raise ValueError(f"LOD levels are 1-based, got {level}")
    return LOD_SUFFIX_FORMAT.format(level)


def exceeds_size(size: tuple[int, int], target: tuple[int, int]) -> bool:
    """True if ``size`` is larger than ``target`` in either axis."""
    return size[0] > target[0] or size[1] > target[1]


def fit_within(size: tuple[int, int], target: tuple[int, int]) -> tuple[int, int]:
    """
    Scale ``size`` down to fit inside ``target``, keeping aspect ratio.
    Never upscales; dimensions are at least 1px.
    """
    w, h = size
    if not exceeds_size(size, target):
        return w, h
    scale = min(target[0] / w, target[1] / h)
    return max(1, round(w * scale)), max(1, round(h * scale))
