"""Texture resizing with Pillow."""

import io
from collections.abc import Callable

from PIL import Image

from notso_lod.graph import Document, Texture
from notso_lod.utils import fit_within
from notso_lod.utils.logging import bright_cyan, dim, log_detail

# PIL save format per MIME type
_FORMATS: dict[str, str] = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
}


def resize_texture(texture: Texture, size: tuple[int, int]) -> tuple[int, int] | None:
    """
    Fit ``texture`` within ``size`` keeping aspect ratio; never upscales.

    Returns:
        The original size if the texture was resized, else None
    """
    image = texture.get_image()
    if image is None:
        return None

    with Image.open(io.BytesIO(image)) as img:
        original = img.size
        new_size = fit_within(original, size)
        if new_size == original:
            return None
        fmt = _FORMATS.get(texture.get_mime_type()) or img.format or "PNG"
        resized = img.resize(new_size, Image.Resampling.LANCZOS)

    out = io.BytesIO()
    if fmt == "JPEG":
        resized.save(out, format=fmt, quality=90)
    else:
        resized.save(out, format=fmt)
    texture.set_image(out.getvalue())
    return original


def resize_textures(
    document: Document,
    size: tuple[int, int],
    select: Callable[[Texture], bool] | None = None,
    quiet: bool = False,
) -> int:
    """
    Resize textures larger than ``size``.

    Args:
        document: Document to modify
        size: Maximum (width, height)
        select: Only textures for which this returns True are considered
        quiet: Don't print a line per resized texture

    Returns:
        Number of textures resized
    """
    resized = 0
    for texture in document.list_textures():
        if select is not None and not select(texture):
            continue
        original = resize_texture(texture, size)
        if original is None:
            continue
        resized += 1
        if not quiet:
            new_size = texture.get_size()
            assert new_size is not None
            log_detail(
                f"{texture.get_name() or '<unnamed>'}: "
                f"{dim(f'{original[0]}x{original[1]}')} -> "
                f"{bright_cyan(f'{new_size[0]}x{new_size[1]}')}"
            )
    return resized
