"""Per-level material variants for texture downsizing."""

from notso_lod.graph import Material, Texture
from notso_lod.utils import exceeds_size


def resolve_material_variant(
    material: Material,
    texture_size: tuple[int, int],
    suffix: str,
    level: int,
    texture_levels: dict[Texture, int],
) -> Material:
    """
    Return the material an LOD primitive should use at ``level``.

    Every slot whose texture exceeds ``texture_size`` in either axis gets a
    renamed clone, recorded in ``texture_levels`` so the resize pass can find
    it. If no slot needed a clone the source material is returned as is;
    otherwise a renamed material clone with all five slots assigned.

    Args:
        material: Source material
        texture_size: Target (width, height) for this level
        suffix: Name suffix for this level, e.g. "_LOD1"
        level: 1-based LOD level
        texture_levels: Side table, texture clone -> origin level

    Returns:
        ``material`` or a new variant
    """
    textures: dict[str, Texture | None] = {}
    changed = False

    for slot in Material.SLOTS:
        texture = material.get_texture(slot)
        size = texture.get_size() if texture is not None else None
        if texture is not None and size is not None and exceeds_size(size, texture_size):
            clone = texture.clone().set_name(texture.get_name() + suffix)
            texture_levels[clone] = level
            textures[slot] = clone
            changed = True
        else:
            textures[slot] = texture

    if not changed:
        return material

    variant = material.clone().set_name(material.get_name() + suffix)
    for slot, texture in textures.items():
        variant.set_texture(slot, texture)
    return variant
