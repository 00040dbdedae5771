"""
LOD chain generation.
=====================
For every mesh in the document, builds one simplified mesh per configured
level, resolves per-level material variants when texture targets are set, and
attaches the resulting chain to the nodes using the mesh.

Meshes are processed in document order, levels in order, primitives in order.
Simplifier failures propagate and abort the whole run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from notso_lod.config import LODConfig
from notso_lod.errors import SimplificationError
from notso_lod.extensions import LOD, LODExtension
from notso_lod.functions import MeshoptSimplifier, Simplifier, resize_textures, simplify_primitive
from notso_lod.generators.attach import attach_lod_chain
from notso_lod.generators.variants import resolve_material_variant
from notso_lod.graph import Document, Mesh, Texture
from notso_lod.utils import lod_suffix
from notso_lod.utils.logging import bright_cyan, dim, format_count, log_detail


@dataclass
class LODGenerationResult:
    """What ``generate_lods`` added to the document."""

    chains: dict[Mesh, LOD] = field(default_factory=dict)
    lod_meshes: dict[Mesh, list[Mesh]] = field(default_factory=dict)
    # Texture clone -> 1-based level it was created for
    texture_levels: dict[Texture, int] = field(default_factory=dict)

    @property
    def mesh_count(self) -> int:
        return len(self.chains)

    @property
    def alternate_count(self) -> int:
        return sum(len(meshes) for meshes in self.lod_meshes.values())


def generate_mesh_lods(
    document: Document,
    mesh: Mesh,
    config: LODConfig,
    simplifier: Simplifier,
    texture_levels: dict[Texture, int],
) -> list[Mesh]:
    """
    Build one simplified mesh per level of ``config`` for ``mesh``.

    Source primitives are cloned before simplification, so ``mesh`` keeps
    its vertex and index data.

    Args:
        document: Document owning ``mesh``
        mesh: Source mesh
        config: Validated LOD configuration
        simplifier: Ready simplifier
        texture_levels: Side table receiving texture clones, by level

    Returns:
        LOD meshes, highest detail first
    """
    lod_meshes: list[Mesh] = []

    for level, lod_level in enumerate(config.levels, start=1):
        suffix = lod_suffix(level)
        texture_size = (
            config.texture_sizes[level - 1].as_tuple() if config.texture_sizes else None
        )
        lod_mesh = document.create_mesh(mesh.get_name() + suffix)

        for prim in mesh.list_primitives():
            try:
                lod_prim = simplify_primitive(
                    document, prim.clone(), lod_level.ratio, lod_level.error, simplifier
                )
            except SimplificationError as e:
                raise SimplificationError(
                    f"Mesh '{mesh.get_name() or '<unnamed>'}', LOD{level}: {e}"
                ) from e
            material = lod_prim.get_material()
            if texture_size is not None and material is not None:
                variant = resolve_material_variant(
                    material, texture_size, suffix, level, texture_levels
                )
                lod_prim.set_material(variant)
            lod_mesh.add_primitive(lod_prim)

        lod_meshes.append(lod_mesh)

    return lod_meshes


def generate_lods(
    document: Document,
    config: LODConfig,
    simplifier: Simplifier | None = None,
    quiet: bool = True,
) -> LODGenerationResult:
    """
    Generate and attach LOD chains for every mesh in ``document``.

    Texture resizing and dedup are separate passes, see
    ``resize_lod_textures`` and ``notso_lod.functions.dedup``.

    Args:
        document: Document to modify in place
        config: LOD configuration, validated here
        simplifier: Defaults to ``MeshoptSimplifier``
        quiet: Don't print a line per mesh

    Returns:
        Chains, LOD meshes and texture clones, keyed by source mesh
    """
    config.validate()
    simplifier = (simplifier or MeshoptSimplifier()).ready()
    extension = document.create_extension(LODExtension)
    result = LODGenerationResult()

    # Snapshot: LOD meshes created below must not be processed themselves
    for mesh in list(document.list_meshes()):
        lod_meshes = generate_mesh_lods(
            document, mesh, config, simplifier, result.texture_levels
        )
        chain = attach_lod_chain(document, extension, mesh, lod_meshes, config.coverages)
        result.lod_meshes[mesh] = lod_meshes
        result.chains[mesh] = chain

        if not quiet:
            counts = " -> ".join(
                str(sum(p.get_index_count() // 3 for p in m.list_primitives()))
                for m in [mesh, *lod_meshes]
            )
            nodes = format_count(len(chain.list_parents()), "node")
            log_detail(
                f"{mesh.get_name() or '<unnamed>'}: {bright_cyan(counts)} tris "
                f"{dim(f'({nodes})')}"
            )

    return result


def resize_lod_textures(
    document: Document,
    config: LODConfig,
    texture_levels: dict[Texture, int],
    quiet: bool = False,
) -> int:
    """
    Resize every texture clone to the target size of its origin level.

    Returns:
        Number of textures resized
    """
    resized = 0
    for level, size in enumerate(config.texture_sizes, start=1):
        resized += resize_textures(
            document,
            size.as_tuple(),
            select=lambda texture, level=level: texture_levels.get(texture) == level,
            quiet=quiet,
        )
    return resized
