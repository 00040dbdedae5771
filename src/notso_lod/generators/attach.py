"""Attach a finished LOD chain to the nodes instantiating its mesh."""

from notso_lod.extensions import LOD, LODExtension
from notso_lod.graph import Document, Mesh, Node
from notso_lod.utils.constants import LOD_EXTENSION_NAME


def attach_lod_chain(
    document: Document,
    extension: LODExtension,
    mesh: Mesh,
    lod_meshes: list[Mesh],
    coverages: list[float],
) -> LOD:
    """
    Build one LOD chain for ``mesh`` and set it on every node using it.

    One alternate node per LOD mesh is created, in level order. Alternate
    nodes carry an identity transform and are not added to any scene; the
    chain is shared by all parent nodes.

    Returns:
        The chain
    """
    lod = extension.create_lod(mesh.get_name())
    for lod_mesh in lod_meshes:
        node = document.create_node(lod_mesh.get_name()).set_mesh(lod_mesh)
        lod.add_lod(node)
    lod.set_coverages(coverages)

    for parent in mesh.list_parents():
        if isinstance(parent, Node):
            parent.set_extension(LOD_EXTENSION_NAME, lod)

    return lod
