"""
Document-wide deduplication.
============================
Merges properties that are equal by value: the first occurrence (document
order) survives, references to later duplicates are re-pointed to it and the
duplicates are disposed. Types are processed leaf-first so that materials
compare equal once their textures have been merged, and meshes once their
accessors and materials have.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Hashable, Sequence

from notso_lod.graph import Accessor, Document, Mesh, Primitive, Property, PropertyType, Texture

DEDUP_TYPES: tuple[str, ...] = (
    PropertyType.ACCESSOR,
    PropertyType.TEXTURE,
    PropertyType.MATERIAL,
    PropertyType.MESH,
)


def _replace(duplicate: Property, survivor: Property) -> None:
    for parent in duplicate.list_parents():
        parent.swap(duplicate, survivor)
    duplicate.dispose()


def _merge(
    properties: Sequence[Property],
    key: Callable[[Property], Hashable],
    same: Callable[[Property, Property], bool],
) -> int:
    """Bucket by ``key`` then confirm with ``same``. Returns merge count."""
    buckets: dict[Hashable, list[Property]] = {}
    merged = 0
    for prop in properties:
        bucket = buckets.setdefault(key(prop), [])
        survivor = next((s for s in bucket if same(s, prop)), None)
        if survivor is None:
            bucket.append(prop)
        else:
            _replace(prop, survivor)
            merged += 1
    return merged


def _accessor_key(prop: Property) -> Hashable:
    assert isinstance(prop, Accessor)
    array = prop.get_array()
    digest = hashlib.sha1(array.tobytes()).hexdigest()
    return (prop.get_type(), array.dtype.str, array.shape, prop.get_normalized(), digest)


def _texture_key(prop: Property) -> Hashable:
    assert isinstance(prop, Texture)
    image = prop.get_image() or b""
    return (prop.get_mime_type(), hashlib.sha1(image).hexdigest())


def _primitive_key(prim: Primitive) -> Hashable:
    attributes = tuple(sorted((s, id(prim.get_attribute(s))) for s in prim.list_semantics()))
    return (
        prim.get_mode(),
        id(prim.get_indices()),
        id(prim.get_material()),
        attributes,
    )


def _mesh_key(prop: Property) -> Hashable:
    assert isinstance(prop, Mesh)
    weights = prop.get_weights()
    return (
        tuple(_primitive_key(p) for p in prop.list_primitives()),
        None if weights is None else tuple(weights),
    )


def _same_mesh(a: Mesh, b: Mesh) -> bool:
    # Keys already compare primitive contents by identity of their children
    if a.get_extras() != b.get_extras():
        return False
    return all(
        pa.get_extras() == pb.get_extras()
        for pa, pb in zip(a.list_primitives(), b.list_primitives())
    )


def _dispose_mesh(mesh: Mesh, survivor: Mesh) -> None:
    primitives = mesh.list_primitives()
    _replace(mesh, survivor)
    for prim in primitives:
        if not prim.list_parents():
            prim.dispose()


def _merge_meshes(meshes: list[Mesh]) -> int:
    survivors: dict[Hashable, Mesh] = {}
    merged = 0
    for mesh in meshes:
        key = _mesh_key(mesh)
        survivor = survivors.get(key)
        if survivor is None or not _same_mesh(survivor, mesh):
            survivors.setdefault(key, mesh)
            continue
        _dispose_mesh(mesh, survivor)
        merged += 1
    return merged


def dedup(
    document: Document, property_types: Sequence[str] = DEDUP_TYPES
) -> dict[str, int]:
    """
    Merge value-identical accessors, textures, materials and meshes.

    Idempotent: a second call on the result merges nothing.

    Returns:
        Number of merged (removed) properties per property type
    """
    counts: dict[str, int] = {}

    if PropertyType.ACCESSOR in property_types:
        counts[PropertyType.ACCESSOR] = _merge(
            document.list_accessors(), _accessor_key, lambda a, b: a.equals(b)
        )
    if PropertyType.TEXTURE in property_types:
        counts[PropertyType.TEXTURE] = _merge(
            document.list_textures(), _texture_key, lambda a, b: a.equals(b)
        )
    if PropertyType.MATERIAL in property_types:
        counts[PropertyType.MATERIAL] = _merge(
            document.list_materials(), lambda _: None, lambda a, b: a.equals(b)
        )
    if PropertyType.MESH in property_types:
        counts[PropertyType.MESH] = _merge_meshes(document.list_meshes())

    return counts
