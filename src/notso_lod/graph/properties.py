"""
Property graph for glTF scenes.
================================
Every scene entity (node, mesh, material, ...) is a ``Property`` owned by a
``Graph``. Properties point at each other through references; each reference
edge is mirrored in the child's parent index so ``list_parents()`` can answer
"who uses me" without scanning the graph. Properties compare by identity;
``equals()`` compares by value and is what dedup uses.
"""

from __future__ import annotations

import copy
import io
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Self

import numpy as np
from PIL import Image

from notso_lod.utils.constants import TEXTURE_SLOTS

if TYPE_CHECKING:
    from notso_lod.graph.document import Graph


class PropertyType:
    """Property type names, as used in ``ExtensionProperty.parent_types``."""

    SCENE = "Scene"
    NODE = "Node"
    CAMERA = "Camera"
    MESH = "Mesh"
    PRIMITIVE = "Primitive"
    ACCESSOR = "Accessor"
    MATERIAL = "Material"
    TEXTURE = "Texture"


def _values_equal(a: Any, b: Any) -> bool:
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        if not (isinstance(a, np.ndarray) and isinstance(b, np.ndarray)):
            return False
        return a.dtype == b.dtype and a.shape == b.shape and np.array_equal(a, b)
    return a == b


class Property:
    """Base class of every graph entity."""

    property_type: ClassVar[str] = "Property"

    def __init__(self, graph: Graph, name: str = "") -> None:
        self.graph = graph
        self._name = name
        self._extras: dict[str, Any] = {}
        self._attrs: dict[str, Any] = self._default_attributes()
        self._refs: dict[str, Property | None] = {}
        self._ref_lists: dict[str, list[Property]] = {}
        self._ref_maps: dict[str, dict[str, Property]] = {}
        # Reverse index: parent -> number of edges pointing at self
        self._parents: Counter[Property] = Counter()
        self._disposed = False
        graph._add(self)

    def __repr__(self) -> str:
        return f"<{self.property_type} {self._name!r}>"

    def _default_attributes(self) -> dict[str, Any]:
        return {}

    # -- name / extras -----------------------------------------------------

    def get_name(self) -> str:
        return self._name

    def set_name(self, name: str) -> Self:
        self._name = name
        return self

    def get_extras(self) -> dict[str, Any]:
        return self._extras

    def set_extras(self, extras: dict[str, Any]) -> Self:
        self._extras = dict(extras)
        return self

    # -- value attributes --------------------------------------------------

    def _get(self, attr: str) -> Any:
        return self._attrs[attr]

    def _set(self, attr: str, value: Any) -> Self:
        self._attrs[attr] = value
        return self

    # -- references --------------------------------------------------------

    def _link(self, child: Property) -> None:
        if child.graph is not self.graph:
            raise ValueError(f"Cannot reference {child!r} from another graph")
        if child._disposed:
            raise ValueError(f"Cannot reference disposed {child!r}")
        child._parents[self] += 1

    def _unlink(self, child: Property) -> None:
        child._parents[self] -= 1
        if child._parents[self] <= 0:
            del child._parents[self]

    def _get_ref(self, attr: str) -> Any:
        return self._refs.get(attr)

    def _set_ref(self, attr: str, child: Property | None) -> Self:
        prev = self._refs.get(attr)
        if prev is child:
            return self
        if child is not None:
            self._link(child)
        if prev is not None:
            self._unlink(prev)
        self._refs[attr] = child
        return self

    def _list_refs(self, attr: str) -> list[Any]:
        return list(self._ref_lists.get(attr, ()))

    def _add_ref(self, attr: str, child: Property) -> Self:
        self._link(child)
        self._ref_lists.setdefault(attr, []).append(child)
        return self

    def _remove_ref(self, attr: str, child: Property) -> Self:
        refs = self._ref_lists.get(attr, [])
        kept = [c for c in refs if c is not child]
        for _ in range(len(refs) - len(kept)):
            self._unlink(child)
        self._ref_lists[attr] = kept
        return self

    def _get_ref_map(self, attr: str, key: str) -> Any:
        return self._ref_maps.get(attr, {}).get(key)

    def _set_ref_map(self, attr: str, key: str, child: Property | None) -> Self:
        refs = self._ref_maps.setdefault(attr, {})
        prev = refs.get(key)
        if prev is child:
            return self
        if child is not None:
            self._link(child)
            refs[key] = child
        else:
            refs.pop(key, None)
        if prev is not None:
            self._unlink(prev)
        return self

    def _list_ref_map_keys(self, attr: str) -> list[str]:
        return list(self._ref_maps.get(attr, {}))

    def _iter_children(self) -> Iterator[Property]:
        for child in self._refs.values():
            if child is not None:
                yield child
        for children in self._ref_lists.values():
            yield from children
        for refs in self._ref_maps.values():
            yield from refs.values()

    def list_parents(self) -> list[Property]:
        """Every property currently referencing this one."""
        return list(self._parents)

    # -- extensions --------------------------------------------------------

    def get_extension(self, name: str) -> ExtensionProperty | None:
        return self._get_ref_map("extensions", name)

    def set_extension(self, name: str, prop: ExtensionProperty | None) -> Self:
        if prop is not None and self.property_type not in prop.parent_types:
            raise TypeError(
                f"{prop.extension_name} cannot be attached to {self.property_type}"
            )
        return self._set_ref_map("extensions", name, prop)

    def list_extensions(self) -> list[ExtensionProperty]:
        return [self._ref_maps["extensions"][k] for k in self._list_ref_map_keys("extensions")]

    # -- graph operations --------------------------------------------------

    def swap(self, old: Property, new: Property | None) -> Self:
        """Re-point every reference from ``old`` to ``new`` (None removes it)."""
        for attr, child in list(self._refs.items()):
            if child is old:
                self._set_ref(attr, new)
        for attr, children in list(self._ref_lists.items()):
            if not any(c is old for c in children):
                continue
            for c in children:
                if c is old:
                    self._unlink(old)
                    if new is not None:
                        self._link(new)
            if new is None:
                self._ref_lists[attr] = [c for c in children if c is not old]
            else:
                self._ref_lists[attr] = [new if c is old else c for c in children]
        for attr, refs in self._ref_maps.items():
            for key, child in list(refs.items()):
                if child is old:
                    self._set_ref_map(attr, key, new)
        return self

    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Detach from all parents, release all children and leave the graph."""
        if self._disposed:
            return
        for parent in self.list_parents():
            parent.swap(self, None)
        for child in self._iter_children():
            self._unlink(child)
        self._refs.clear()
        self._ref_lists.clear()
        self._ref_maps.clear()
        self.graph._remove(self)
        self._disposed = True

    def copy(self, other: Self) -> Self:
        """Copy attributes and references of ``other`` into this property."""
        for child in list(self._iter_children()):
            self._unlink(child)
        self._name = other._name
        self._extras = copy.deepcopy(other._extras)
        self._attrs = copy.deepcopy(other._attrs)
        self._refs = {}
        self._ref_lists = {}
        self._ref_maps = {}
        for attr, child in other._refs.items():
            self._set_ref(attr, child)
        for attr, children in other._ref_lists.items():
            for child in children:
                self._add_ref(attr, child)
        for attr, refs in other._ref_maps.items():
            for key, child in refs.items():
                self._set_ref_map(attr, key, child)
        return self

    def clone(self) -> Self:
        """Shallow clone: new identity, same children."""
        return type(self)(self.graph).copy(self)

    def equals(self, other: Property, skip: frozenset[str] = frozenset({"name"})) -> bool:
        """Value equality; children must be identical (same objects)."""
        if type(self) is not type(other):
            return False
        if "name" not in skip and self._name != other._name:
            return False
        if "extras" not in skip and self._extras != other._extras:
            return False
        if self._attrs.keys() != other._attrs.keys():
            return False
        for key, value in self._attrs.items():
            if key not in skip and not _values_equal(value, other._attrs[key]):
                return False
        if {k: v for k, v in self._refs.items() if v is not None} != {
            k: v for k, v in other._refs.items() if v is not None
        }:
            return False
        for attr in self._ref_lists.keys() | other._ref_lists.keys():
            mine, theirs = self._list_refs(attr), other._list_refs(attr)
            if len(mine) != len(theirs) or any(a is not b for a, b in zip(mine, theirs)):
                return False
        for attr in self._ref_maps.keys() | other._ref_maps.keys():
            mine_map = self._ref_maps.get(attr, {})
            theirs_map = other._ref_maps.get(attr, {})
            if mine_map.keys() != theirs_map.keys():
                return False
            if any(mine_map[k] is not theirs_map[k] for k in mine_map):
                return False
        return True


class ExtensionProperty(Property):
    """Property defined by an extension, attached through ``set_extension``."""

    extension_name: ClassVar[str] = ""
    parent_types: ClassVar[tuple[str, ...]] = ()


class Scene(Property):
    property_type = PropertyType.SCENE

    def add_child(self, node: Node) -> Self:
        return self._add_ref("children", node)

    def remove_child(self, node: Node) -> Self:
        return self._remove_ref("children", node)

    def list_children(self) -> list[Node]:
        return self._list_refs("children")


class Node(Property):
    """Scene graph node: transform, child nodes, and an optional mesh/camera."""

    property_type = PropertyType.NODE

    def _default_attributes(self) -> dict[str, Any]:
        return {
            "translation": [0.0, 0.0, 0.0],
            "rotation": [0.0, 0.0, 0.0, 1.0],
            "scale": [1.0, 1.0, 1.0],
            "matrix": None,
        }

    def get_translation(self) -> list[float]:
        return list(self._get("translation"))

    def set_translation(self, translation: list[float]) -> Self:
        return self._set("translation", [float(v) for v in translation])

    def get_rotation(self) -> list[float]:
        return list(self._get("rotation"))

    def set_rotation(self, rotation: list[float]) -> Self:
        return self._set("rotation", [float(v) for v in rotation])

    def get_scale(self) -> list[float]:
        return list(self._get("scale"))

    def set_scale(self, scale: list[float]) -> Self:
        return self._set("scale", [float(v) for v in scale])

    def get_matrix(self) -> list[float] | None:
        matrix = self._get("matrix")
        return None if matrix is None else list(matrix)

    def set_matrix(self, matrix: list[float] | None) -> Self:
        return self._set("matrix", None if matrix is None else [float(v) for v in matrix])

    def get_mesh(self) -> Mesh | None:
        return self._get_ref("mesh")

    def set_mesh(self, mesh: Mesh | None) -> Self:
        return self._set_ref("mesh", mesh)

    def get_camera(self) -> Camera | None:
        return self._get_ref("camera")

    def set_camera(self, camera: Camera | None) -> Self:
        return self._set_ref("camera", camera)

    def add_child(self, node: Node) -> Self:
        return self._add_ref("children", node)

    def remove_child(self, node: Node) -> Self:
        return self._remove_ref("children", node)

    def list_children(self) -> list[Node]:
        return self._list_refs("children")


class Camera(Property):
    """Camera kept as its raw glTF definition (perspective/orthographic)."""

    property_type = PropertyType.CAMERA

    def _default_attributes(self) -> dict[str, Any]:
        return {"definition": {}}

    def get_definition(self) -> dict[str, Any]:
        return self._get("definition")

    def set_definition(self, definition: dict[str, Any]) -> Self:
        return self._set("definition", dict(definition))


class Mesh(Property):
    property_type = PropertyType.MESH

    def _default_attributes(self) -> dict[str, Any]:
        return {"weights": None}

    def add_primitive(self, primitive: Primitive) -> Self:
        return self._add_ref("primitives", primitive)

    def remove_primitive(self, primitive: Primitive) -> Self:
        return self._remove_ref("primitives", primitive)

    def list_primitives(self) -> list[Primitive]:
        return self._list_refs("primitives")

    def get_weights(self) -> list[float] | None:
        return self._get("weights")

    def set_weights(self, weights: list[float] | None) -> Self:
        return self._set("weights", weights)


class Primitive(Property):
    """Geometry draw call: vertex attributes, optional indices and material."""

    property_type = PropertyType.PRIMITIVE

    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6

    def _default_attributes(self) -> dict[str, Any]:
        return {"mode": Primitive.TRIANGLES}

    def get_mode(self) -> int:
        return self._get("mode")

    def set_mode(self, mode: int) -> Self:
        return self._set("mode", int(mode))

    def get_attribute(self, semantic: str) -> Accessor | None:
        return self._get_ref_map("attributes", semantic)

    def set_attribute(self, semantic: str, accessor: Accessor | None) -> Self:
        return self._set_ref_map("attributes", semantic, accessor)

    def list_semantics(self) -> list[str]:
        return self._list_ref_map_keys("attributes")

    def list_attributes(self) -> list[Accessor]:
        return [self._ref_maps["attributes"][s] for s in self.list_semantics()]

    def get_indices(self) -> Accessor | None:
        return self._get_ref("indices")

    def set_indices(self, indices: Accessor | None) -> Self:
        return self._set_ref("indices", indices)

    def get_material(self) -> Material | None:
        return self._get_ref("material")

    def set_material(self, material: Material | None) -> Self:
        return self._set_ref("material", material)

    def get_vertex_count(self) -> int:
        position = self.get_attribute("POSITION")
        if position is not None:
            return position.get_count()
        attributes = self.list_attributes()
        return attributes[0].get_count() if attributes else 0

    def get_index_count(self) -> int:
        indices = self.get_indices()
        return indices.get_count() if indices is not None else self.get_vertex_count()


# glTF componentType <-> numpy dtype
COMPONENT_DTYPES: dict[int, np.dtype] = {
    5120: np.dtype(np.int8),
    5121: np.dtype(np.uint8),
    5122: np.dtype(np.int16),
    5123: np.dtype(np.uint16),
    5125: np.dtype(np.uint32),
    5126: np.dtype(np.float32),
}
DTYPE_COMPONENTS: dict[np.dtype, int] = {v: k for k, v in COMPONENT_DTYPES.items()}

# glTF accessor type -> number of components
ELEMENT_SIZES: dict[str, int] = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
    "MAT2": 4,
    "MAT3": 9,
    "MAT4": 16,
}
_DEFAULT_TYPES: dict[int, str] = {1: "SCALAR", 2: "VEC2", 3: "VEC3", 4: "VEC4"}


class Accessor(Property):
    """Typed array of elements; stored as a 2D numpy array (count, components)."""

    property_type = PropertyType.ACCESSOR

    def _default_attributes(self) -> dict[str, Any]:
        return {
            "array": np.zeros((0, 1), dtype=np.float32),
            "type": "SCALAR",
            "normalized": False,
        }

    def get_array(self) -> np.ndarray:
        return self._get("array")

    def set_array(self, array: np.ndarray, element_type: str | None = None) -> Self:
        array = np.asarray(array)
        if array.dtype not in DTYPE_COMPONENTS:
            raise TypeError(f"Unsupported accessor dtype: {array.dtype}")
        if array.ndim == 1:
            array = array.reshape(-1, 1)
        if element_type is None:
            element_type = _DEFAULT_TYPES.get(array.shape[1])
            if element_type is None:
                raise ValueError(f"Cannot infer accessor type for shape {array.shape}")
        elif ELEMENT_SIZES[element_type] != array.shape[1]:
            raise ValueError(f"{element_type} does not match array shape {array.shape}")
        self._set("type", element_type)
        return self._set("array", np.ascontiguousarray(array))

    def get_type(self) -> str:
        return self._get("type")

    def get_component_type(self) -> int:
        return DTYPE_COMPONENTS[self.get_array().dtype]

    def get_element_size(self) -> int:
        return ELEMENT_SIZES[self.get_type()]

    def get_count(self) -> int:
        return int(self.get_array().shape[0])

    def get_normalized(self) -> bool:
        return self._get("normalized")

    def set_normalized(self, normalized: bool) -> Self:
        return self._set("normalized", bool(normalized))

    def get_min(self) -> list[float]:
        return self.get_array().min(axis=0).tolist()

    def get_max(self) -> list[float]:
        return self.get_array().max(axis=0).tolist()


@dataclass(frozen=True)
class TextureInfo:
    """Per-slot texture binding: UV set and sampler state."""

    tex_coord: int = 0
    mag_filter: int | None = None
    min_filter: int | None = None
    wrap_s: int = 10497
    wrap_t: int = 10497


class Texture(Property):
    """Encoded image data (PNG/JPEG/WebP) plus its MIME type."""

    property_type = PropertyType.TEXTURE

    def _default_attributes(self) -> dict[str, Any]:
        return {"image": None, "mime_type": "", "uri": ""}

    def get_image(self) -> bytes | None:
        return self._get("image")

    def set_image(self, image: bytes | None) -> Self:
        return self._set("image", image)

    def get_mime_type(self) -> str:
        return self._get("mime_type")

    def set_mime_type(self, mime_type: str) -> Self:
        return self._set("mime_type", mime_type)

    def get_uri(self) -> str:
        return self._get("uri")

    def set_uri(self, uri: str) -> Self:
        return self._set("uri", uri)

    def get_size(self) -> tuple[int, int] | None:
        """Pixel dimensions read from the image header, or None without image."""
        image = self.get_image()
        if image is None:
            return None
        with Image.open(io.BytesIO(image)) as img:
            return img.size


class Material(Property):
    """PBR metallic-roughness material with five texture slots."""

    property_type = PropertyType.MATERIAL

    SLOTS: ClassVar[tuple[str, ...]] = TEXTURE_SLOTS

    def _default_attributes(self) -> dict[str, Any]:
        attrs: dict[str, Any] = {
            "base_color_factor": [1.0, 1.0, 1.0, 1.0],
            "emissive_factor": [0.0, 0.0, 0.0],
            "metallic_factor": 1.0,
            "roughness_factor": 1.0,
            "alpha_mode": "OPAQUE",
            "alpha_cutoff": 0.5,
            "double_sided": False,
            "normal_scale": 1.0,
            "occlusion_strength": 1.0,
        }
        for slot in Material.SLOTS:
            attrs[f"{slot}_texture_info"] = TextureInfo()
        return attrs

    def get_texture(self, slot: str) -> Texture | None:
        self._check_slot(slot)
        return self._get_ref(f"{slot}_texture")

    def set_texture(self, slot: str, texture: Texture | None) -> Self:
        self._check_slot(slot)
        return self._set_ref(f"{slot}_texture", texture)

    def get_texture_info(self, slot: str) -> TextureInfo:
        self._check_slot(slot)
        return self._get(f"{slot}_texture_info")

    def set_texture_info(self, slot: str, info: TextureInfo) -> Self:
        self._check_slot(slot)
        return self._set(f"{slot}_texture_info", info)

    def _check_slot(self, slot: str) -> None:
        if slot not in Material.SLOTS:
            raise KeyError(f"Unknown texture slot: {slot}")

    def get_base_color_texture(self) -> Texture | None:
        return self.get_texture("base_color")

    def set_base_color_texture(self, texture: Texture | None) -> Self:
        return self.set_texture("base_color", texture)

    def get_emissive_texture(self) -> Texture | None:
        return self.get_texture("emissive")

    def set_emissive_texture(self, texture: Texture | None) -> Self:
        return self.set_texture("emissive", texture)

    def get_metallic_roughness_texture(self) -> Texture | None:
        return self.get_texture("metallic_roughness")

    def set_metallic_roughness_texture(self, texture: Texture | None) -> Self:
        return self.set_texture("metallic_roughness", texture)

    def get_normal_texture(self) -> Texture | None:
        return self.get_texture("normal")

    def set_normal_texture(self, texture: Texture | None) -> Self:
        return self.set_texture("normal", texture)

    def get_occlusion_texture(self) -> Texture | None:
        return self.get_texture("occlusion")

    def set_occlusion_texture(self, texture: Texture | None) -> Self:
        return self.set_texture("occlusion", texture)

    def get_base_color_factor(self) -> list[float]:
        return list(self._get("base_color_factor"))

    def set_base_color_factor(self, factor: list[float]) -> Self:
        return self._set("base_color_factor", [float(v) for v in factor])

    def get_emissive_factor(self) -> list[float]:
        return list(self._get("emissive_factor"))

    def set_emissive_factor(self, factor: list[float]) -> Self:
        return self._set("emissive_factor", [float(v) for v in factor])

    def get_metallic_factor(self) -> float:
        return self._get("metallic_factor")

    def set_metallic_factor(self, factor: float) -> Self:
        return self._set("metallic_factor", float(factor))

    def get_roughness_factor(self) -> float:
        return self._get("roughness_factor")

    def set_roughness_factor(self, factor: float) -> Self:
        return self._set("roughness_factor", float(factor))

    def get_alpha_mode(self) -> str:
        return self._get("alpha_mode")

    def set_alpha_mode(self, mode: str) -> Self:
        return self._set("alpha_mode", mode)

    def get_alpha_cutoff(self) -> float:
        return self._get("alpha_cutoff")

    def set_alpha_cutoff(self, cutoff: float) -> Self:
        return self._set("alpha_cutoff", float(cutoff))

    def get_double_sided(self) -> bool:
        return self._get("double_sided")

    def set_double_sided(self, double_sided: bool) -> Self:
        return self._set("double_sided", bool(double_sided))

    def get_normal_scale(self) -> float:
        return self._get("normal_scale")

    def set_normal_scale(self, scale: float) -> Self:
        return self._set("normal_scale", float(scale))

    def get_occlusion_strength(self) -> float:
        return self._get("occlusion_strength")

    def set_occlusion_strength(self, strength: float) -> Self:
        return self._set("occlusion_strength", float(strength))
