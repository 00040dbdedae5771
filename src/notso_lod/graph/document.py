"""Document: the mutable arena every pass operates on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from notso_lod.graph.properties import (
    Accessor,
    Camera,
    ExtensionProperty,
    Material,
    Mesh,
    Node,
    Primitive,
    Property,
    Scene,
    Texture,
)

if TYPE_CHECKING:
    from notso_lod.graph.io import ReaderContext, WriterContext

P = TypeVar("P", bound=Property)
E = TypeVar("E", bound="Extension")


class Graph:
    """Ordered set of every live property; creation order is document order."""

    def __init__(self) -> None:
        self._properties: dict[Property, None] = {}

    def _add(self, prop: Property) -> None:
        self._properties[prop] = None

    def _remove(self, prop: Property) -> None:
        self._properties.pop(prop, None)

    def list_properties(self, cls: type[P] = Property) -> list[P]:  # type: ignore[assignment]
        return [p for p in self._properties if isinstance(p, cls)]

    def __len__(self) -> int:
        return len(self._properties)


class Extension:
    """
    Base class for document extensions.

    Subclasses set ``extension_name`` and implement ``read``/``write``.
    Every ``ExtensionProperty`` created through the extension is tracked in
    ``properties`` so ``write`` can serialize them.
    """

    extension_name: ClassVar[str] = ""

    def __init__(self, document: Document) -> None:
        self.document = document
        self.properties: list[ExtensionProperty] = []

    def _track(self, prop: ExtensionProperty) -> None:
        self.properties.append(prop)

    def list_properties(self) -> list[ExtensionProperty]:
        """Live (not disposed) properties created by this extension."""
        return [p for p in self.properties if not p.is_disposed()]

    def is_used(self) -> bool:
        return any(p.list_parents() for p in self.list_properties())

    def read(self, context: ReaderContext) -> Extension:
        raise NotImplementedError(f"{self.extension_name}: read() not implemented")

    def write(self, context: WriterContext) -> Extension:
        raise NotImplementedError(f"{self.extension_name}: write() not implemented")


class Document:
    """In-memory glTF asset."""

    def __init__(self) -> None:
        self.graph = Graph()
        self.asset: dict[str, Any] = {"version": "2.0"}
        self._default_scene: Scene | None = None
        self._extensions: dict[str, Extension] = {}

    # -- factories ---------------------------------------------------------

    def create_scene(self, name: str = "") -> Scene:
        return Scene(self.graph, name)

    def create_node(self, name: str = "") -> Node:
        return Node(self.graph, name)

    def create_camera(self, name: str = "") -> Camera:
        return Camera(self.graph, name)

    def create_mesh(self, name: str = "") -> Mesh:
        return Mesh(self.graph, name)

    def create_primitive(self) -> Primitive:
        return Primitive(self.graph)

    def create_accessor(self, name: str = "") -> Accessor:
        return Accessor(self.graph, name)

    def create_material(self, name: str = "") -> Material:
        return Material(self.graph, name)

    def create_texture(self, name: str = "") -> Texture:
        return Texture(self.graph, name)

    # -- listing -----------------------------------------------------------

    def list_scenes(self) -> list[Scene]:
        return self.graph.list_properties(Scene)

    def list_nodes(self) -> list[Node]:
        return self.graph.list_properties(Node)

    def list_cameras(self) -> list[Camera]:
        return self.graph.list_properties(Camera)

    def list_meshes(self) -> list[Mesh]:
        return self.graph.list_properties(Mesh)

    def list_primitives(self) -> list[Primitive]:
        return self.graph.list_properties(Primitive)

    def list_accessors(self) -> list[Accessor]:
        return self.graph.list_properties(Accessor)

    def list_materials(self) -> list[Material]:
        return self.graph.list_properties(Material)

    def list_textures(self) -> list[Texture]:
        return self.graph.list_properties(Texture)

    def get_default_scene(self) -> Scene | None:
        if self._default_scene is not None and self._default_scene.is_disposed():
            self._default_scene = None
        return self._default_scene

    def set_default_scene(self, scene: Scene | None) -> Document:
        self._default_scene = scene
        return self

    # -- extensions --------------------------------------------------------

    def create_extension(self, cls: type[E]) -> E:
        """Register ``cls`` on this document, returning the existing one if any."""
        existing = self._extensions.get(cls.extension_name)
        if existing is not None:
            return existing  # type: ignore[return-value]
        extension = cls(self)
        self._extensions[cls.extension_name] = extension
        return extension

    def get_extension(self, name: str) -> Extension | None:
        return self._extensions.get(name)

    def list_extensions(self) -> list[Extension]:
        return list(self._extensions.values())

    def list_extensions_used(self) -> list[Extension]:
        return [ext for ext in self._extensions.values() if ext.is_used()]
