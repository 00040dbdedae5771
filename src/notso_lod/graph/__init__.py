"""In-memory glTF property graph and its file I/O."""

from notso_lod.graph.document import Document, Extension, Graph
from notso_lod.graph.io import GltfIO, ReaderContext, VertexLayout, WriterContext
from notso_lod.graph.properties import (
    Accessor,
    Camera,
    ExtensionProperty,
    Material,
    Mesh,
    Node,
    Primitive,
    Property,
    PropertyType,
    Scene,
    Texture,
    TextureInfo,
)

__all__ = [
    "Accessor",
    "Camera",
    "Document",
    "Extension",
    "ExtensionProperty",
    "GltfIO",
    "Graph",
    "Material",
    "Mesh",
    "Node",
    "Primitive",
    "Property",
    "PropertyType",
    "ReaderContext",
    "Scene",
    "Texture",
    "TextureInfo",
    "VertexLayout",
    "WriterContext",
]
