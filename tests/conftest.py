"""
Pytest fixtures for LOD generator tests.

Documents are built in memory; images are real PNGs encoded with Pillow.
"""

from __future__ import annotations

import io
from collections.abc import Callable

import numpy as np
import pytest
from PIL import Image

from notso_lod.config import LODConfig, LODLevel, TextureSize
from notso_lod.graph import Document, Material, Mesh, Node, Primitive, Texture


class KeepFirstSimplifier:
    """Deterministic simplifier: keeps the first ``target_index_count`` indices."""

    def __init__(self) -> None:
        self.ready_calls = 0
        self.calls: list[tuple[int, int, float]] = []

    def ready(self) -> KeepFirstSimplifier:
        self.ready_calls += 1
        return self

    def simplify(
        self,
        indices: np.ndarray,
        positions: np.ndarray,
        target_index_count: int,
        target_error: float,
    ) -> np.ndarray:
        self.calls.append((len(indices), target_index_count, target_error))
        return np.asarray(indices[:target_index_count], dtype=np.uint32)


@pytest.fixture
def simplifier() -> KeepFirstSimplifier:
    """Stub simplifier that records its calls."""
    return KeepFirstSimplifier()


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Factory: encode a solid-color RGBA PNG of the given size."""

    def make(width: int, height: int, color: tuple[int, ...] = (200, 40, 40, 255)) -> bytes:
        out = io.BytesIO()
        Image.new("RGBA", (width, height), color).save(out, format="PNG")
        return out.getvalue()

    return make


@pytest.fixture
def make_texture(png_bytes: Callable[..., bytes]) -> Callable[..., Texture]:
    """Factory: add a PNG texture of the given size to a document."""

    def make(
        document: Document,
        name: str,
        size: tuple[int, int],
        color: tuple[int, ...] = (200, 40, 40, 255),
    ) -> Texture:
        texture = document.create_texture(name)
        texture.set_image(png_bytes(size[0], size[1], color))
        texture.set_mime_type("image/png")
        return texture

    return make


def _grid(n: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """n x n vertex grid in the XZ plane: positions, normals, uvs, indices."""
    u, v = np.meshgrid(np.linspace(0.0, 1.0, n), np.linspace(0.0, 1.0, n))
    positions = np.stack([u.ravel(), np.zeros(n * n), v.ravel()], axis=1).astype(np.float32)
    normals = np.tile(np.array([0.0, 1.0, 0.0], dtype=np.float32), (n * n, 1))
    uvs = np.stack([u.ravel(), v.ravel()], axis=1).astype(np.float32)
    quads = []
    for row in range(n - 1):
        for col in range(n - 1):
            a = row * n + col
            b, c, d = a + 1, a + n, a + n + 1
            quads.extend([a, c, b, b, c, d])
    return positions, normals, uvs, np.array(quads, dtype=np.uint16)


@pytest.fixture
def make_grid_primitive() -> Callable[..., Primitive]:
    """Factory: add an indexed triangle grid primitive (n x n vertices)."""

    def make(document: Document, n: int = 8, material: Material | None = None) -> Primitive:
        positions, normals, uvs, indices = _grid(n)
        prim = document.create_primitive()
        prim.set_attribute("POSITION", document.create_accessor("position").set_array(positions))
        prim.set_attribute("NORMAL", document.create_accessor("normal").set_array(normals))
        prim.set_attribute("TEXCOORD_0", document.create_accessor("uv").set_array(uvs))
        prim.set_indices(document.create_accessor("indices").set_array(indices, "SCALAR"))
        prim.set_material(material)
        return prim

    return make


@pytest.fixture
def textured_document(
    make_texture: Callable[..., Texture],
    make_grid_primitive: Callable[..., Primitive],
) -> Document:
    """
    One scene, one node "Plane" using mesh "Plane" with a single 8x8 grid
    primitive (98 triangles) whose material has a 1024x1024 base color.
    """
    document = Document()
    material = document.create_material("Mat")
    material.set_base_color_texture(make_texture(document, "BaseColor", (1024, 1024)))
    mesh = document.create_mesh("Plane")
    mesh.add_primitive(make_grid_primitive(document, 8, material))
    node = document.create_node("Plane").set_mesh(mesh)
    scene = document.create_scene("Scene").add_child(node)
    document.set_default_scene(scene)
    return document


@pytest.fixture
def mesh(textured_document: Document) -> Mesh:
    return textured_document.list_meshes()[0]


@pytest.fixture
def node(textured_document: Document) -> Node:
    return textured_document.list_nodes()[0]


@pytest.fixture
def two_level_config() -> LODConfig:
    """Levels (0.5, 0.01) and (0.1, 0.05), coverage 0.7/0.3/0.0, 512 and 128 textures."""
    return LODConfig(
        levels=[LODLevel(0.5, 0.01), LODLevel(0.1, 0.05)],
        coverages=[0.7, 0.3, 0.0],
        texture_sizes=[TextureSize(512, 512), TextureSize(128, 128)],
    )
