"""Tests for the MSFT_lod extension."""

import pytest

from notso_lod.errors import UnsupportedFeatureError
from notso_lod.extensions import LOD, LODExtension
from notso_lod.graph import Document, GltfIO


@pytest.fixture
def lod_document() -> tuple[Document, LOD]:
    """Two nodes sharing one chain with two alternates."""
    document = Document()
    extension = document.create_extension(LODExtension)
    mesh = document.create_mesh("Mesh")
    a = document.create_node("A").set_mesh(mesh)
    b = document.create_node("B").set_mesh(mesh)
    scene = document.create_scene().add_child(a).add_child(b)
    document.set_default_scene(scene)

    lod = extension.create_lod("Mesh")
    lod.add_lod(document.create_node("Mesh_LOD1").set_mesh(mesh))
    lod.add_lod(document.create_node("Mesh_LOD2").set_mesh(mesh))
    lod.set_coverages([0.7, 0.3, 0.0])
    a.set_extension("MSFT_lod", lod)
    b.set_extension("MSFT_lod", lod)
    return document, lod


class TestLOD:
    """Tests for the LOD property."""

    def test_create_lod_is_empty(self) -> None:
        lod = Document().create_extension(LODExtension).create_lod()
        assert lod.list_lods() == []
        assert lod.list_coverages() == []

    def test_add_lod_is_fluent_and_ordered(self) -> None:
        document = Document()
        lod = document.create_extension(LODExtension).create_lod()
        a, b = document.create_node("A"), document.create_node("B")

        assert lod.add_lod(a).add_lod(b) is lod
        assert lod.list_lods() == [a, b]
        assert a.list_parents() == [lod]

    def test_set_coverages_copies(self) -> None:
        """Mutating the input list afterwards must not affect the chain."""
        lod = Document().create_extension(LODExtension).create_lod()
        values = [0.7, 0.3, 0.0]
        lod.set_coverages(values)
        values.append(-1.0)
        lod.list_coverages().append(-2.0)
        assert lod.list_coverages() == [0.7, 0.3, 0.0]

    def test_only_nodes_accept_lod(self) -> None:
        document = Document()
        lod = document.create_extension(LODExtension).create_lod()
        with pytest.raises(TypeError, match="MSFT_lod"):
            document.create_mesh().set_extension("MSFT_lod", lod)

    def test_tracked_by_extension(self) -> None:
        document = Document()
        extension = document.create_extension(LODExtension)
        lod = extension.create_lod()
        assert extension.list_properties() == [lod]
        lod.dispose()
        assert extension.list_properties() == []


class TestWrite:
    """Tests for MSFT_lod serialization."""

    def test_each_parent_node_gets_ids_and_coverage(self, lod_document: tuple[Document, LOD]) -> None:
        document, _ = lod_document
        gltf, _ = GltfIO().write_gltf(document)

        names = [n.name for n in gltf.nodes]
        ids = [names.index("Mesh_LOD1"), names.index("Mesh_LOD2")]
        for name in ("A", "B"):
            node_def = gltf.nodes[names.index(name)]
            assert node_def.extensions["MSFT_lod"] == {"ids": ids}
            assert node_def.extras["MSFT_screencoverage"] == [0.7, 0.3, 0.0]
        assert "MSFT_lod" in gltf.extensionsUsed

    def test_sharing_nodes_get_independent_lists(self, lod_document: tuple[Document, LOD]) -> None:
        """Each node's written lists are distinct objects."""
        document, _ = lod_document
        gltf, _ = GltfIO().write_gltf(document)

        names = [n.name for n in gltf.nodes]
        a, b = gltf.nodes[names.index("A")], gltf.nodes[names.index("B")]
        assert a.extensions["MSFT_lod"]["ids"] is not b.extensions["MSFT_lod"]["ids"]
        assert a.extras["MSFT_screencoverage"] is not b.extras["MSFT_screencoverage"]

    def test_alternates_have_no_extension(self, lod_document: tuple[Document, LOD]) -> None:
        document, _ = lod_document
        gltf, _ = GltfIO().write_gltf(document)
        for node_def in gltf.nodes:
            if node_def.name.endswith(("_LOD1", "_LOD2")):
                assert "MSFT_lod" not in (node_def.extensions or {})

    def test_unattached_chain_not_written(self) -> None:
        """A chain without parent nodes leaves extensionsUsed empty."""
        document = Document()
        lod = document.create_extension(LODExtension).create_lod()
        lod.add_lod(document.create_node("Alt")).set_coverages([0.5, 0.0])

        gltf, _ = GltfIO().write_gltf(document)

        assert "MSFT_lod" not in gltf.extensionsUsed
        assert not gltf.nodes[0].extensions

    def test_existing_extras_preserved(self, lod_document: tuple[Document, LOD]) -> None:
        document, _ = lod_document
        document.list_nodes()[0].set_extras({"author": "me"})
        gltf, _ = GltfIO().write_gltf(document)
        extras = gltf.nodes[0].extras
        assert extras["author"] == "me"
        assert extras["MSFT_screencoverage"] == [0.7, 0.3, 0.0]


class TestRead:
    """Reading MSFT_lod is not supported."""

    def test_read_raises(self) -> None:
        extension = Document().create_extension(LODExtension)
        with pytest.raises(UnsupportedFeatureError, match="MSFT_lod: read\\(\\) not implemented"):
            extension.read(None)  # type: ignore[arg-type]

    def test_read_error_is_not_implemented_error(self) -> None:
        extension = Document().create_extension(LODExtension)
        with pytest.raises(NotImplementedError):
            extension.read(None)  # type: ignore[arg-type]
