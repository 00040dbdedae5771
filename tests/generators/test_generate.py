"""Tests for per-mesh LOD generation."""

import pytest

from notso_lod.config import LODConfig, LODLevel, TextureSize
from notso_lod.errors import ConfigError, SimplificationError
from notso_lod.extensions import LODExtension
from notso_lod.functions import dedup
from notso_lod.generators import generate_lods, generate_mesh_lods, resize_lod_textures
from notso_lod.graph import Document, Mesh


def _counts(mesh: Mesh) -> list[tuple[int, int]]:
    return [(p.get_vertex_count(), p.get_index_count()) for p in mesh.list_primitives()]


class TestGenerateMeshLods:
    """Tests for generate_mesh_lods."""

    def test_one_mesh_per_level_one_primitive_per_source(
        self, textured_document: Document, mesh: Mesh, make_grid_primitive, simplifier
    ) -> None:
        """L levels x P primitives, source mesh untouched."""
        mesh.add_primitive(make_grid_primitive(textured_document, 6))
        before = _counts(mesh)
        config = LODConfig(
            levels=[LODLevel(0.5, 0.01), LODLevel(0.1, 0.05)], coverages=[0.7, 0.3, 0.0]
        )

        lod_meshes = generate_mesh_lods(textured_document, mesh, config, simplifier, {})

        assert [m.get_name() for m in lod_meshes] == ["Plane_LOD1", "Plane_LOD2"]
        for lod_mesh in lod_meshes:
            assert len(lod_mesh.list_primitives()) == 2
        assert _counts(mesh) == before
        assert len(mesh.list_primitives()) == 2

    def test_levels_use_their_ratio_and_error(
        self, textured_document: Document, mesh: Mesh, simplifier
    ) -> None:
        config = LODConfig(
            levels=[LODLevel(0.5, 0.01), LODLevel(0.1, 0.05)], coverages=[0.7, 0.3, 0.0]
        )
        generate_mesh_lods(textured_document, mesh, config, simplifier, {})
        assert simplifier.calls == [(294, 147, 0.01), (294, 27, 0.05)]

    def test_no_texture_targets_share_material(
        self, textured_document: Document, mesh: Mesh, simplifier
    ) -> None:
        """Without texture sizes, LOD primitives reference the source material."""
        config = LODConfig(levels=[LODLevel(0.5, 0.01)], coverages=[0.5, 0.0])
        [source] = mesh.list_primitives()

        [lod_mesh] = generate_mesh_lods(textured_document, mesh, config, simplifier, {})

        assert lod_mesh.list_primitives()[0].get_material() is source.get_material()
        assert len(textured_document.list_materials()) == 1

    def test_fitting_textures_share_material(
        self, textured_document: Document, mesh: Mesh, simplifier
    ) -> None:
        config = LODConfig(
            levels=[LODLevel(0.5, 0.01)],
            coverages=[0.5, 0.0],
            texture_sizes=[TextureSize(2048, 2048)],
        )
        [source] = mesh.list_primitives()

        [lod_mesh] = generate_mesh_lods(textured_document, mesh, config, simplifier, {})

        assert lod_mesh.list_primitives()[0].get_material() is source.get_material()

    def test_oversized_textures_get_level_variants(
        self, textured_document: Document, mesh: Mesh, simplifier, two_level_config: LODConfig
    ) -> None:
        levels: dict = {}

        lod1, lod2 = generate_mesh_lods(
            textured_document, mesh, two_level_config, simplifier, levels
        )

        m1 = lod1.list_primitives()[0].get_material()
        m2 = lod2.list_primitives()[0].get_material()
        assert (m1.get_name(), m2.get_name()) == ("Mat_LOD1", "Mat_LOD2")
        t1, t2 = m1.get_base_color_texture(), m2.get_base_color_texture()
        assert (t1.get_name(), t2.get_name()) == ("BaseColor_LOD1", "BaseColor_LOD2")
        assert levels == {t1: 1, t2: 2}

    def test_simplifier_failure_propagates(
        self, textured_document: Document, mesh: Mesh, simplifier
    ) -> None:
        """The error names the mesh and level that failed."""
        config = LODConfig(
            levels=[LODLevel(0.5, 0.01), LODLevel(0.001, 0.01)], coverages=[0.7, 0.3, 0.0]
        )
        with pytest.raises(SimplificationError, match="Mesh 'Plane', LOD2: Simplifier removed every triangle"):
            generate_mesh_lods(textured_document, mesh, config, simplifier, {})


class TestGenerateLods:
    """Tests for document-wide generate_lods."""

    def test_chain_per_source_mesh(
        self, textured_document: Document, mesh: Mesh, node, simplifier, two_level_config
    ) -> None:
        result = generate_lods(textured_document, two_level_config, simplifier)

        assert list(result.chains) == [mesh]
        chain = result.chains[mesh]
        assert node.get_extension("MSFT_lod") is chain
        assert len(chain.list_lods()) == 2
        assert len(chain.list_coverages()) == len(chain.list_lods()) + 1
        # Generated meshes are not given chains of their own
        assert len(textured_document.list_meshes()) == 3
        assert result.alternate_count == 2

    def test_instanced_mesh_shares_chain(
        self, textured_document: Document, mesh: Mesh, node, simplifier, two_level_config
    ) -> None:
        """Every node using a mesh gets the same chain; alternates are built once."""
        second = textured_document.create_node("Plane.001").set_mesh(mesh)

        result = generate_lods(textured_document, two_level_config, simplifier)

        assert node.get_extension("MSFT_lod") is second.get_extension("MSFT_lod")
        assert result.mesh_count == 1
        assert len(simplifier.calls) == 2

    def test_simplifier_readied_once(self, textured_document: Document, simplifier, two_level_config) -> None:
        generate_lods(textured_document, two_level_config, simplifier)
        assert simplifier.ready_calls == 1

    def test_registers_extension(self, textured_document: Document, simplifier, two_level_config) -> None:
        generate_lods(textured_document, two_level_config, simplifier)
        extension = textured_document.get_extension("MSFT_lod")
        assert isinstance(extension, LODExtension)
        assert extension.is_used()

    def test_invalid_config_rejected_before_changes(
        self, textured_document: Document, simplifier
    ) -> None:
        config = LODConfig(levels=[LODLevel(0.5, 0.01)], coverages=[0.5])
        with pytest.raises(ConfigError):
            generate_lods(textured_document, config, simplifier)
        assert len(textured_document.list_meshes()) == 1
        assert simplifier.calls == []

    def test_quiet_false_logs_mesh(
        self, textured_document: Document, simplifier, two_level_config, capsys
    ) -> None:
        generate_lods(textured_document, two_level_config, simplifier, quiet=False)
        out = capsys.readouterr().out
        assert "Plane" in out
        assert "98 -> 49 -> 9" in out


class TestResizeLodTextures:
    """Tests for the per-level resize pass."""

    def test_resizes_by_origin_level(
        self, textured_document: Document, simplifier, two_level_config
    ) -> None:
        """Each clone is fitted to its own level's size; the source is untouched."""
        result = generate_lods(textured_document, two_level_config, simplifier)

        resized = resize_lod_textures(
            textured_document, two_level_config, result.texture_levels, quiet=True
        )

        assert resized == 2
        sizes = {t.get_name(): t.get_size() for t in textured_document.list_textures()}
        assert sizes == {
            "BaseColor": (1024, 1024),
            "BaseColor_LOD1": (512, 512),
            "BaseColor_LOD2": (128, 128),
        }

    def test_name_suffix_alone_does_not_select(
        self, textured_document: Document, make_texture, simplifier, two_level_config
    ) -> None:
        """A texture merely named like a clone is not resized."""
        impostor = make_texture(textured_document, "Decal_LOD1", (1024, 1024))
        result = generate_lods(textured_document, two_level_config, simplifier)

        resize_lod_textures(textured_document, two_level_config, result.texture_levels, quiet=True)

        assert impostor.get_size() == (1024, 1024)

    def test_dedup_collapses_per_primitive_variants(
        self, textured_document: Document, mesh: Mesh, make_grid_primitive, simplifier, two_level_config
    ) -> None:
        """Two primitives sharing a material get independent variants that dedup merges."""
        material = mesh.list_primitives()[0].get_material()
        mesh.add_primitive(make_grid_primitive(textured_document, 6, material))

        result = generate_lods(textured_document, two_level_config, simplifier)
        resize_lod_textures(textured_document, two_level_config, result.texture_levels, quiet=True)
        assert len(textured_document.list_materials()) == 5

        dedup(textured_document)

        names = sorted(m.get_name() for m in textured_document.list_materials())
        assert names == ["Mat", "Mat_LOD1", "Mat_LOD2"]
        lod1 = result.lod_meshes[mesh][0]
        p1, p2 = lod1.list_primitives()
        assert p1.get_material() is p2.get_material()
