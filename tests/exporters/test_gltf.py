"""Tests for the LOD export pipeline."""

from pathlib import Path

import pygltflib
import pytest

from notso_lod.config import LODConfig, LODLevel
from notso_lod.graph import Document, GltfIO


@pytest.fixture
def input_glb(tmp_path: Path, textured_document: Document) -> Path:
    return GltfIO().write(tmp_path / "in.glb", textured_document)


class TestGenerateAndExport:
    """End-to-end runs through real files with a stub simplifier."""

    def test_two_level_scenario(self, tmp_path: Path, input_glb: Path, simplifier, two_level_config) -> None:
        """One mesh, one node, 1024px texture, two levels with 512/128 textures."""
        from notso_lod.exporters import generate_and_export

        out = generate_and_export(
            input_glb, tmp_path / "out.glb", two_level_config, quiet=True, simplifier=simplifier
        )

        gltf = pygltflib.GLTF2().load(str(out))
        assert len(gltf.nodes) == 3
        plane = next(n for n in gltf.nodes if n.name == "Plane")
        ids = plane.extensions["MSFT_lod"]["ids"]
        assert len(ids) == 2
        assert [gltf.nodes[i].name for i in ids] == ["Plane_LOD1", "Plane_LOD2"]
        assert plane.extras["MSFT_screencoverage"] == [0.7, 0.3, 0.0]
        assert gltf.extensionsUsed == ["MSFT_lod"]

        lod_materials = [gltf.meshes[gltf.nodes[i].mesh].primitives[0].material for i in ids]
        assert [gltf.materials[m].name for m in lod_materials] == ["Mat_LOD1", "Mat_LOD2"]

        sizes = {t.get_name(): t.get_size() for t in GltfIO().read(out).list_textures()}
        assert sizes == {
            "BaseColor": (1024, 1024),
            "BaseColor_LOD1": (512, 512),
            "BaseColor_LOD2": (128, 128),
        }

    def test_alternates_not_in_scene(self, tmp_path: Path, input_glb: Path, simplifier, two_level_config) -> None:
        from notso_lod.exporters import generate_and_export

        out = generate_and_export(
            input_glb, tmp_path / "out.glb", two_level_config, quiet=True, simplifier=simplifier
        )

        gltf = pygltflib.GLTF2().load(str(out))
        scene_names = [gltf.nodes[i].name for i in gltf.scenes[gltf.scene].nodes]
        assert scene_names == ["Plane"]

    def test_gltf_output(self, tmp_path: Path, input_glb: Path, simplifier) -> None:
        from notso_lod.exporters import generate_and_export

        config = LODConfig(levels=[LODLevel(0.5, 0.01)], coverages=[0.5, 0.0], interleaved=True)
        out = generate_and_export(input_glb, tmp_path / "out.gltf", config, quiet=True, simplifier=simplifier)

        assert out.exists()
        assert (tmp_path / "out.bin").exists()

    def test_prints_report(self, tmp_path: Path, input_glb: Path, simplifier, two_level_config, capsys) -> None:
        from notso_lod.exporters import generate_and_export

        generate_and_export(input_glb, tmp_path / "out.glb", two_level_config, simplifier=simplifier)

        out = capsys.readouterr().out
        assert "LOD GENERATOR" in out
        assert "OUTPUT" in out
        assert "out.glb" in out
        assert "Importing in.glb" in out
        assert "OK  Write successful" in out

    def test_failure_writes_nothing(self, tmp_path: Path, input_glb: Path, simplifier) -> None:
        """A simplifier failure aborts the run before anything is written."""
        from notso_lod.errors import SimplificationError
        from notso_lod.exporters import generate_and_export

        config = LODConfig(levels=[LODLevel(0.001, 0.01)], coverages=[0.5, 0.0])
        out = tmp_path / "out.glb"

        with pytest.raises(SimplificationError):
            generate_and_export(input_glb, out, config, quiet=True, simplifier=simplifier)
        assert not out.exists()

    def test_failure_logs_error(self, tmp_path: Path, input_glb: Path, simplifier, capsys) -> None:
        from notso_lod.errors import SimplificationError
        from notso_lod.exporters import generate_and_export

        config = LODConfig(levels=[LODLevel(0.001, 0.01)], coverages=[0.5, 0.0])
        with pytest.raises(SimplificationError):
            generate_and_export(input_glb, tmp_path / "out.glb", config, quiet=True, simplifier=simplifier)

        out = capsys.readouterr().out
        assert "ERROR  SimplificationError:" in out
        assert "FAIL" in out

    def test_invalid_config_before_read(self, tmp_path: Path, simplifier) -> None:
        """Config errors are raised even if the input does not exist."""
        from notso_lod.errors import ConfigError
        from notso_lod.exporters import generate_and_export

        config = LODConfig(levels=[LODLevel(0.5, 0.01)], coverages=[0.5])
        with pytest.raises(ConfigError):
            generate_and_export(tmp_path / "missing.glb", tmp_path / "out.glb", config, simplifier=simplifier)

    def test_existing_lod_input_rejected(self, tmp_path: Path, input_glb: Path, simplifier, two_level_config) -> None:
        """Running on an already-processed file fails on read."""
        from notso_lod.exporters import generate_and_export

        first = generate_and_export(
            input_glb, tmp_path / "first.glb", two_level_config, quiet=True, simplifier=simplifier
        )
        with pytest.raises(NotImplementedError, match="MSFT_lod"):
            generate_and_export(first, tmp_path / "second.glb", two_level_config, quiet=True, simplifier=simplifier)
        assert not (tmp_path / "second.glb").exists()

    def test_no_dedup_keeps_clones(self, tmp_path: Path, input_glb: Path, simplifier) -> None:
        """Without dedup, a clone equal to its source after resize survives."""
        from notso_lod.config import TextureSize
        from notso_lod.exporters import generate_and_export

        # 2048 target: the 1024 texture fits, so no clone is made at all
        config = LODConfig(
            levels=[LODLevel(0.5, 0.01)],
            coverages=[0.5, 0.0],
            texture_sizes=[TextureSize(2048, 2048)],
        )
        out = generate_and_export(
            input_glb, tmp_path / "out.glb", config, quiet=True, simplifier=simplifier,
            dedup_resources=False,
        )
        gltf = pygltflib.GLTF2().load(str(out))
        assert [m.name for m in gltf.materials] == ["Mat"]


class TestCreateIo:
    """Tests for create_io."""

    def test_layout_from_config(self) -> None:
        from notso_lod.exporters import create_io
        from notso_lod.graph import VertexLayout

        config = LODConfig(levels=[LODLevel(0.5, 0.01)], coverages=[0.5, 0.0])
        assert create_io(config).vertex_layout is VertexLayout.SEPARATE
        config.interleaved = True
        assert create_io(config).vertex_layout is VertexLayout.INTERLEAVED
