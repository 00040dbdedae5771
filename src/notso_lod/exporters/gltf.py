"GLB/glTF LOD generation pipeline."

import os
from pathlib import Path

from notso_lod.config import LODConfig
from notso_lod.extensions import LODExtension
from notso_lod.functions import Simplifier, dedup, weld
from notso_lod.generators import generate_lods, resize_lod_textures
from notso_lod.graph import Document, GltfIO, Texture, VertexLayout
from notso_lod.utils.constants import DEFAULT_CONFIG
from notso_lod.utils.logging import (
    StepTimer,
    bold,
    bright_cyan,
    bright_green,
    cyan,
    dim,
    format_bytes,
    format_count,
    format_duration,
    green,
    log_detail,
    log_error,
    log_info,
    log_ok,
    print_header,
    timed,
)

_PLURALS = {"Mesh": "meshes"}


def create_io(config: LODConfig) -> GltfIO:
    """GltfIO with MSFT_lod registered and the configured vertex layout."""
    layout = VertexLayout.INTERLEAVED if config.interleaved else VertexLayout.SEPARATE
    return GltfIO(layout).register_extensions([LODExtension])


def get_document_stats(document: Document) -> dict[str, int]:
    """Count meshes, primitives, triangles and textures."""
    primitives = document.list_primitives()
    return {
        "meshes": len(document.list_meshes()),
        "primitives": len(primitives),
        "triangles": sum(p.get_index_count() // 3 for p in primitives),
        "textures": len(document.list_textures()),
    }


def _read(io: GltfIO, input_path: Path, step: StepTimer) -> Document:
    step.step("Reading document...")
    log_info(f"Importing {cyan(input_path.name)}...")
    with timed("Read", print_on_exit=False) as t:
        document = io.read(input_path)
    log_detail(f"Read in {bright_cyan(format_duration(t.elapsed))}")
    return document


def _weld(document: Document, step: StepTimer, enabled: bool) -> None:
    if not enabled:
        step.step("Skipping weld")
        log_detail(dim("--no-weld flag set"))
        return

    step.step("Welding vertices...")
    with timed("Weld", print_on_exit=False) as t:
        removed = weld(document)
    log_detail(
        f"Merged {bright_cyan(f'{removed:,}')} duplicate vertices "
        f"{dim(f'({format_duration(t.elapsed)})')}"
    )


def _resize(
    document: Document,
    config: LODConfig,
    texture_levels: dict[Texture, int],
    step: StepTimer,
    quiet: bool,
) -> None:
    if not config.texture_sizes:
        step.step("Skipping texture resize")
        log_detail(dim("no --texture sizes given"))
        return

    sizes = ", ".join(str(s) for s in config.texture_sizes)
    step.step(f"Resizing LOD textures ({sizes})...")
    with timed("Texture resize", print_on_exit=False) as t:
        resized = resize_lod_textures(document, config, texture_levels, quiet=quiet)
    if resized > 0:
        log_detail(
            f"Resized {bright_cyan(str(resized))} textures "
            f"{dim(f'({format_duration(t.elapsed)})')}"
        )
    else:
        log_detail(
            f"{green('No textures needed resizing')} "
            f"{dim(f'({format_duration(t.elapsed)})')}"
        )


def _dedup(document: Document, step: StepTimer, enabled: bool) -> None:
    if not enabled:
        step.step("Skipping dedup")
        log_detail(dim("--no-dedup flag set"))
        return

    step.step("Deduplicating resources...")
    with timed("Dedup", print_on_exit=False) as t:
        counts = dedup(document)
    merged = ", ".join(
        format_count(count, name.lower(), _PLURALS.get(name))
        for name, count in counts.items()
        if count
    )
    log_detail(
        f"Merged {bright_cyan(merged or 'nothing')} "
        f"{dim(f'({format_duration(t.elapsed)})')}"
    )


def generate_and_export(
    input_path: str | Path,
    output_path: str | Path,
    config: LODConfig,
    quiet: bool = DEFAULT_CONFIG["quiet"],
    simplifier: Simplifier | None = None,
    weld_vertices: bool = DEFAULT_CONFIG["weld"],
    dedup_resources: bool = DEFAULT_CONFIG["dedup"],
) -> Path:
    """
    Read ``input_path``, generate MSFT_lod chains and write ``output_path``.

    The output is written only if every step succeeds; any failure raises
    and leaves the output path untouched.

    Args:
        input_path: Source .glb/.gltf
        output_path: Destination .glb/.gltf
        config: LOD configuration, validated before the document is read
        quiet: Suppress per-mesh and per-texture detail lines
        simplifier: Defaults to ``MeshoptSimplifier``
        weld_vertices: Merge identical vertices before simplifying
        dedup_resources: Merge identical resources after generation

    Returns:
        Path of the written file
    """
    config.validate()
    input_path = Path(input_path)
    output_path = Path(output_path)
    io = create_io(config)

    step = StepTimer(total_steps=6)
    print_header("LOD GENERATOR")

    try:
        document = _read(io, input_path, step)

        stats = get_document_stats(document)
        triangles = stats["triangles"]
        print(
            f"\n  Scene: {cyan(str(stats['meshes']))} meshes, "
            f"{cyan(str(stats['primitives']))} primitives, "
            f"{cyan(f'{triangles:,}')} tris, "
            f"{cyan(str(stats['textures']))} textures"
        )

        _weld(document, step, weld_vertices)

        step.step(f"Generating {format_count(config.level_count, 'LOD level')}...")
        with timed("LOD generation", print_on_exit=False) as t:
            result = generate_lods(document, config, simplifier, quiet=quiet)
        log_detail(
            f"Built {bright_cyan(str(result.mesh_count))} chains, "
            f"{bright_cyan(str(result.alternate_count))} alternates "
            f"{dim(f'({format_duration(t.elapsed)})')}"
        )

        _resize(document, config, result.texture_levels, step, quiet)
        _dedup(document, step, dedup_resources)

        step.step("Writing document...")
        log_detail(dim(str(output_path)))
        with timed("Write", print_on_exit=False) as t:
            io.write(output_path, document)
        log_ok(f"Write successful {dim(f'({format_duration(t.elapsed)})')}")
    except Exception as e:
        log_error(f"{type(e).__name__}: {e}")
        step.finish()
        step.final_message("LOD generation FAILED", success=False)
        raise

    step.finish()
    step.final_message("LOD generation complete!", success=True)
    size = os.path.getsize(output_path)
    print(f"\n{cyan('=' * 60)}")
    print(f"  {bold('OUTPUT')}: {bright_green(output_path.name)}")
    print(f"  {bold('SIZE')}:   {bright_cyan(format_bytes(size))} ({size:,} bytes)")
    print(f"  {bold('TIME')}:   {bright_cyan(format_duration(step.total_elapsed()))}")
    print(f"{cyan('=' * 60)}")

    step.print_summary()

    return output_path
