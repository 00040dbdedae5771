"""
glTF 2.0 reading and writing.
=============================
Converts between ``pygltflib.GLTF2`` (the on-disk JSON/GLB layout) and the
in-memory ``Document`` property graph.

Reading resolves buffers from the GLB BIN chunk, data URIs, or files next to
the asset, and decodes accessors into numpy arrays. Writing packs everything
into a single buffer: the GLB BIN chunk, or a sibling ``.bin`` for ``.gltf``.
"""

from __future__ import annotations

import base64
import dataclasses
import mimetypes
import urllib.parse
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np
import pygltflib

from notso_lod.errors import UnsupportedFeatureError
from notso_lod.graph.document import Document, Extension
from notso_lod.graph.properties import (
    COMPONENT_DTYPES,
    ELEMENT_SIZES,
    Accessor,
    Material,
    Mesh,
    Node,
    Texture,
    TextureInfo,
)
from notso_lod.utils.logging import log_warn

GENERATOR = "notso-lod"

ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

# Texture info attribute names on pygltflib.Material, per slot
_PBR_SLOTS = {"base_color": "baseColorTexture", "metallic_roughness": "metallicRoughnessTexture"}
_MATERIAL_SLOTS = {
    "normal": "normalTexture",
    "occlusion": "occlusionTexture",
    "emissive": "emissiveTexture",
}

_DEFAULT_SAMPLER = (None, None, 10497, 10497)


class VertexLayout(Enum):
    """How vertex attributes are laid out in buffer views on write."""

    INTERLEAVED = "interleaved"
    SEPARATE = "separate"


@dataclass
class ReaderContext:
    """State shared with extensions while reading an asset."""

    json_doc: pygltflib.GLTF2
    document: Document
    nodes: list[Node] = field(default_factory=list)
    meshes: list[Mesh] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)
    textures: dict[int, Texture] = field(default_factory=dict)
    accessors: dict[int, Accessor] = field(default_factory=dict)


@dataclass
class WriterContext:
    """State shared with extensions while writing an asset."""

    json_doc: pygltflib.GLTF2
    document: Document
    node_index_map: dict[Node, int] = field(default_factory=dict)
    mesh_index_map: dict[Mesh, int] = field(default_factory=dict)
    material_index_map: dict[Material, int] = field(default_factory=dict)
    accessor_index_map: dict[Accessor, int] = field(default_factory=dict)


def _sniff_mime_type(data: bytes, uri: str | None = None) -> str:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if uri:
        guessed, _ = mimetypes.guess_type(uri)
        if guessed:
            return guessed
    return "application/octet-stream"


def _decode_data_uri(uri: str) -> bytes:
    header, _, payload = uri.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return urllib.parse.unquote_to_bytes(payload)


def _read_uri(uri: str, resource_dir: Path | None) -> bytes:
    if uri.startswith("data:"):
        return _decode_data_uri(uri)
    if resource_dir is None:
        raise FileNotFoundError(f"Cannot resolve external resource without a path: {uri}")
    return (resource_dir / urllib.parse.unquote(uri)).read_bytes()


class GltfIO:
    """
    Reads and writes ``.glb`` / ``.gltf`` files.

    Usage:
        io = GltfIO(VertexLayout.SEPARATE).register_extensions([LODExtension])
        document = io.read("in.glb")
        io.write("out.glb", document)
    """

    def __init__(self, vertex_layout: VertexLayout = VertexLayout.INTERLEAVED) -> None:
        self.vertex_layout = vertex_layout
        self._extensions: dict[str, type[Extension]] = {}

    def register_extensions(self, extensions: Iterable[type[Extension]]) -> GltfIO:
        for ext in extensions:
            self._extensions[ext.extension_name] = ext
        return self

    def set_vertex_layout(self, layout: VertexLayout) -> GltfIO:
        self.vertex_layout = layout
        return self

    # ======================================================================
    # Reading
    # ======================================================================

    def read(self, path: str | Path) -> Document:
        path = Path(path)
        if path.suffix.lower() not in (".glb", ".gltf"):
            raise ValueError(f"Unsupported format: {path.suffix}")
        gltf = pygltflib.GLTF2().load(str(path))
        if gltf is None:
            raise ValueError(f"Could not parse glTF asset: {path}")
        return self.read_gltf(gltf, resource_dir=path.parent)

    def read_gltf(
        self, gltf: pygltflib.GLTF2, resource_dir: Path | None = None
    ) -> Document:
        """Build a Document from an already-parsed asset."""
        self._check_supported(gltf)

        document = Document()
        if gltf.asset is not None and gltf.asset.copyright:
            document.asset["copyright"] = gltf.asset.copyright
        context = ReaderContext(json_doc=gltf, document=document)
        buffers = self._read_buffers(gltf, resource_dir)

        self._read_textures(context, buffers, resource_dir)
        self._read_materials(context)
        self._read_meshes(context, buffers)
        self._read_nodes(context)
        self._read_scenes(context)

        used = list(gltf.extensionsUsed or [])
        for node_def in gltf.nodes or []:
            used.extend(n for n in node_def.extensions or {} if n not in used)
        for name in used:
            ext_cls = self._extensions.get(name)
            if ext_cls is None:
                log_warn(f"Dropping unsupported optional extension {name}")
                continue
            document.create_extension(ext_cls).read(context)

        return document

    def _check_supported(self, gltf: pygltflib.GLTF2) -> None:
        for name in gltf.extensionsRequired or []:
            if name not in self._extensions:
                raise UnsupportedFeatureError(f"Required extension {name} is not supported")
        if gltf.skins:
            raise UnsupportedFeatureError("Skinned meshes are not supported")
        if gltf.animations:
            raise UnsupportedFeatureError("Animations are not supported")

    def _read_buffers(
        self, gltf: pygltflib.GLTF2, resource_dir: Path | None
    ) -> list[bytes]:
        buffers: list[bytes] = []
        for buffer in gltf.buffers or []:
            if buffer.uri is None:
                blob = gltf.binary_blob()
                if blob is None:
                    raise ValueError("Buffer without URI but asset has no BIN chunk")
                buffers.append(bytes(blob))
            else:
                buffers.append(_read_uri(buffer.uri, resource_dir))
        return buffers

    def _buffer_view_bytes(self, gltf: pygltflib.GLTF2, buffers: list[bytes], index: int) -> bytes:
        view = gltf.bufferViews[index]
        start = view.byteOffset or 0
        return buffers[view.buffer][start : start + view.byteLength]

    def _read_accessor(
        self, context: ReaderContext, buffers: list[bytes], index: int
    ) -> Accessor:
        if index in context.accessors:
            return context.accessors[index]

        gltf = context.json_doc
        acc = gltf.accessors[index]
        if acc.sparse is not None:
            raise UnsupportedFeatureError(f"Sparse accessor {index} is not supported")

        dtype = COMPONENT_DTYPES[acc.componentType].newbyteorder("<")
        components = ELEMENT_SIZES[acc.type]
        if acc.bufferView is None:
            array = np.zeros((acc.count, components), dtype=dtype)
        else:
            view = gltf.bufferViews[acc.bufferView]
            data = buffers[view.buffer]
            offset = (view.byteOffset or 0) + (acc.byteOffset or 0)
            element_bytes = dtype.itemsize * components
            stride = view.byteStride or element_bytes
            array = np.ndarray(
                shape=(acc.count, components),
                dtype=dtype,
                buffer=data,
                offset=offset,
                strides=(stride, dtype.itemsize),
            ).copy()

        accessor = context.document.create_accessor(acc.name or "")
        accessor.set_array(array.astype(dtype.newbyteorder("="), copy=False), acc.type)
        accessor.set_normalized(bool(acc.normalized))
        context.accessors[index] = accessor
        return accessor

    def _read_textures(
        self, context: ReaderContext, buffers: list[bytes], resource_dir: Path | None
    ) -> None:
        gltf = context.json_doc
        images: dict[int, Texture] = {}
        for i, image in enumerate(gltf.images or []):
            if image.bufferView is not None:
                data = self._buffer_view_bytes(gltf, buffers, image.bufferView)
            elif image.uri:
                data = _read_uri(image.uri, resource_dir)
            else:
                raise ValueError(f"Image {i} has neither bufferView nor uri")
            texture = context.document.create_texture(image.name or "")
            texture.set_image(bytes(data))
            texture.set_mime_type(image.mimeType or _sniff_mime_type(data, image.uri))
            if image.uri and not image.uri.startswith("data:"):
                texture.set_uri(image.uri)
            images[i] = texture

        for i, tex in enumerate(gltf.textures or []):
            source = tex.source
            if source is None:
                webp = (tex.extensions or {}).get("EXT_texture_webp")
                source = webp.get("source") if webp else None
            if source is None:
                raise UnsupportedFeatureError(f"Texture {i} has no supported image source")
            texture = images[source]
            if not texture.get_name() and tex.name:
                texture.set_name(tex.name)
            context.textures[i] = texture

    def _texture_info(self, context: ReaderContext, info: Any) -> tuple[Texture, TextureInfo]:
        gltf = context.json_doc
        tex = gltf.textures[info.index]
        mag = min_ = None
        wrap_s = wrap_t = 10497
        if tex.sampler is not None:
            sampler = gltf.samplers[tex.sampler]
            mag, min_ = sampler.magFilter, sampler.minFilter
            wrap_s = sampler.wrapS if sampler.wrapS is not None else 10497
            wrap_t = sampler.wrapT if sampler.wrapT is not None else 10497
        if info.extensions:
            for name in info.extensions:
                log_warn(f"Dropping {name} on texture {info.index}")
        return context.textures[info.index], TextureInfo(
            tex_coord=info.texCoord or 0,
            mag_filter=mag,
            min_filter=min_,
            wrap_s=wrap_s,
            wrap_t=wrap_t,
        )

    def _read_materials(self, context: ReaderContext) -> None:
        for mat in context.json_doc.materials or []:
            material = context.document.create_material(mat.name or "")
            pbr = mat.pbrMetallicRoughness
            if pbr is not None:
                if pbr.baseColorFactor is not None:
                    material.set_base_color_factor(pbr.baseColorFactor)
                if pbr.metallicFactor is not None:
                    material.set_metallic_factor(pbr.metallicFactor)
                if pbr.roughnessFactor is not None:
                    material.set_roughness_factor(pbr.roughnessFactor)
                for slot, attr in _PBR_SLOTS.items():
                    info = getattr(pbr, attr)
                    if info is not None and info.index is not None:
                        texture, texture_info = self._texture_info(context, info)
                        material.set_texture(slot, texture).set_texture_info(slot, texture_info)
            for slot, attr in _MATERIAL_SLOTS.items():
                info = getattr(mat, attr)
                if info is not None and info.index is not None:
                    texture, texture_info = self._texture_info(context, info)
                    material.set_texture(slot, texture).set_texture_info(slot, texture_info)
            if mat.normalTexture is not None and mat.normalTexture.scale is not None:
                material.set_normal_scale(mat.normalTexture.scale)
            if mat.occlusionTexture is not None and mat.occlusionTexture.strength is not None:
                material.set_occlusion_strength(mat.occlusionTexture.strength)
            if mat.emissiveFactor is not None:
                material.set_emissive_factor(mat.emissiveFactor)
            material.set_alpha_mode(mat.alphaMode or "OPAQUE")
            if mat.alphaCutoff is not None:
                material.set_alpha_cutoff(mat.alphaCutoff)
            material.set_double_sided(bool(mat.doubleSided))
            material.set_extras(mat.extras or {})
            for name in mat.extensions or {}:
                log_warn(f"Dropping {name} on material {mat.name or ''!r}")
            context.materials.append(material)

    def _read_meshes(self, context: ReaderContext, buffers: list[bytes]) -> None:
        for mesh_def in context.json_doc.meshes or []:
            mesh = context.document.create_mesh(mesh_def.name or "")
            mesh.set_weights(mesh_def.weights)
            mesh.set_extras(mesh_def.extras or {})
            for prim_def in mesh_def.primitives:
                if prim_def.targets:
                    raise UnsupportedFeatureError(
                        f"Morph targets on mesh {mesh_def.name or ''!r} are not supported"
                    )
                prim = context.document.create_primitive()
                prim.set_mode(prim_def.mode if prim_def.mode is not None else 4)
                for semantic, index in vars(prim_def.attributes).items():
                    if isinstance(index, int):
                        prim.set_attribute(semantic, self._read_accessor(context, buffers, index))
                if prim_def.indices is not None:
                    prim.set_indices(self._read_accessor(context, buffers, prim_def.indices))
                if prim_def.material is not None:
                    prim.set_material(context.materials[prim_def.material])
                prim.set_extras(prim_def.extras or {})
                mesh.add_primitive(prim)
            context.meshes.append(mesh)

    def _read_nodes(self, context: ReaderContext) -> None:
        gltf = context.json_doc
        cameras = []
        for cam in gltf.cameras or []:
            camera = context.document.create_camera(cam.name or "")
            definition: dict[str, Any] = {"type": cam.type}
            for kind in ("perspective", "orthographic"):
                params = getattr(cam, kind)
                if params is not None:
                    definition[kind] = {
                        k: v
                        for k, v in dataclasses.asdict(params).items()
                        if v is not None and k not in ("extensions", "extras")
                    }
            cameras.append(camera.set_definition(definition))

        for node_def in gltf.nodes or []:
            node = context.document.create_node(node_def.name or "")
            if node_def.matrix is not None:
                node.set_matrix(node_def.matrix)
            if node_def.translation is not None:
                node.set_translation(node_def.translation)
            if node_def.rotation is not None:
                node.set_rotation(node_def.rotation)
            if node_def.scale is not None:
                node.set_scale(node_def.scale)
            if node_def.mesh is not None:
                node.set_mesh(context.meshes[node_def.mesh])
            if node_def.camera is not None:
                node.set_camera(cameras[node_def.camera])
            node.set_extras(node_def.extras or {})
            context.nodes.append(node)

        for node_def, node in zip(gltf.nodes or [], context.nodes):
            for child in node_def.children or []:
                node.add_child(context.nodes[child])

    def _read_scenes(self, context: ReaderContext) -> None:
        gltf = context.json_doc
        scenes = []
        for scene_def in gltf.scenes or []:
            scene = context.document.create_scene(scene_def.name or "")
            for index in scene_def.nodes or []:
                scene.add_child(context.nodes[index])
            scenes.append(scene)
        if gltf.scene is not None and scenes:
            context.document.set_default_scene(scenes[gltf.scene])
        elif scenes:
            context.document.set_default_scene(scenes[0])

    # ======================================================================
    # Writing
    # ======================================================================

    def write(self, path: str | Path, document: Document) -> Path:
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in (".glb", ".gltf"):
            raise ValueError(f"Unsupported format: {path.suffix}")

        gltf, blob = self.write_gltf(document)
        if suffix == ".glb":
            if blob:
                gltf.set_binary_blob(blob)
            gltf.save_binary(str(path))
        else:
            if blob:
                bin_name = f"{path.stem}.bin"
                gltf.buffers[0].uri = bin_name
                (path.parent / bin_name).write_bytes(blob)
            gltf.save_json(str(path))
        return path

    def write_gltf(self, document: Document) -> tuple[pygltflib.GLTF2, bytes]:
        """Serialize ``document``; returns the JSON document and buffer bytes."""
        gltf = pygltflib.GLTF2(
            asset=pygltflib.Asset(
                version="2.0",
                generator=GENERATOR,
                copyright=document.asset.get("copyright"),
            )
        )
        writer = _BufferWriter(gltf)
        context = WriterContext(json_doc=gltf, document=document)

        texture_map = self._write_textures(gltf, writer, document)
        self._write_materials(gltf, context, texture_map)
        self._write_meshes(gltf, writer, context)
        self._write_nodes(gltf, context)

        for ext in document.list_extensions_used():
            ext.write(context)
            if ext.extension_name not in gltf.extensionsUsed:
                gltf.extensionsUsed.append(ext.extension_name)

        blob = writer.finish()
        return gltf, blob

    def _write_textures(
        self, gltf: pygltflib.GLTF2, writer: _BufferWriter, document: Document
    ) -> dict[tuple[Texture, TextureInfo], int]:
        image_map: dict[Texture, int] = {}
        for texture in document.list_textures():
            image = texture.get_image()
            if image is None or not texture.list_parents():
                continue
            view = writer.append(image)
            image_map[texture] = len(gltf.images)
            gltf.images.append(
                pygltflib.Image(
                    bufferView=view,
                    mimeType=texture.get_mime_type() or _sniff_mime_type(image),
                    name=texture.get_name() or None,
                )
            )

        # glTF textures pair an image with a sampler; one per distinct pair in use
        sampler_map: dict[tuple[int | None, int | None, int, int], int] = {}
        texture_map: dict[tuple[Texture, TextureInfo], int] = {}
        for material in document.list_materials():
            for slot in Material.SLOTS:
                texture = material.get_texture(slot)
                if texture is None or texture not in image_map:
                    continue
                info = material.get_texture_info(slot)
                key = (texture, _sampler_only(info))
                if key in texture_map:
                    continue
                sampler_key = (info.mag_filter, info.min_filter, info.wrap_s, info.wrap_t)
                sampler_index = None
                if sampler_key != _DEFAULT_SAMPLER:
                    if sampler_key not in sampler_map:
                        sampler_map[sampler_key] = len(gltf.samplers)
                        gltf.samplers.append(
                            pygltflib.Sampler(
                                magFilter=info.mag_filter,
                                minFilter=info.min_filter,
                                wrapS=info.wrap_s,
                                wrapT=info.wrap_t,
                            )
                        )
                    sampler_index = sampler_map[sampler_key]
                texture_map[key] = len(gltf.textures)
                gltf.textures.append(
                    pygltflib.Texture(sampler=sampler_index, source=image_map[texture])
                )
        return texture_map

    def _write_materials(
        self,
        gltf: pygltflib.GLTF2,
        context: WriterContext,
        texture_map: dict[tuple[Texture, TextureInfo], int],
    ) -> None:
        def info_for(material: Material, slot: str, cls: type = pygltflib.TextureInfo, **extra: Any) -> Any:
            texture = material.get_texture(slot)
            if texture is None:
                return None
            info = material.get_texture_info(slot)
            index = texture_map.get((texture, _sampler_only(info)))
            if index is None:
                return None
            return cls(index=index, texCoord=info.tex_coord or None, **extra)

        for material in context.document.list_materials():
            normal_scale = material.get_normal_scale()
            occlusion_strength = material.get_occlusion_strength()
            alpha_mode = material.get_alpha_mode()
            context.material_index_map[material] = len(gltf.materials)
            gltf.materials.append(
                pygltflib.Material(
                    name=material.get_name() or None,
                    pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
                        baseColorFactor=material.get_base_color_factor(),
                        metallicFactor=material.get_metallic_factor(),
                        roughnessFactor=material.get_roughness_factor(),
                        baseColorTexture=info_for(material, "base_color"),
                        metallicRoughnessTexture=info_for(material, "metallic_roughness"),
                    ),
                    normalTexture=info_for(
                        material,
                        "normal",
                        pygltflib.NormalMaterialTexture,
                        scale=normal_scale if normal_scale != 1.0 else None,
                    ),
                    occlusionTexture=info_for(
                        material,
                        "occlusion",
                        pygltflib.OcclusionTextureInfo,
                        strength=occlusion_strength if occlusion_strength != 1.0 else None,
                    ),
                    emissiveTexture=info_for(material, "emissive"),
                    emissiveFactor=material.get_emissive_factor(),
                    alphaMode=alpha_mode,
                    alphaCutoff=material.get_alpha_cutoff() if alpha_mode == "MASK" else None,
                    doubleSided=material.get_double_sided(),
                    extras=dict(material.get_extras()),
                )
            )

    def _write_accessor(
        self, gltf: pygltflib.GLTF2, context: WriterContext, accessor: Accessor,
        view: int, byte_offset: int, with_bounds: bool,
    ) -> int:
        index = len(gltf.accessors)
        gltf.accessors.append(
            pygltflib.Accessor(
                bufferView=view,
                byteOffset=byte_offset,
                componentType=accessor.get_component_type(),
                normalized=accessor.get_normalized() or None,
                count=accessor.get_count(),
                type=accessor.get_type(),
                min=accessor.get_min() if with_bounds else None,
                max=accessor.get_max() if with_bounds else None,
                name=accessor.get_name() or None,
            )
        )
        context.accessor_index_map[accessor] = index
        return index

    def _write_vertex_attributes(
        self,
        gltf: pygltflib.GLTF2,
        writer: _BufferWriter,
        context: WriterContext,
        attributes: list[tuple[str, Accessor]],
    ) -> None:
        pending = [(s, a) for s, a in attributes if a not in context.accessor_index_map]
        if self.vertex_layout is VertexLayout.SEPARATE:
            for semantic, accessor in pending:
                view = writer.append(_le_bytes(accessor.get_array()), target=ARRAY_BUFFER)
                self._write_accessor(gltf, context, accessor, view, 0, semantic == "POSITION")
            return

        # Interleave accessors that share a vertex count, 4-byte aligned elements
        by_count: dict[int, list[tuple[str, Accessor]]] = {}
        for semantic, accessor in pending:
            by_count.setdefault(accessor.get_count(), []).append((semantic, accessor))
        for count, group in by_count.items():
            names, formats, offsets = [], [], []
            stride = 0
            for i, (_, accessor) in enumerate(group):
                array = accessor.get_array()
                names.append(f"a{i}")
                formats.append((array.dtype.newbyteorder("<"), (array.shape[1],)))
                offsets.append(stride)
                stride += _pad4(array.dtype.itemsize * array.shape[1])
            packed = np.zeros(
                count,
                dtype=np.dtype({"names": names, "formats": formats, "offsets": offsets, "itemsize": stride}),
            )
            for name, (_, accessor) in zip(names, group):
                packed[name] = accessor.get_array()
            view = writer.append(packed.tobytes(), target=ARRAY_BUFFER, stride=stride)
            for offset, (semantic, accessor) in zip(offsets, group):
                self._write_accessor(gltf, context, accessor, view, offset, semantic == "POSITION")

    def _write_meshes(
        self, gltf: pygltflib.GLTF2, writer: _BufferWriter, context: WriterContext
    ) -> None:
        for mesh in context.document.list_meshes():
            primitives = []
            for prim in mesh.list_primitives():
                indices = prim.get_indices()
                if indices is not None and indices not in context.accessor_index_map:
                    view = writer.append(
                        _le_bytes(indices.get_array()), target=ELEMENT_ARRAY_BUFFER
                    )
                    self._write_accessor(gltf, context, indices, view, 0, False)
                attributes = [(s, prim.get_attribute(s)) for s in prim.list_semantics()]
                self._write_vertex_attributes(gltf, writer, context, attributes)

                attrs_def = pygltflib.Attributes()
                for semantic, accessor in attributes:
                    setattr(attrs_def, semantic, context.accessor_index_map[accessor])
                material = prim.get_material()
                primitives.append(
                    pygltflib.Primitive(
                        attributes=attrs_def,
                        indices=None if indices is None else context.accessor_index_map[indices],
                        material=None if material is None else context.material_index_map[material],
                        mode=prim.get_mode(),
                        extras=dict(prim.get_extras()),
                    )
                )
            context.mesh_index_map[mesh] = len(gltf.meshes)
            gltf.meshes.append(
                pygltflib.Mesh(
                    name=mesh.get_name() or None,
                    primitives=primitives,
                    weights=mesh.get_weights(),
                    extras=dict(mesh.get_extras()),
                )
            )

    def _write_nodes(self, gltf: pygltflib.GLTF2, context: WriterContext) -> None:
        document = context.document
        camera_map: dict[Any, int] = {}
        for camera in document.list_cameras():
            definition = camera.get_definition()
            camera_map[camera] = len(gltf.cameras)
            gltf.cameras.append(
                pygltflib.Camera(
                    name=camera.get_name() or None,
                    type=definition.get("type"),
                    perspective=(
                        pygltflib.Perspective(**definition["perspective"])
                        if "perspective" in definition
                        else None
                    ),
                    orthographic=(
                        pygltflib.Orthographic(**definition["orthographic"])
                        if "orthographic" in definition
                        else None
                    ),
                )
            )

        nodes = document.list_nodes()
        context.node_index_map.update({node: i for i, node in enumerate(nodes)})
        for node in nodes:
            matrix = node.get_matrix()
            translation = node.get_translation()
            rotation = node.get_rotation()
            scale = node.get_scale()
            children = [context.node_index_map[c] for c in node.list_children()]
            mesh = node.get_mesh()
            camera = node.get_camera()
            gltf.nodes.append(
                pygltflib.Node(
                    name=node.get_name() or None,
                    mesh=None if mesh is None else context.mesh_index_map[mesh],
                    camera=None if camera is None else camera_map[camera],
                    children=children or None,
                    matrix=matrix,
                    translation=translation if matrix is None and translation != [0.0, 0.0, 0.0] else None,
                    rotation=rotation if matrix is None and rotation != [0.0, 0.0, 0.0, 1.0] else None,
                    scale=scale if matrix is None and scale != [1.0, 1.0, 1.0] else None,
                    extensions={},
                    extras=dict(node.get_extras()),
                )
            )

        for scene in document.list_scenes():
            gltf.scenes.append(
                pygltflib.Scene(
                    name=scene.get_name() or None,
                    nodes=[context.node_index_map[n] for n in scene.list_children()],
                )
            )
        default_scene = document.get_default_scene()
        if default_scene is not None:
            gltf.scene = document.list_scenes().index(default_scene)


def _pad4(n: int) -> int:
    return (n + 3) & ~3


def _le_bytes(array: np.ndarray) -> bytes:
    return array.astype(array.dtype.newbyteorder("<"), copy=False).tobytes()


def _sampler_only(info: TextureInfo) -> TextureInfo:
    # glTF textures carry the sampler, the UV set lives on the material slot
    return dataclasses.replace(info, tex_coord=0)


class _BufferWriter:
    """Appends 4-byte aligned buffer views to the asset's single buffer."""

    def __init__(self, gltf: pygltflib.GLTF2) -> None:
        self._gltf = gltf
        self._blob = bytearray()

    def append(self, data: bytes, target: int | None = None, stride: int | None = None) -> int:
        padding = _pad4(len(self._blob)) - len(self._blob)
        self._blob.extend(b"\x00" * padding)
        offset = len(self._blob)
        self._blob.extend(data)
        self._gltf.bufferViews.append(
            pygltflib.BufferView(
                buffer=0,
                byteOffset=offset,
                byteLength=len(data),
                byteStride=stride,
                target=target,
            )
        )
        return len(self._gltf.bufferViews) - 1

    def finish(self) -> bytes:
        self._blob.extend(b"\x00" * (_pad4(len(self._blob)) - len(self._blob)))
        if self._blob:
            self._gltf.buffers.append(pygltflib.Buffer(byteLength=len(self._blob)))
        return bytes(self._blob)
