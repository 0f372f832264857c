"""Import of meshes, samplers and images from glTF 2.0 files (.gltf and .glb)."""

from __future__ import annotations

import base64
import io
import json
import logging
import struct
from enum import IntFlag
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import unquote

import numpy as np
from PIL import Image, UnidentifiedImageError

from quarkassets.gltf_sampler import SamplerDesc, parse_sampler
from quarkassets.image_importer import RGBA8_UNORM, ImageAsset, ImageSlice, ImageType
from quarkassets.mesh import Aabb, MeshAsset, SubMesh

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_GLB_MAGIC = b"glTF"
_GLB_CHUNK_JSON = 0x4E4F534A
_GLB_CHUNK_BIN = 0x004E4942

COMPONENT_BYTE = 5120
COMPONENT_UNSIGNED_BYTE = 5121
COMPONENT_SHORT = 5122
COMPONENT_UNSIGNED_SHORT = 5123
COMPONENT_UNSIGNED_INT = 5125
COMPONENT_FLOAT = 5126

_COMPONENT_DTYPES = {
    COMPONENT_BYTE: np.dtype("<i1"),
    COMPONENT_UNSIGNED_BYTE: np.dtype("<u1"),
    COMPONENT_SHORT: np.dtype("<i2"),
    COMPONENT_UNSIGNED_SHORT: np.dtype("<u2"),
    COMPONENT_UNSIGNED_INT: np.dtype("<u4"),
    COMPONENT_FLOAT: np.dtype("<f4"),
}

_TYPE_COMPONENTS = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
    "MAT2": 4,
    "MAT3": 9,
    "MAT4": 16,
}

_INDEX_COMPONENT_TYPES = {
    COMPONENT_UNSIGNED_INT,
    COMPONENT_UNSIGNED_SHORT,
    COMPONENT_UNSIGNED_BYTE,
}

_COLOR_NORMALIZATION = 65535.0


class ImportFlags(IntFlag):
    """What parts of a glTF file to import."""

    NONE = 0
    MATERIALS = 1 << 0
    TEXTURES = 1 << 1
    MESHES = 1 << 2
    NODES = 1 << 3
    ANIMATIONS = 1 << 4
    ALL = MATERIALS | TEXTURES | MESHES | NODES | ANIMATIONS


class GltfImportError(Exception):
    """Raised when a glTF file cannot be imported."""


def _read_glb(raw: bytes, path: PathLike) -> tuple[dict[str, Any], Optional[bytes]]:
    if len(raw) < 12:
        raise GltfImportError(f"{path}: file too short for a binary glTF")
    magic, version, length = struct.unpack_from("<4sII", raw, 0)
    if magic != _GLB_MAGIC:
        raise GltfImportError(f"{path}: invalid binary glTF magic")
    if version != 2:
        raise GltfImportError(f"{path}: unsupported binary glTF version {version}")
    end = min(length, len(raw))
    pos = 12
    document: Optional[dict[str, Any]] = None
    binary: Optional[bytes] = None
    while pos + 8 <= end:
        chunk_length, chunk_type = struct.unpack_from("<II", raw, pos)
        pos += 8
        chunk = raw[pos : pos + chunk_length]
        if len(chunk) != chunk_length:
            raise GltfImportError(f"{path}: truncated chunk")
        pos += chunk_length
        if chunk_type == _GLB_CHUNK_JSON and document is None:
            document = _parse_json(chunk, path)
        elif chunk_type == _GLB_CHUNK_BIN and binary is None:
            binary = chunk
    if document is None:
        raise GltfImportError(f"{path}: binary glTF has no JSON chunk")
    return document, binary


def _parse_json(data: bytes, path: PathLike) -> dict[str, Any]:
    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise GltfImportError(f"{path}: invalid glTF JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise GltfImportError(f"{path}: glTF root must be an object")
    return document


def _decode_data_uri(uri: str) -> bytes:
    header, _, payload = uri.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote(payload).encode("latin-1")


class GltfImporter:
    """Reads a glTF file and builds mesh assets, samplers and images from it."""

    def __init__(self) -> None:
        self.meshes: list[MeshAsset] = []
        self.samplers: list[SamplerDesc] = []
        self.images: list[Optional[ImageAsset]] = []
        self.enabled_extensions: dict[str, bool] = {"KHR_lights_punctual": False}
        self._document: dict[str, Any] = {}
        self._buffers: list[bytes] = []
        self._base_dir = Path(".")

    def import_file(self, path: PathLike, flags: ImportFlags = ImportFlags.NONE) -> None:
        """Load the file and import what the flags ask for; meshes are always parsed."""
        if not flags:
            return

        file_path = Path(path)
        logger.info("Loading GLTF file: %s", file_path)
        self._base_dir = file_path.parent
        self.meshes = []
        self.samplers = []
        self.images = []

        try:
            raw = file_path.read_bytes()
        except OSError as exc:
            raise GltfImportError(f"Error loading gltf model: {path}") from exc

        binary_chunk: Optional[bytes] = None
        if str(path).rpartition(".")[2] == "glb":
            self._document, binary_chunk = _read_glb(raw, path)
        else:
            self._document = _parse_json(raw, path)

        self._check_extensions()
        self._buffers = self._load_buffers(binary_chunk)

        if flags & ImportFlags.TEXTURES:
            self.samplers = [parse_sampler(s) for s in self._document.get("samplers", [])]
            self.images = [self._parse_image(img) for img in self._document.get("images", [])]

        self.meshes = [self.parse_mesh(m) for m in self._document.get("meshes", [])]

    def _check_extensions(self) -> None:
        required = set(self._document.get("extensionsRequired", []))
        for extension in self._document.get("extensionsUsed", []):
            if extension not in self.enabled_extensions:
                if extension in required:
                    raise GltfImportError(
                        "Cannot load glTF file. Contains a required unsupported "
                        f"extension: {extension}"
                    )
                logger.warning(
                    "glTF file contains an unsupported extension, unexpected results may occur: %s",
                    extension,
                )
            else:
                logger.info("glTF file contains extension: %s", extension)
                self.enabled_extensions[extension] = True

    def _load_buffers(self, binary_chunk: Optional[bytes]) -> list[bytes]:
        buffers: list[bytes] = []
        for index, buffer in enumerate(self._document.get("buffers", [])):
            uri = buffer.get("uri")
            if uri is None:
                if index != 0 or binary_chunk is None:
                    raise GltfImportError(f"buffer {index} has no data")
                data = binary_chunk
            elif uri.startswith("data:"):
                data = _decode_data_uri(uri)
            else:
                try:
                    data = (self._base_dir / unquote(uri)).read_bytes()
                except OSError as exc:
                    raise GltfImportError(f"Failed to read buffer {uri}") from exc
            length = buffer.get("byteLength", len(data))
            if len(data) < length:
                raise GltfImportError(f"buffer {index} is shorter than its byteLength")
            buffers.append(data)
        return buffers

    def _buffer_view_bytes(self, view_index: int) -> tuple[bytes, int, Optional[int]]:
        views = self._document.get("bufferViews", [])
        if not 0 <= view_index < len(views):
            raise GltfImportError(f"invalid buffer view {view_index}")
        view = views[view_index]
        buffer_index = view["buffer"]
        if not 0 <= buffer_index < len(self._buffers):
            raise GltfImportError(f"invalid buffer {buffer_index}")
        return self._buffers[buffer_index], view.get("byteOffset", 0), view.get("byteStride")

    def _accessor(self, index: int) -> dict[str, Any]:
        accessors = self._document.get("accessors", [])
        if not 0 <= index < len(accessors):
            raise GltfImportError(f"invalid accessor {index}")
        return accessors[index]

    def _read_accessor(self, accessor: dict[str, Any]) -> np.ndarray:
        """Accessor elements as an array of shape (count, components)."""
        component_type = accessor["componentType"]
        dtype = _COMPONENT_DTYPES.get(component_type)
        if dtype is None:
            raise GltfImportError(f"unknown component type {component_type}")
        components = _TYPE_COMPONENTS.get(accessor.get("type", "SCALAR"))
        if components is None:
            raise GltfImportError(f"unknown accessor type {accessor.get('type')}")
        count = accessor["count"]
        if "bufferView" not in accessor:
            return np.zeros((count, components), dtype=dtype)

        data, view_offset, stride = self._buffer_view_bytes(accessor["bufferView"])
        start = view_offset + accessor.get("byteOffset", 0)
        element_size = dtype.itemsize * components
        if stride is None or stride == element_size:
            needed = start + count * element_size
            if needed > len(data):
                raise GltfImportError("accessor reads past the end of its buffer")
            flat = np.frombuffer(data, dtype=dtype, count=count * components, offset=start)
            return flat.reshape(count, components)

        if count and start + (count - 1) * stride + element_size > len(data):
            raise GltfImportError("accessor reads past the end of its buffer")
        rows = [
            np.frombuffer(data, dtype=dtype, count=components, offset=start + i * stride)
            for i in range(count)
        ]
        return np.stack(rows) if rows else np.zeros((0, components), dtype=dtype)

    def _parse_image(self, gltf_image: dict[str, Any]) -> Optional[ImageAsset]:
        uri = gltf_image.get("uri", "")
        raw: Optional[bytes] = None
        if uri.rpartition(".")[2] in ("ktx", "ktx2") and not uri.startswith("data:"):
            raw = None
        elif uri.startswith("data:"):
            raw = _decode_data_uri(uri)
        elif uri:
            try:
                raw = (self._base_dir / unquote(uri)).read_bytes()
            except OSError:
                raw = None
        elif "bufferView" in gltf_image:
            data, offset, _ = self._buffer_view_bytes(gltf_image["bufferView"])
            view = self._document["bufferViews"][gltf_image["bufferView"]]
            raw = data[offset : offset + view["byteLength"]]

        if raw is not None:
            try:
                with Image.open(io.BytesIO(raw)) as img:
                    rgba = img.convert("RGBA")
            except (OSError, UnidentifiedImageError):
                rgba = None
            if rgba is not None:
                width, height = rgba.size
                row_pitch = width * 4
                return ImageAsset(
                    name=gltf_image.get("name", ""),
                    type=ImageType.TYPE_2D,
                    format=RGBA8_UNORM,
                    width=width,
                    height=height,
                    data=rgba.tobytes(),
                    slices=[ImageSlice(0, row_pitch, row_pitch * height)],
                )

        logger.warning("Failed to load image: %s", uri)
        return None

    def parse_mesh(self, gltf_mesh: dict[str, Any]) -> MeshAsset:
        """Build a mesh asset from a glTF mesh, one sub-mesh per primitive."""
        mesh = MeshAsset(name=gltf_mesh.get("name", ""))
        sub_meshes: list[SubMesh] = []

        for primitive in gltf_mesh.get("primitives", []):
            attributes = primitive.get("attributes", {})
            if "POSITION" not in attributes:
                raise GltfImportError("Position attribute is required")

            start_index = len(mesh.indices)
            start_vertex = len(mesh.vertex_positions)

            pos_accessor = self._accessor(attributes["POSITION"])
            positions = self._read_accessor(pos_accessor).astype(float)
            try:
                min_pos = tuple(float(v) for v in pos_accessor["min"][:3])
                max_pos = tuple(float(v) for v in pos_accessor["max"][:3])
            except KeyError as exc:
                raise GltfImportError("POSITION accessor needs min and max") from exc
            if min_pos == max_pos:
                raise GltfImportError("POSITION accessor has a degenerate bounding box")

            mesh.vertex_positions.extend(tuple(row[:3]) for row in positions.tolist())

            if "NORMAL" in attributes:
                normals = self._read_accessor(self._accessor(attributes["NORMAL"])).astype(float)
                lengths = np.linalg.norm(normals, axis=1, keepdims=True)
                with np.errstate(invalid="ignore", divide="ignore"):
                    normals = normals / lengths
                mesh.vertex_normals.extend(tuple(row[:3]) for row in normals.tolist())

            if "TEXCOORD_0" in attributes:
                uvs = self._read_accessor(self._accessor(attributes["TEXCOORD_0"])).astype(float)
                mesh.vertex_uvs.extend(tuple(row[:2]) for row in uvs.tolist())

            if "COLOR_0" in attributes:
                mesh.vertex_colors.extend(self._read_colors(attributes["COLOR_0"]))

            index_count = self._append_indices(mesh, primitive, start_vertex)

            sub_meshes.append(
                SubMesh(
                    start_vertex=start_vertex,
                    start_index=start_index,
                    count=index_count,
                    aabb=Aabb(min_pos, max_pos),  # type: ignore[arg-type]
                )
            )

        mesh.sub_meshes = sub_meshes
        mesh.calculate_aabbs()
        return mesh

    def _read_colors(self, accessor_index: int) -> list[tuple[float, float, float, float]]:
        accessor = self._accessor(accessor_index)
        num_components = 3 if accessor.get("type") == "VEC3" else 4
        component_type = accessor["componentType"]
        values = self._read_accessor(accessor)
        if component_type == COMPONENT_UNSIGNED_SHORT:
            values = values.astype(float) / _COLOR_NORMALIZATION
        elif component_type == COMPONENT_FLOAT:
            values = values.astype(float)
        else:
            raise GltfImportError(f"Unsupported color component type {component_type}")
        if values.shape[1] != num_components:
            raise GltfImportError("Invalid number of color components")
        if num_components == 3:
            return [(r, g, b, 1.0) for r, g, b in values.tolist()]
        return [tuple(row) for row in values.tolist()]  # type: ignore[misc]

    def _append_indices(self, mesh: MeshAsset, primitive: dict[str, Any], start_vertex: int) -> int:
        if primitive.get("indices", -1) < 0:
            raise GltfImportError("primitive has no indices")
        accessor = self._accessor(primitive["indices"])
        component_type = accessor["componentType"]
        if component_type not in _INDEX_COMPONENT_TYPES:
            logger.warning("Index component type: %s not supported!", component_type)
            raise GltfImportError(f"Index component type {component_type} not supported")
        values = self._read_accessor(accessor).reshape(-1).astype(np.int64) + start_vertex
        mesh.indices.extend(int(v) & 0xFFFFFFFF for v in values)
        return int(accessor["count"])