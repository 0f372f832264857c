"""Image assets and importers for KTX, KTX2 and common raster formats."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional, Union

from PIL import Image, UnidentifiedImageError

from quarkassets.asset import Asset, AssetType

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

RGBA8_UNORM = "R8G8B8A8_UNORM"

_KTX1_IDENTIFIER = b"\xabKTX 11\xbb\r\n\x1a\n"
_KTX2_IDENTIFIER = b"\xabKTX 20\xbb\r\n\x1a\n"
_KTX1_ENDIANNESS = 0x04030201
_KTX1_HEADER_SIZE = 64
_KTX2_LEVEL_INDEX_OFFSET = 80
_KTX2_LEVEL_ENTRY_SIZE = 24

# Uncompressed 8-bit RGBA in Vulkan: UNORM and SRGB.
_KTX2_RGBA8_FORMATS = {37, 43}
_RGBA8_BYTES = 4
_MIP_ALIGNMENT = 16

# glFormat -> number of components.
_GL_COMPONENTS = {
    0x1903: 1,  # GL_RED
    0x1909: 1,  # GL_LUMINANCE
    0x1906: 1,  # GL_ALPHA
    0x8227: 2,  # GL_RG
    0x190A: 2,  # GL_LUMINANCE_ALPHA
    0x1907: 3,  # GL_RGB
    0x80E0: 3,  # GL_BGR
    0x1908: 4,  # GL_RGBA
    0x80E1: 4,  # GL_BGRA
}


class ImageImportError(Exception):
    """Raised when an image file cannot be imported."""


class ImageType(Enum):
    TYPE_1D = 0
    TYPE_2D = 1
    TYPE_3D = 2
    TYPE_CUBE = 3


@dataclass
class ImageSlice:
    """One sub-resource (mip level / layer / face) inside an image's data."""

    offset: int = 0
    row_pitch: int = 0
    slice_pitch: int = 0


@dataclass(eq=False)
class ImageAsset(Asset):
    """Pixel data of an image together with its layout."""

    type: ImageType = ImageType.TYPE_2D
    format: str = RGBA8_UNORM
    width: int = 0
    height: int = 0
    depth: int = 1
    array_size: int = 1
    mip_levels: int = 1
    data: bytes = b""
    slices: list[ImageSlice] = field(default_factory=list)

    ASSET_TYPE: ClassVar[AssetType] = AssetType.IMAGE


def _extension(path: PathLike) -> Optional[str]:
    text = str(path)
    if "." not in text:
        return None
    return text.rpartition(".")[2]


def _read_bytes(path: PathLike) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ImageImportError(f"Failed to read file {path}") from exc


def _pad4(value: int) -> int:
    return (value + 3) & ~3


def _align(value: int, alignment: int) -> int:
    return (value + alignment - 1) // alignment * alignment


def import_image(path: PathLike) -> ImageAsset:
    """Import an image, choosing the importer by file extension."""
    ext = _extension(path)
    if ext is None:
        logger.warning("Unsupported file format for file %s", path)
        raise ImageImportError(f"Unsupported file format for file {path}")
    if ext == "ktx":
        return import_ktx(path)
    if ext == "ktx2":
        return import_ktx2(path)
    return import_stb(path)


def import_ktx(path: PathLike) -> ImageAsset:
    """Import an uncompressed KTX (version 1) texture."""
    ext = _extension(path)
    if ext is not None and ext not in ("ktx", "ktx2"):
        logger.warning("The file %s is not a ktx file", path)
        raise ImageImportError(f"The file {path} is not a ktx file")

    raw = _read_bytes(path)
    if len(raw) < _KTX1_HEADER_SIZE or raw[:12] != _KTX1_IDENTIFIER:
        raise ImageImportError(f"{path} is not a valid KTX file")

    (marker,) = struct.unpack_from("<I", raw, 12)
    if marker == _KTX1_ENDIANNESS:
        order = "<"
    elif struct.unpack_from(">I", raw, 12)[0] == _KTX1_ENDIANNESS:
        order = ">"
    else:
        raise ImageImportError(f"{path} has an invalid endianness marker")

    (
        gl_type,
        gl_type_size,
        gl_format,
        _internal_format,
        _base_internal_format,
        width,
        height,
        depth,
        array_elements,
        faces,
        levels,
        kv_bytes,
    ) = struct.unpack_from(order + "12I", raw, 16)

    if gl_type == 0:
        raise ImageImportError(f"{path}: compressed KTX textures are not supported")
    components = _GL_COMPONENTS.get(gl_format)
    if components is None:
        raise ImageImportError(f"{path}: unsupported glFormat {gl_format:#x}")

    element_size = components * max(1, gl_type_size)
    num_levels = max(1, levels)
    num_layers = max(1, array_elements)
    num_faces = max(1, faces)
    base_depth = max(1, depth)
    per_face_sizes = faces == 6 and array_elements == 0

    pos = _KTX1_HEADER_SIZE + kv_bytes
    chunks: list[bytes] = []
    level_images: list[list[int]] = []  # per level: offsets into joined data
    level_pitches: list[tuple[int, int]] = []
    data_offset = 0

    def take(size: int) -> bytes:
        nonlocal pos, data_offset
        if pos + size > len(raw):
            raise ImageImportError(f"{path}: truncated image data")
        chunk = raw[pos : pos + size]
        pos += size
        chunks.append(chunk)
        start = data_offset
        data_offset += size
        return start

    for level in range(num_levels):
        w = max(1, width >> level)
        h = max(1, height >> level)
        row_pitch = _pad4(w * element_size)
        level_pitches.append((row_pitch, row_pitch * h))

        if pos + 4 > len(raw):
            raise ImageImportError(f"{path}: truncated image data")
        (image_size,) = struct.unpack_from(order + "I", raw, pos)
        pos += 4

        offsets: list[int] = []
        if per_face_sizes:
            for _ in range(num_faces):
                offsets.append(take(image_size))
                pos += _pad4(image_size) - image_size
        else:
            count = num_layers * num_faces
            per_image = image_size // count
            for _ in range(count):
                offsets.append(take(per_image))
            pos += image_size - per_image * count
        pos = _pad4(pos)
        level_images.append(offsets)

    asset = ImageAsset(
        type=ImageType.TYPE_2D,
        format=RGBA8_UNORM,
        width=width,
        height=height,
        depth=base_depth,
        array_size=num_layers,
        mip_levels=num_levels,
        data=b"".join(chunks),
    )

    is_cube = num_layers == 1 and faces == 6
    if is_cube:
        asset.type = ImageType.TYPE_CUBE
        asset.array_size = 6

    for level in range(num_levels):
        row_pitch, slice_pitch = level_pitches[level]
        for layer in range(asset.array_size):
            index = layer if is_cube else layer * num_faces
            asset.slices.append(
                ImageSlice(
                    offset=level_images[level][index],
                    row_pitch=row_pitch,
                    slice_pitch=slice_pitch,
                )
            )
    return asset


def import_ktx2(path: PathLike) -> ImageAsset:
    """Import a KTX2 texture holding uncompressed 8-bit RGBA data."""
    ext = _extension(path)
    if ext is not None and ext != "ktx2":
        logger.warning("The file %s is not a ktx2 file", path)
        raise ImageImportError(f"The file {path} is not a ktx2 file")

    raw = _read_bytes(path)
    if len(raw) < _KTX2_LEVEL_INDEX_OFFSET or raw[:12] != _KTX2_IDENTIFIER:
        raise ImageImportError(f"Failed to initialize ktx2 transcoder for file {path}")

    (
        vk_format,
        _type_size,
        width,
        height,
        _depth,
        layer_count,
        face_count,
        level_count,
        supercompression,
    ) = struct.unpack_from("<9I", raw, 12)

    if supercompression != 0:
        raise ImageImportError(f"{path}: supercompression scheme {supercompression} is not supported")
    if vk_format not in _KTX2_RGBA8_FORMATS:
        raise ImageImportError(f"{path}: format {vk_format} is not supported")

    layers = max(1, layer_count)
    faces = max(1, face_count)
    levels = max(1, level_count)

    asset = ImageAsset(
        type=ImageType.TYPE_2D,
        format=RGBA8_UNORM,
        width=width,
        height=height,
        array_size=layers,
        mip_levels=levels,
    )
    if face_count == 6:
        asset.type = ImageType.TYPE_CUBE
        asset.array_size = layers * 6

    index_end = _KTX2_LEVEL_INDEX_OFFSET + levels * _KTX2_LEVEL_ENTRY_SIZE
    if index_end > len(raw):
        raise ImageImportError(f"{path}: truncated level index")

    # Lay out mip levels with 16-byte aligned offsets.
    mip_offsets: list[int] = []
    total = 0
    for level in range(levels):
        w = max(1, width >> level)
        h = max(1, height >> level)
        total = _align(total, _MIP_ALIGNMENT)
        mip_offsets.append(total)
        total += w * h * _RGBA8_BYTES * asset.array_size

    transcoded = bytearray(total)
    for level in range(levels):
        w = max(1, width >> level)
        h = max(1, height >> level)
        row_pitch = w * _RGBA8_BYTES
        slice_pitch = row_pitch * h

        byte_offset, byte_length, _ = struct.unpack_from(
            "<3Q", raw, _KTX2_LEVEL_INDEX_OFFSET + level * _KTX2_LEVEL_ENTRY_SIZE
        )
        level_data = raw[byte_offset : byte_offset + byte_length]

        for layer in range(layers):
            for face in range(faces):
                src = (layer * faces + face) * slice_pitch
                if src + slice_pitch > len(level_data):
                    logger.warning(
                        "Failed to transcode image level %d layer %d face %d", level, layer, face
                    )
                    raise ImageImportError(
                        f"{path}: failed to transcode image level {level} layer {layer} face {face}"
                    )
                dst = mip_offsets[level] + slice_pitch * faces * layer + slice_pitch * face
                transcoded[dst : dst + slice_pitch] = level_data[src : src + slice_pitch]
                asset.slices.append(
                    ImageSlice(offset=dst, row_pitch=row_pitch, slice_pitch=slice_pitch)
                )

    asset.data = bytes(transcoded)
    return asset


def import_stb(path: PathLike) -> ImageAsset:
    """Import a PNG, JPEG or similar image, converted to 8-bit RGBA."""
    try:
        with Image.open(path) as img:
            rgba = img.convert("RGBA")
    except (OSError, UnidentifiedImageError) as exc:
        logger.warning("Failed to load image %s", path)
        raise ImageImportError(f"Failed to load image {path}") from exc

    width, height = rgba.size
    row_pitch = width * _RGBA8_BYTES
    asset = ImageAsset(
        type=ImageType.TYPE_2D,
        format=RGBA8_UNORM,
        width=width,
        height=height,
        depth=1,
        array_size=1,
        mip_levels=1,
        data=rgba.tobytes(),
        slices=[ImageSlice(offset=0, row_pitch=row_pitch, slice_pitch=row_pitch * height)],
    )
    logger.info("Imported image asset: %s", path)
    return asset