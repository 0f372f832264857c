import struct

import pytest
from PIL import Image

from quarkassets.asset import AssetType
from quarkassets.image_importer import (
    ImageAsset,
    ImageImportError,
    ImageType,
    import_image,
    import_ktx,
    import_ktx2,
    import_stb,
)

KTX1_ID = b"\xabKTX 11\xbb\r\n\x1a\n"
KTX2_ID = b"\xabKTX 20\xbb\r\n\x1a\n"


def _ktx1(width, height, faces, levels_data, gl_type=0x1401, array_elements=0):
    header = KTX1_ID + struct.pack(
        "<13I",
        0x04030201,
        gl_type,
        1,
        0x1908,
        0x8058,
        0x1908,
        width,
        height,
        0,
        array_elements,
        faces,
        len(levels_data),
        0,
    )
    body = b""
    for level in levels_data:
        if faces == 6 and array_elements == 0:
            body += struct.pack("<I", len(level[0]))
            for face in level:
                body += face
        else:
            joined = b"".join(level)
            body += struct.pack("<I", len(joined)) + joined
    return header + body


def _ktx2(width, height, levels, vk_format=37, scheme=0, faces=1):
    level_blobs = []
    for level in range(levels):
        w = max(1, width >> level)
        h = max(1, height >> level)
        level_blobs.append(bytes((level * 31 + i) % 256 for i in range(w * h * 4 * faces)))
    header = KTX2_ID + struct.pack("<9I", vk_format, 1, width, height, 0, 0, faces, levels, scheme)
    header += struct.pack("<4I2Q", 0, 0, 0, 0, 0, 0)
    data_start = len(header) + 24 * levels
    index = b""
    offset = data_start
    for blob in level_blobs:
        index += struct.pack("<3Q", offset, len(blob), len(blob))
        offset += len(blob)
    return header + index + b"".join(level_blobs), level_blobs


def test_stb_import_reads_rgba_pixels(tmp_path):
    path = tmp_path / "pixels.png"
    img = Image.new("RGBA", (3, 2))
    pixels = [(i, 2 * i, 3 * i, 255) for i in range(6)]
    img.putdata(pixels)
    img.save(path)

    asset = import_stb(path)
    assert (asset.width, asset.height) == (3, 2)
    assert asset.data == bytes(c for p in pixels for c in p)
    assert asset.type is ImageType.TYPE_2D
    assert asset.slices[0].row_pitch == 3 * 4
    assert asset.slices[0].slice_pitch == len(asset.data)
    assert asset.asset_type is AssetType.IMAGE


def test_import_image_dispatches_png_to_stb(tmp_path):
    path = tmp_path / "img.png"
    Image.new("RGB", (2, 2), (10, 20, 30)).save(path)
    asset = import_image(path)
    assert isinstance(asset, ImageAsset)
    assert asset.data[:4] == bytes([10, 20, 30, 255])


def test_import_image_without_extension_raises(tmp_path):
    with pytest.raises(ImageImportError):
        import_image(str(tmp_path / "noext").replace(".", "_"))


def test_stb_missing_file_raises(tmp_path):
    with pytest.raises(ImageImportError):
        import_stb(tmp_path / "missing.png")


def test_ktx1_single_level(tmp_path):
    pixels = bytes(range(16))
    path = tmp_path / "tex.ktx"
    path.write_bytes(_ktx1(2, 2, 1, [[pixels]]))

    asset = import_image(path)
    assert (asset.width, asset.height, asset.mip_levels, asset.array_size) == (2, 2, 1, 1)
    assert asset.type is ImageType.TYPE_2D
    sl = asset.slices[0]
    assert asset.data[sl.offset : sl.offset + sl.slice_pitch] == pixels
    assert sl.row_pitch == 8


def test_ktx1_cubemap(tmp_path):
    faces = [bytes([f] * 4) for f in range(6)]
    path = tmp_path / "cube.ktx"
    path.write_bytes(_ktx1(1, 1, 6, [faces]))

    asset = import_ktx(path)
    assert asset.type is ImageType.TYPE_CUBE
    assert asset.array_size == 6
    assert len(asset.slices) == 6
    for face, sl in zip(faces, asset.slices):
        assert asset.data[sl.offset : sl.offset + sl.slice_pitch] == face


def test_ktx1_compressed_rejected(tmp_path):
    path = tmp_path / "c.ktx"
    path.write_bytes(_ktx1(2, 2, 1, [[bytes(16)]], gl_type=0))
    with pytest.raises(ImageImportError):
        import_ktx(path)


def test_ktx_wrong_extension_rejected(tmp_path):
    path = tmp_path / "tex.png"
    path.write_bytes(_ktx1(2, 2, 1, [[bytes(16)]]))
    with pytest.raises(ImageImportError):
        import_ktx(path)


def test_ktx1_bad_identifier(tmp_path):
    path = tmp_path / "bad.ktx"
    path.write_bytes(b"not a ktx file at all" * 4)
    with pytest.raises(ImageImportError):
        import_ktx(path)


def test_ktx2_mip_chain(tmp_path):
    raw, blobs = _ktx2(3, 1, 2)
    path = tmp_path / "tex.ktx2"
    path.write_bytes(raw)

    asset = import_image(path)
    assert asset.mip_levels == 2
    assert asset.type is ImageType.TYPE_2D
    assert len(asset.slices) == 2
    for blob, sl in zip(blobs, asset.slices):
        assert sl.offset % 16 == 0
        assert asset.data[sl.offset : sl.offset + sl.slice_pitch] == blob


def test_ktx2_cubemap_layout(tmp_path):
    raw, blobs = _ktx2(1, 1, 1, faces=6)
    path = tmp_path / "cube.ktx2"
    path.write_bytes(raw)

    asset = import_ktx2(path)
    assert asset.type is ImageType.TYPE_CUBE
    assert asset.array_size == 6
    assert b"".join(asset.data[s.offset : s.offset + s.slice_pitch] for s in asset.slices) == blobs[0]


def test_ktx2_supercompressed_rejected(tmp_path):
    raw, _ = _ktx2(2, 2, 1, scheme=1)
    path = tmp_path / "s.ktx2"
    path.write_bytes(raw)
    with pytest.raises(ImageImportError):
        import_ktx2(path)


def test_ktx2_wrong_extension_and_missing(tmp_path):
    with pytest.raises(ImageImportError):
        import_ktx2(tmp_path / "tex.ktx")
    with pytest.raises(ImageImportError):
        import_ktx2(tmp_path / "missing.ktx2")