import base64
import json
import struct

import pytest

from quarkassets.gltf_importer import GltfImportError
from quarkassets.mesh import MeshAsset
from quarkassets.mesh_importer import import_gltf

POSITIONS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


def _triangle_document():
    pos_bytes = b"".join(struct.pack("<3f", *p) for p in POSITIONS)
    idx_bytes = struct.pack("<3H", 0, 1, 2) + b"\x00\x00"
    blob = pos_bytes + idx_bytes
    uri = "data:application/octet-stream;base64," + base64.b64encode(blob).decode()
    return {
        "asset": {"version": "2.0"},
        "buffers": [{"uri": uri, "byteLength": len(blob)}],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": len(pos_bytes)},
            {"buffer": 0, "byteOffset": len(pos_bytes), "byteLength": 6},
        ],
        "accessors": [
            {
                "bufferView": 0,
                "componentType": 5126,
                "count": 3,
                "type": "VEC3",
                "min": [0.0, 0.0, 0.0],
                "max": [1.0, 1.0, 0.0],
            },
            {"bufferView": 1, "componentType": 5123, "count": 3, "type": "SCALAR"},
        ],
        "meshes": [
            {"name": "tri", "primitives": [{"attributes": {"POSITION": 0}, "indices": 1}]}
        ],
    }


def test_imports_first_mesh(tmp_path):
    path = tmp_path / "tri.gltf"
    path.write_text(json.dumps(_triangle_document()))
    mesh = import_gltf(path)
    assert isinstance(mesh, MeshAsset)
    assert mesh.name == "tri"
    assert mesh.vertex_positions == POSITIONS
    assert mesh.indices == [0, 1, 2]
    assert len(mesh.sub_meshes) == 1
    assert mesh.sub_meshes[0].count == 3


def test_mesh_bounding_box_covers_positions(tmp_path):
    path = tmp_path / "tri.gltf"
    path.write_text(json.dumps(_triangle_document()))
    mesh = import_gltf(path)
    assert mesh.aabb.minimum == (0.0, 0.0, 0.0)
    assert mesh.aabb.maximum == (1.0, 1.0, 0.0)


def test_file_without_meshes_raises(tmp_path):
    doc = _triangle_document()
    doc["meshes"] = []
    path = tmp_path / "empty.gltf"
    path.write_text(json.dumps(doc))
    with pytest.raises(GltfImportError):
        import_gltf(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(GltfImportError):
        import_gltf(tmp_path / "missing.gltf")