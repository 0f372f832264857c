from pathlib import Path

import pytest

from quarkassets.asset import (
    Asset,
    AssetMetadata,
    AssetStatus,
    AssetType,
    asset_type_from_extension,
    asset_type_from_path,
    asset_type_from_string,
    asset_type_to_string,
    new_asset_id,
)


def test_new_asset_id_is_nonzero_and_64_bit():
    ids = {new_asset_id() for _ in range(100)}
    assert 0 not in ids
    assert all(0 < i < 2**64 for i in ids)
    assert len(ids) > 90


def test_asset_equality_follows_id():
    a = Asset(asset_id=15, name="a")
    b = Asset(asset_id=15, name="b")
    c = Asset(asset_id=16, name="a")
    assert a == b
    assert a != c
    assert hash(a) == hash(b)


def test_default_assets_get_distinct_nonzero_ids():
    ids = [Asset().asset_id for _ in range(50)]
    assert len(set(ids)) == 50
    assert all(0 < i < 2**64 for i in ids)


def test_base_asset_type_is_none():
    assert Asset().asset_type is AssetType.NONE


def test_metadata_defaults_are_invalid():
    meta = AssetMetadata()
    assert not meta.is_valid()
    assert meta.type is AssetType.NONE
    assert meta.status is AssetStatus.NONE
    assert meta.is_data_loaded is False


def test_metadata_with_id_is_valid():
    assert AssetMetadata(id=42).is_valid()


@pytest.mark.parametrize(
    "ext,expected",
    [
        (".qkscene", AssetType.SCENE),
        (".gltf", AssetType.MESH),
        (".GLB", AssetType.MESH),
        (".PNG", AssetType.TEXTURE),
        (".ktx2", AssetType.TEXTURE),
        (".ogg", AssetType.AUDIO),
        (".otf", AssetType.FONT),
        (".cs", AssetType.SCRIPT),
        (".qkmaterial", AssetType.MATERIAL),
    ],
)
def test_extension_lookup(ext, expected):
    assert asset_type_from_extension(ext) is expected


def test_unknown_extension_is_none():
    assert asset_type_from_extension(".xyz") is AssetType.NONE


def test_path_lookup_uses_suffix():
    assert asset_type_from_path(Path("Assets/Meshes/cube.gltf")) is AssetType.MESH
    assert asset_type_from_path("Assets/Textures/wall.JPG") is AssetType.TEXTURE
    assert asset_type_from_path("Assets/readme") is AssetType.NONE


@pytest.mark.parametrize(
    "asset_type",
    [
        AssetType.SCENE,
        AssetType.MESH,
        AssetType.MATERIAL,
        AssetType.TEXTURE,
        AssetType.SHADER,
        AssetType.SCRIPT,
        AssetType.AUDIO,
    ],
)
def test_type_string_round_trip(asset_type):
    assert asset_type_from_string(asset_type_to_string(asset_type)) is asset_type


def test_type_names_without_string_map_to_none():
    assert asset_type_to_string(AssetType.IMAGE) == "None"
    assert asset_type_to_string(AssetType.FONT) == "None"


def test_image_string_parses():
    assert asset_type_from_string("Image") is AssetType.IMAGE


def test_unknown_string_parses_to_none():
    assert asset_type_from_string("Banana") is AssetType.NONE