from pathlib import Path

import pytest
import yaml

from quarkassets.asset import Asset, AssetType
from quarkassets.asset_manager import AssetManager
from quarkassets.material import AlphaMode, MaterialAsset, save_material


@pytest.fixture
def manager(tmp_path):
    assets = tmp_path / "Assets"
    assets.mkdir()
    return AssetManager(assets, tmp_path / "registry.yaml")


def test_import_asset_registers_metadata(manager):
    asset_id = manager.import_asset("Meshes/box.gltf")
    assert asset_id != 0
    assert manager.is_asset_id_valid(asset_id)
    meta = manager.metadata_for_id(asset_id)
    assert meta.type is AssetType.MESH
    assert meta.file_path == Path("Meshes/box.gltf")
    assert manager.asset_id_from_path("Meshes/box.gltf") == asset_id
    assert manager.asset_type_from_id(asset_id) is AssetType.MESH


def test_import_same_path_twice_gives_same_id(manager):
    first = manager.import_asset("tex.png")
    assert manager.import_asset("tex.png") == first


def test_unsupported_extension_raises(manager):
    with pytest.raises(ValueError):
        manager.import_asset("notes.txt")


def test_unknown_id_lookups(manager):
    assert manager.metadata_for_id(42).is_valid() is False
    assert manager.asset_type_from_id(42) is AssetType.NONE
    assert manager.get_asset(42) is None
    assert manager.asset_id_from_path("nothing.png") == 0


def test_assets_with_type(manager):
    mesh_id = manager.import_asset("a.obj")
    tex_id = manager.import_asset("b.jpg")
    assert manager.assets_with_type(AssetType.MESH) == {mesh_id}
    assert manager.assets_with_type(AssetType.TEXTURE) == {tex_id}
    assert manager.assets_with_type(AssetType.AUDIO) == set()


def test_remove_asset(manager):
    asset_id = manager.import_asset("a.wav")
    manager.remove_asset(asset_id)
    assert not manager.is_asset_id_valid(asset_id)


def test_memory_only_asset_is_returned(manager):
    asset = Asset(asset_id=15, name="cube")
    manager.add_memory_only_asset(asset)
    assert manager.get_asset(15) is asset


def test_get_asset_loads_material(manager):
    save_material(
        manager.asset_directory / "red.qkmaterial",
        MaterialAsset(metallic_factor=0.25, alpha_mode=AlphaMode.TRANSPARENT),
    )
    asset_id = manager.import_asset("red.qkmaterial")
    assert not manager.is_asset_loaded(asset_id)
    material = manager.get_asset(asset_id)
    assert isinstance(material, MaterialAsset)
    assert material.asset_id == asset_id
    assert material.metallic_factor == 0.25
    assert material.alpha_mode is AlphaMode.TRANSPARENT
    assert manager.is_asset_loaded(asset_id)
    assert manager.metadata_for_id(asset_id).is_data_loaded
    assert manager.get_asset(asset_id) is material


def test_get_asset_of_unloadable_type_raises(manager):
    asset_id = manager.import_asset("clip.ogg")
    with pytest.raises(ValueError):
        manager.get_asset(asset_id)


def test_registry_round_trip(manager, tmp_path):
    mesh_id = manager.import_asset("m/a.gltf")
    mat_id = manager.import_asset("m/b.qkmaterial")
    manager.save_registry()

    other = AssetManager(manager.asset_directory, manager.registry_path)
    other.load_registry()
    assert other.assets_with_type(AssetType.MESH) == {mesh_id}
    assert other.assets_with_type(AssetType.MATERIAL) == {mat_id}
    assert other.metadata_for_id(mesh_id).file_path == Path("m/a.gltf")


def test_saved_registry_format(manager):
    asset_id = manager.import_asset("scene.qkscene")
    manager.save_registry()
    data = yaml.safe_load(manager.registry_path.read_text())
    assert data == {"Assets": [{"Id": asset_id, "FilePath": "scene.qkscene", "Type": "Scene"}]}


def test_load_registry_skips_invalid_entries(manager):
    manager.registry_path.write_text(
        yaml.safe_dump(
            {
                "Assets": [
                    {"Id": 7, "FilePath": "a.png", "Type": "Texture"},
                    {"Id": 0, "FilePath": "b.png", "Type": "Texture"},
                    {"Id": 9, "FilePath": "c.ttf", "Type": "Font"},
                ]
            }
        )
    )
    manager.load_registry()
    assert manager.is_asset_id_valid(7)
    assert not manager.is_asset_id_valid(9)
    assert manager.assets_with_type(AssetType.TEXTURE) == {7}


def test_load_missing_registry_raises(manager):
    with pytest.raises(FileNotFoundError):
        manager.load_registry()