# quarkassets

Asset handling for a small 3D engine: asset metadata and a YAML asset registry,
material files, meshes and their bounds, importers for glTF and for KTX, KTX2
and common raster images, and a fly/orbit editor camera.

## Installation

```
pip install quarkassets
```

For development, install the test extra and run the tests:

```
pip install -e ".[test]"
pytest
```

## Modules

- `quarkassets.asset`: `AssetType`, `AssetStatus`, the `Asset` base class
  (assets compare equal by `asset_id`), and `AssetMetadata` with `is_valid()`
  (an id of 0 is invalid). `new_asset_id()` returns a random non-zero 64-bit
  id. `asset_type_from_extension` and `asset_type_from_path` map file
  extensions (case-insensitive) to asset types and give `AssetType.NONE` for
  unknown ones. `asset_type_from_string` and `asset_type_to_string` convert
  the names used in the registry.
- `quarkassets.material`: `MaterialAsset` with base color, metallic and
  roughness factors, `AlphaMode`, image ids and shader paths.
  `material_to_yaml` and `material_from_yaml` convert to and from YAML; keys
  that are missing take their defaults, and a document without a `Material`
  node raises `ValueError`. `save_material` and `load_material` work on files.
- `quarkassets.mesh`: `MeshAsset` with vertex streams, indices and `SubMesh`
  ranges, axis-aligned bounds (`Aabb`), `attribute_mask()` as a
  `MeshAttributeFlag`, `position_stride()` and `attribute_stride()` in bytes,
  `is_vertex_data_valid()`, and `calculate_aabbs()`, which raises `ValueError`
  for a sub-mesh whose bounding box is a single point.
- `quarkassets.image_importer`: `import_image` chooses an importer by
  extension. `import_ktx`, `import_ktx2` and `import_stb` return an
  `ImageAsset` whose `data` holds the pixels and whose `slices` list one
  `ImageSlice` (offset, row pitch, slice pitch) per mip level and layer. Cube
  maps get `ImageType.TYPE_CUBE`. Failures raise `ImageImportError`.
- `quarkassets.gltf_sampler`: converts glTF filter and wrap codes to
  `SamplerFilter` and `SamplerAddressMode`, and builds a `SamplerDesc` from a
  glTF sampler object with `parse_sampler`.
- `quarkassets.gltf_importer`: `GltfImporter.import_file(path, flags)` reads
  `.gltf` and `.glb` files, including embedded and external buffers. It fills
  `meshes` with one `MeshAsset` per glTF mesh, with one sub-mesh per
  primitive. With `ImportFlags.TEXTURES` it also fills `samplers` and
  `images`. A flag value of `ImportFlags.NONE` does nothing. Files that use a
  required extension it does not support, or that are malformed, raise
  `GltfImportError`.
- `quarkassets.mesh_importer`: `import_gltf(path)` returns the first mesh of a
  glTF file and raises `GltfImportError` if there is none.
- `quarkassets.asset_manager`: `AssetManager(asset_directory, registry_path)`
  keeps asset metadata. `import_asset` registers a file and returns its id.
  `get_asset` returns memory-only assets, or loads mesh, image and material
  files on first use and caches them. `load_registry` and `save_registry`
  read and write the YAML registry.
- `quarkassets.camera`: `EditorCamera` takes a `CameraInput` snapshot with
  mouse position, buttons and movement keys in each `update(seconds, inputs)`
  call. `view_matrix()` and `projection_matrix()` return 4x4 numpy arrays.

## Examples

```python
from quarkassets.asset import AssetType, asset_type_from_path
from quarkassets.material import AlphaMode, MaterialAsset, material_from_yaml, material_to_yaml

material = MaterialAsset(metallic_factor=0.25, alpha_mode=AlphaMode.TRANSPARENT)
text = material_to_yaml(material)
assert material_from_yaml(text).alpha_mode is AlphaMode.TRANSPARENT

assert asset_type_from_path("models/house.GLTF") is AssetType.MESH
```

```python
from quarkassets.camera import CameraInput, EditorCamera

camera = EditorCamera(45.0, 1280.0, 720.0, 0.1, 1000.0)
camera.update(1 / 60, CameraInput(move_forward=True))
view = camera.view_matrix()
projection = camera.projection_matrix()
```

```python
from quarkassets.asset_manager import AssetManager

manager = AssetManager("project/assets", "project/registry.yaml")
mesh_id = manager.import_asset("models/cube.gltf")
manager.save_registry()
mesh = manager.get_asset(mesh_id)
```

## What it does not do

- It does no rendering and creates no GPU resources. Images and samplers are
  returned as plain descriptions and byte data.
- glTF import covers meshes, samplers and images only. Nodes, scenes,
  materials and animations are not imported, even when the matching
  `ImportFlags` are set. Images stored as KTX/KTX2 inside a glTF file are
  left as `None`.
- Only uncompressed KTX files and uncompressed 8-bit RGBA KTX2 files without
  supercompression can be imported. Block-compressed and Basis-encoded
  textures raise `ImageImportError`.
- There is no OBJ importer, and `AssetManager.get_asset` cannot load scene,
  texture, shader, script, audio or font assets.