"""Asset metadata and registry, material, mesh, image and glTF importers, and an editor camera."""

__version__ = "0.1.0"

__all__ = [
    "asset",
    "material",
    "mesh",
    "camera",
    "image_importer",
    "gltf_sampler",
    "gltf_importer",
    "mesh_importer",
    "asset_manager",
]