"""Loading of mesh assets from model files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from quarkassets.gltf_importer import GltfImporter, GltfImportError, ImportFlags
from quarkassets.mesh import MeshAsset

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def import_gltf(path: PathLike) -> MeshAsset:
    """Import the first mesh of a glTF file."""
    importer = GltfImporter()
    importer.import_file(path, ImportFlags.MESHES)
    if not importer.meshes:
        logger.warning("No mesh found in gltf file: %s", path)
        raise GltfImportError(f"No mesh found in gltf file: {path}")
    return importer.meshes[0]