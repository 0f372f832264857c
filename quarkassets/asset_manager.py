"""Registry of assets on disk and cache of loaded asset data."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Optional, Union

import yaml

from quarkassets.asset import (
    Asset,
    AssetMetadata,
    AssetType,
    asset_type_from_path,
    asset_type_from_string,
    asset_type_to_string,
    new_asset_id,
)
from quarkassets.image_importer import import_image
from quarkassets.material import load_material
from quarkassets.mesh_importer import import_gltf

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class AssetManager:
    """Tracks asset metadata of a project and loads asset data on demand."""

    def __init__(self, asset_directory: PathLike, registry_path: PathLike) -> None:
        self.asset_directory = Path(asset_directory)
        self.registry_path = Path(registry_path)
        self._memory_only_assets: dict[int, Asset] = {}
        self._loaded_assets: dict[int, Asset] = {}
        self._metadata: dict[int, AssetMetadata] = {}

    def get_asset(self, asset_id: int) -> Optional[Asset]:
        """Return the asset for an id, loading it from disk if needed.

        Unknown ids give None; files that cannot be loaded raise.
        """
        memory_asset = self._memory_only_assets.get(asset_id)
        if memory_asset is not None:
            return memory_asset

        metadata = self.metadata_for_id(asset_id)
        if not metadata.is_valid():
            return None

        if metadata.is_data_loaded:
            return self._loaded_assets[asset_id]

        file_path = self.asset_directory / metadata.file_path
        asset: Asset
        if metadata.type is AssetType.MESH:
            asset = import_gltf(file_path)
        elif metadata.type is AssetType.IMAGE:
            asset = import_image(file_path)
        elif metadata.type is AssetType.MATERIAL:
            asset = load_material(file_path)
        else:
            raise ValueError(f"Cannot load assets of type {metadata.type.name}")

        asset.asset_id = asset_id
        self._loaded_assets[asset_id] = asset
        metadata.is_data_loaded = True
        self._set_metadata(metadata)
        return asset

    def add_memory_only_asset(self, asset: Asset) -> None:
        """Register an asset that lives only in memory."""
        self._memory_only_assets[asset.asset_id] = asset

    def is_asset_id_valid(self, asset_id: int) -> bool:
        """True if the id has registry metadata, whether or not it is loaded."""
        return self.metadata_for_id(asset_id).is_valid()

    def is_asset_loaded(self, asset_id: int) -> bool:
        return asset_id in self._loaded_assets

    def assets_with_type(self, asset_type: AssetType) -> set[int]:
        return {aid for aid, meta in self._metadata.items() if meta.type is asset_type}

    def asset_type_from_id(self, asset_id: int) -> AssetType:
        if self.is_asset_id_valid(asset_id):
            return self.metadata_for_id(asset_id).type
        return AssetType.NONE

    def asset_id_from_path(self, path: PathLike) -> int:
        """Id registered for a path, or 0 if none."""
        return self.metadata_for_path(path).id

    def import_asset(self, path: PathLike) -> int:
        """Register a file as an asset and return its id."""
        existing = self.metadata_for_path(path)
        if existing.is_valid():
            logger.warning("Asset already imported with id %d", existing.id)
            return existing.id

        asset_type = asset_type_from_path(path)
        if asset_type is AssetType.NONE:
            logger.warning("Asset file %s is not supported.", path)
            raise ValueError(f"Asset file {path} is not supported")

        metadata = AssetMetadata(id=new_asset_id(), type=asset_type, file_path=Path(path))
        self._set_metadata(metadata)
        return metadata.id

    def remove_asset(self, asset_id: int) -> None:
        self._loaded_assets.pop(asset_id, None)
        self._metadata.pop(asset_id, None)

    def metadata_for_id(self, asset_id: int) -> AssetMetadata:
        """A copy of the metadata for an id; an invalid entry if unknown."""
        metadata = self._metadata.get(asset_id)
        return dataclasses.replace(metadata) if metadata is not None else AssetMetadata()

    def metadata_for_path(self, path: PathLike) -> AssetMetadata:
        """A copy of the metadata for a file path; an invalid entry if unknown."""
        wanted = Path(path)
        for metadata in self._metadata.values():
            if metadata.file_path == wanted:
                return dataclasses.replace(metadata)
        return AssetMetadata()

    def load_registry(self) -> None:
        """Read asset metadata from the registry file."""
        if not self.registry_path.exists():
            raise FileNotFoundError(f"Asset registry not found: {self.registry_path}")
        data = yaml.safe_load(self.registry_path.read_text(encoding="utf-8"))
        entries = data.get("Assets") if isinstance(data, dict) else None
        if not entries:
            logger.warning("No asset meta data in registry file")
            return

        for entry in entries:
            file_path = str(entry["FilePath"])
            metadata = AssetMetadata(
                id=int(entry["Id"]),
                type=asset_type_from_string(str(entry["Type"])),
                file_path=Path(file_path),
            )
            if metadata.type is AssetType.NONE:
                logger.warning("Asset type is None for asset %s, skipping", file_path)
                continue
            if metadata.id == 0:
                logger.warning("Asset ID is 0 for asset %s, skipping", file_path)
                continue
            self._set_metadata(metadata)

        logger.info("Loaded %d asset entries", len(self._metadata))

    def save_registry(self) -> None:
        """Write all asset metadata to the registry file."""
        logger.info("Saving asset registry with %d assets", len(self._metadata))
        entries = [
            {
                "Id": meta.id,
                "FilePath": meta.file_path.as_posix(),
                "Type": asset_type_to_string(meta.type),
            }
            for meta in self._metadata.values()
        ]
        self.registry_path.write_text(
            yaml.safe_dump({"Assets": entries}, sort_keys=False), encoding="utf-8"
        )

    def _set_metadata(self, metadata: AssetMetadata) -> None:
        if not metadata.is_valid():
            raise ValueError("asset metadata must have a non-zero id")
        self._metadata[metadata.id] = metadata