"""Core asset types, identifiers and metadata."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import ClassVar, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class AssetType(IntEnum):
    """Kinds of assets the engine knows about."""

    NONE = 0
    SCENE = 1
    MESH = 2
    MATERIAL = 3
    TEXTURE = 4
    SHADER = 5
    SCRIPT = 6
    AUDIO = 7
    FONT = 8
    IMAGE = 9


class AssetStatus(Enum):
    """Loading state of an asset."""

    NONE = 0
    READY = 1
    INVALID = 2
    LOADING = 3


def new_asset_id() -> int:
    """Return a fresh random, non-zero 64-bit asset id."""
    while True:
        value = random.getrandbits(64)
        if value:
            return value


@dataclass(eq=False)
class Asset:
    """A globally unique asset, identified by its id."""

    asset_id: int = field(default_factory=new_asset_id)
    name: str = ""

    ASSET_TYPE: ClassVar[AssetType] = AssetType.NONE

    @property
    def asset_type(self) -> AssetType:
        return type(self).ASSET_TYPE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Asset):
            return NotImplemented
        return self.asset_id == other.asset_id

    def __hash__(self) -> int:
        return hash(self.asset_id)


@dataclass
class AssetMetadata:
    """Registry entry describing an asset on disk."""

    id: int = 0
    type: AssetType = AssetType.NONE
    status: AssetStatus = AssetStatus.NONE
    file_path: Path = field(default_factory=Path)
    file_last_write_time: int = 0
    is_data_loaded: bool = False

    def is_valid(self) -> bool:
        return self.id != 0


_EXTENSION_TYPES: dict[str, AssetType] = {
    ".qkscene": AssetType.SCENE,
    ".qkmesh": AssetType.MESH,
    ".qkmaterial": AssetType.MATERIAL,
    ".qktexture": AssetType.TEXTURE,
    ".cs": AssetType.SCRIPT,
    ".fbx": AssetType.MESH,
    ".gltf": AssetType.MESH,
    ".glb": AssetType.MESH,
    ".obj": AssetType.MESH,
    ".dae": AssetType.MESH,
    ".png": AssetType.TEXTURE,
    ".jpg": AssetType.TEXTURE,
    ".jpeg": AssetType.TEXTURE,
    ".hdr": AssetType.TEXTURE,
    ".ktx2": AssetType.TEXTURE,
    ".wav": AssetType.AUDIO,
    ".ogg": AssetType.AUDIO,
    ".ttf": AssetType.FONT,
    ".ttc": AssetType.FONT,
    ".otf": AssetType.FONT,
}

_NAME_TO_TYPE: dict[str, AssetType] = {
    "None": AssetType.NONE,
    "Scene": AssetType.SCENE,
    "Mesh": AssetType.MESH,
    "Material": AssetType.MATERIAL,
    "Texture": AssetType.TEXTURE,
    "Shader": AssetType.SHADER,
    "Script": AssetType.SCRIPT,
    "Audio": AssetType.AUDIO,
    "Image": AssetType.IMAGE,
}

_TYPE_TO_NAME: dict[AssetType, str] = {
    AssetType.SCENE: "Scene",
    AssetType.MESH: "Mesh",
    AssetType.MATERIAL: "Material",
    AssetType.TEXTURE: "Texture",
    AssetType.SHADER: "Shader",
    AssetType.SCRIPT: "Script",
    AssetType.AUDIO: "Audio",
}


def asset_type_from_extension(extension: str) -> AssetType:
    """Map a file extension (with the dot, any case) to an asset type."""
    ext = extension.lower()
    asset_type = _EXTENSION_TYPES.get(ext)
    if asset_type is None:
        logger.warning("No asset type found for extension %s", ext)
        return AssetType.NONE
    return asset_type


def asset_type_from_path(path: PathLike) -> AssetType:
    """Map a file path to an asset type by its extension."""
    return asset_type_from_extension(Path(path).suffix)


def asset_type_from_string(name: str) -> AssetType:
    """Parse the registry name of an asset type; unknown names give NONE."""
    return _NAME_TO_TYPE.get(name, AssetType.NONE)


def asset_type_to_string(asset_type: AssetType) -> str:
    """Registry name of an asset type; types without one give "None"."""
    return _TYPE_TO_NAME.get(asset_type, "None")