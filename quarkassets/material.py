"""Material assets and their YAML serialization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Union

import yaml

from quarkassets.asset import Asset, AssetType

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Key name used when writing the metallic-roughness image id; the reader also
# accepts the correctly spelled key.
_METALLIC_ROUGHNESS_WRITE_KEY = "MetallicRoughnessmage"
_METALLIC_ROUGHNESS_READ_KEY = "MetallicRoughnessImage"


class AlphaMode(Enum):
    """How a material treats alpha."""

    OPAQUE = 0
    TRANSPARENT = 1


@dataclass(eq=False)
class MaterialAsset(Asset):
    """PBR material parameters and texture references."""

    base_color_factor: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    base_color_image: int = 0
    metallic_roughness_image: int = 0
    normal_image: int = 0
    vertex_shader_path: str = ""
    fragment_shader_path: str = ""

    ASSET_TYPE: ClassVar[AssetType] = AssetType.MATERIAL


def _alpha_mode_to_string(mode: AlphaMode) -> str:
    return "Opaque" if mode is AlphaMode.OPAQUE else "Transparent"


def material_to_yaml(material: MaterialAsset) -> str:
    """Serialize a material to a YAML document."""
    body = {
        "BaseColorFactor": [float(v) for v in material.base_color_factor],
        "MetalicFactor": float(material.metallic_factor),
        "RoughNessFactor": float(material.roughness_factor),
        "AlphaMode": _alpha_mode_to_string(material.alpha_mode),
        "BaseColorImage": int(material.base_color_image),
        _METALLIC_ROUGHNESS_WRITE_KEY: int(material.metallic_roughness_image),
        "NormalImage": int(material.normal_image),
        "VertexShader": material.vertex_shader_path,
        "FragmentShader": material.fragment_shader_path,
    }
    return yaml.safe_dump({"Material": body}, sort_keys=False, default_flow_style=None)


def _base_color(value: Any) -> tuple[float, float, float, float]:
    components = tuple(float(v) for v in value)
    if len(components) != 4:
        raise ValueError(f"BaseColorFactor needs 4 components, got {len(components)}")
    return components  # type: ignore[return-value]


def material_from_yaml(text: str) -> MaterialAsset:
    """Build a material from a YAML document; missing keys take defaults."""
    root = yaml.safe_load(text)
    node = root.get("Material") if isinstance(root, dict) else None
    if node is None:
        raise ValueError("Material node not found")
    if not isinstance(node, dict):
        raise ValueError("Material node must be a mapping")

    metallic_roughness = node.get(
        _METALLIC_ROUGHNESS_READ_KEY, node.get(_METALLIC_ROUGHNESS_WRITE_KEY, 0)
    )
    alpha = str(node.get("AlphaMode", "Opaque"))

    return MaterialAsset(
        base_color_factor=_base_color(node.get("BaseColorFactor", (1.0, 1.0, 1.0, 1.0))),
        metallic_factor=float(node.get("MetalicFactor", 1.0)),
        roughness_factor=float(node.get("RoughNessFactor", 1.0)),
        alpha_mode=AlphaMode.OPAQUE if alpha == "Opaque" else AlphaMode.TRANSPARENT,
        base_color_image=int(node.get("BaseColorImage", 0)),
        metallic_roughness_image=int(metallic_roughness),
        normal_image=int(node.get("NormalImage", 0)),
        vertex_shader_path=str(node.get("VertexShader", "")),
        fragment_shader_path=str(node.get("FragmentShader", "")),
    )


def save_material(path: PathLike, material: MaterialAsset) -> None:
    """Write a material to a YAML file."""
    Path(path).write_text(material_to_yaml(material), encoding="utf-8")


def load_material(path: PathLike) -> MaterialAsset:
    """Read a material from a YAML file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        logger.error("Failed to open material file %s", path)
        raise
    return material_from_yaml(text)