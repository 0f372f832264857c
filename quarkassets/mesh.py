"""Mesh assets, sub-meshes and axis-aligned bounding boxes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import ClassVar, Sequence, Union

from quarkassets.asset import Asset, AssetType

Vec2 = tuple[float, float]
Vec3 = tuple[float, float, float]
Vec4 = tuple[float, float, float, float]

_FLOAT_SIZE = 4


@dataclass
class Aabb:
    """Axis-aligned bounding box; starts empty."""

    minimum: Vec3 = (math.inf, math.inf, math.inf)
    maximum: Vec3 = (-math.inf, -math.inf, -math.inf)

    def extend(self, other: Union["Aabb", Sequence[float]]) -> None:
        """Grow the box to include a point or another box."""
        if isinstance(other, Aabb):
            if not other.is_valid():
                return
            lo, hi = other.minimum, other.maximum
        else:
            lo = hi = tuple(float(v) for v in other)
        self.minimum = tuple(min(a, b) for a, b in zip(self.minimum, lo))  # type: ignore[assignment]
        self.maximum = tuple(max(a, b) for a, b in zip(self.maximum, hi))  # type: ignore[assignment]

    def is_valid(self) -> bool:
        return all(lo <= hi for lo, hi in zip(self.minimum, self.maximum))


@dataclass
class SubMesh:
    """A range of indices drawn as one part of a mesh."""

    start_vertex: int = 0
    start_index: int = 0  # absolute, not relative to start_vertex
    count: int = 0
    aabb: Aabb = field(default_factory=Aabb)


class MeshAttribute(IntEnum):
    POSITION = 0
    UV = 1
    NORMAL = 2
    TANGENT = 3
    BONE_INDEX = 4
    BONE_WEIGHTS = 5
    VERTEX_COLOR = 6
    MAX_ENUM = 7
    NONE = 8


class MeshAttributeFlag(IntFlag):
    NONE = 0
    POSITION = 1 << MeshAttribute.POSITION
    UV = 1 << MeshAttribute.UV
    NORMAL = 1 << MeshAttribute.NORMAL
    TANGENT = 1 << MeshAttribute.TANGENT
    BONE_INDEX = 1 << MeshAttribute.BONE_INDEX
    BONE_WEIGHTS = 1 << MeshAttribute.BONE_WEIGHTS
    VERTEX_COLOR = 1 << MeshAttribute.VERTEX_COLOR


@dataclass(eq=False)
class MeshAsset(Asset):
    """Vertex streams, indices and sub-meshes of a mesh."""

    sub_meshes: list[SubMesh] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    vertex_positions: list[Vec3] = field(default_factory=list)
    vertex_uvs: list[Vec2] = field(default_factory=list)
    vertex_normals: list[Vec3] = field(default_factory=list)
    vertex_tangents: list[Vec3] = field(default_factory=list)
    vertex_colors: list[Vec4] = field(default_factory=list)
    aabb: Aabb = field(default_factory=Aabb)
    is_dynamic: bool = False

    ASSET_TYPE: ClassVar[AssetType] = AssetType.MESH

    @property
    def vertex_count(self) -> int:
        return len(self.vertex_positions)

    def attribute_mask(self) -> MeshAttributeFlag:
        mask = MeshAttributeFlag.NONE
        if self.vertex_positions:
            mask |= MeshAttributeFlag.POSITION
        if self.vertex_uvs:
            mask |= MeshAttributeFlag.UV
        if self.vertex_normals:
            mask |= MeshAttributeFlag.NORMAL
        if self.vertex_colors:
            mask |= MeshAttributeFlag.VERTEX_COLOR
        return mask

    def position_stride(self) -> int:
        """Bytes per vertex in the position buffer."""
        return 3 * _FLOAT_SIZE

    def attribute_stride(self) -> int:
        """Bytes per vertex in the interleaved attribute buffer."""
        stride = 0
        if self.vertex_uvs:
            stride += 2 * _FLOAT_SIZE
        if self.vertex_normals:
            stride += 3 * _FLOAT_SIZE
        if self.vertex_colors:
            stride += 4 * _FLOAT_SIZE
        return stride

    def is_vertex_data_valid(self) -> bool:
        """True if there are positions and every other stream is empty or matches."""
        n = len(self.vertex_positions)
        return n != 0 and all(
            len(stream) in (0, n)
            for stream in (self.vertex_uvs, self.vertex_normals, self.vertex_colors)
        )

    def calculate_aabbs(self) -> None:
        """Compute each sub-mesh box from its indexed positions and grow the mesh box."""
        if not self.vertex_positions:
            return
        for sub in self.sub_meshes:
            sub.aabb = Aabb()
            for index in self.indices[sub.start_index : sub.start_index + sub.count]:
                sub.aabb.extend(self.vertex_positions[index])
            self.aabb.extend(sub.aabb)
            if sub.aabb.minimum == sub.aabb.maximum:
                raise ValueError("sub-mesh has a degenerate bounding box")