"""Conversion of glTF sampler parameters to sampler descriptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

TEXTURE_FILTER_NEAREST = 9728
TEXTURE_FILTER_LINEAR = 9729
TEXTURE_FILTER_NEAREST_MIPMAP_NEAREST = 9984
TEXTURE_FILTER_LINEAR_MIPMAP_NEAREST = 9985
TEXTURE_FILTER_NEAREST_MIPMAP_LINEAR = 9986
TEXTURE_FILTER_LINEAR_MIPMAP_LINEAR = 9987

TEXTURE_WRAP_REPEAT = 10497
TEXTURE_WRAP_CLAMP_TO_EDGE = 33071
TEXTURE_WRAP_MIRRORED_REPEAT = 33648


class SamplerFilter(Enum):
    NEAREST = 0
    LINEAR = 1


class SamplerAddressMode(Enum):
    REPEAT = 0
    MIRRORED_REPEAT = 1
    CLAMPED_TO_EDGE = 2


@dataclass
class SamplerDesc:
    """Filtering and addressing of a texture sampler."""

    min_filter: SamplerFilter = SamplerFilter.LINEAR
    mag_filter: SamplerFilter = SamplerFilter.LINEAR
    address_mode_u: SamplerAddressMode = SamplerAddressMode.REPEAT
    address_mode_v: SamplerAddressMode = SamplerAddressMode.REPEAT
    address_mode_w: SamplerAddressMode = SamplerAddressMode.REPEAT


_MIN_FILTERS = {
    TEXTURE_FILTER_NEAREST: SamplerFilter.NEAREST,
    TEXTURE_FILTER_NEAREST_MIPMAP_NEAREST: SamplerFilter.NEAREST,
    TEXTURE_FILTER_NEAREST_MIPMAP_LINEAR: SamplerFilter.NEAREST,
    TEXTURE_FILTER_LINEAR: SamplerFilter.LINEAR,
    TEXTURE_FILTER_LINEAR_MIPMAP_NEAREST: SamplerFilter.LINEAR,
    TEXTURE_FILTER_LINEAR_MIPMAP_LINEAR: SamplerFilter.LINEAR,
}

_MAG_FILTERS = {
    TEXTURE_FILTER_NEAREST: SamplerFilter.NEAREST,
    TEXTURE_FILTER_LINEAR: SamplerFilter.LINEAR,
}

_WRAP_MODES = {
    TEXTURE_WRAP_REPEAT: SamplerAddressMode.REPEAT,
    TEXTURE_WRAP_CLAMP_TO_EDGE: SamplerAddressMode.CLAMPED_TO_EDGE,
    TEXTURE_WRAP_MIRRORED_REPEAT: SamplerAddressMode.MIRRORED_REPEAT,
}


def convert_min_filter(min_filter: int) -> SamplerFilter:
    """Minification filter for a glTF filter code; unknown codes give LINEAR."""
    return _MIN_FILTERS.get(min_filter, SamplerFilter.LINEAR)


def convert_mag_filter(mag_filter: int) -> SamplerFilter:
    """Magnification filter for a glTF filter code; unknown codes give LINEAR."""
    return _MAG_FILTERS.get(mag_filter, SamplerFilter.LINEAR)


def convert_wrap_mode(wrap: int) -> SamplerAddressMode:
    """Address mode for a glTF wrap code; unknown codes give REPEAT."""
    return _WRAP_MODES.get(wrap, SamplerAddressMode.REPEAT)


def parse_sampler(gltf_sampler: Mapping[str, Any]) -> SamplerDesc:
    """Build a sampler description from a glTF sampler object."""
    return SamplerDesc(
        min_filter=convert_min_filter(gltf_sampler.get("minFilter", -1)),
        mag_filter=convert_mag_filter(gltf_sampler.get("magFilter", -1)),
        address_mode_u=convert_wrap_mode(gltf_sampler.get("wrapS", TEXTURE_WRAP_REPEAT)),
        address_mode_v=convert_wrap_mode(gltf_sampler.get("wrapT", TEXTURE_WRAP_REPEAT)),
    )