"""Document transforms and the fixed optimization stage list."""

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any

from mobile_glb.document import SceneDocument
from mobile_glb.transforms.dedup import dedup
from mobile_glb.transforms.draco import GeometryCodec, compress_geometry
from mobile_glb.transforms.prune import prune
from mobile_glb.transforms.textures import compress_textures, resample_textures
from mobile_glb.utils.constants import (
    DEFAULT_DRACO_OPTIONS,
    DracoOptions,
    OptimizationConfig,
)
from mobile_glb.utils.logging import format_count


@dataclass(frozen=True)
class Stage:
    """One in-place document mutation of the pipeline."""

    name: str
    apply: Callable[[SceneDocument], Any]
    describe: Callable[[Any], str]


def _describe_counts(verb: str, counts: dict[str, int]) -> str:
    parts = [f"{n:,} {kind}" for kind, n in counts.items() if n]
    return f"{verb} {', '.join(parts) or 'nothing'}"


def build_stages(
    config: OptimizationConfig,
    codec: GeometryCodec,
    draco_options: DracoOptions = DEFAULT_DRACO_OPTIONS,
) -> list[Stage]:
    """The five stages in execution order, parameterized from config."""
    return [
        Stage(
            "dedup",
            dedup,
            partial(_describe_counts, "Merged"),
        ),
        Stage(
            "prune",
            prune,
            partial(_describe_counts, "Removed"),
        ),
        Stage(
            "resample",
            partial(resample_textures, max_size=config.texture_resolution),
            lambda n: f"Resized {format_count(n, 'texture')} to max {config.texture_resolution}px",
        ),
        Stage(
            "texture_compress",
            partial(
                compress_textures,
                quality=config.texture_quality,
                max_size=config.texture_resolution,
            ),
            lambda n: f"Encoded {format_count(n, 'image')} as WebP (Q{config.texture_quality})",
        ),
        Stage(
            "draco",
            partial(compress_geometry, codec=codec, options=draco_options),
            lambda ok: "Geometry Draco-compressed" if ok else "No geometry to compress",
        ),
    ]


__all__ = [
    "GeometryCodec",
    "Stage",
    "build_stages",
    "compress_geometry",
    "compress_textures",
    "dedup",
    "prune",
    "resample_textures",
]
