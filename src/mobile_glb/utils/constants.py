"""Constants and configuration for GLB optimization."""

from dataclasses import dataclass
from pathlib import Path

# glTF extension identifiers touched by the pipeline
DRACO_EXTENSION = "KHR_draco_mesh_compression"
WEBP_EXTENSION = "EXT_texture_webp"
IMAGE_SOURCE_EXTENSIONS: tuple[str, ...] = (
    WEBP_EXTENSION,
    "KHR_texture_basisu",
    "EXT_texture_avif",
)

# Order of the rows in the structure report
STRUCTURE_KEYS: tuple[str, ...] = (
    "textures",
    "materials",
    "meshes",
    "nodes",
    "accessors",
    "animations",
)


@dataclass(frozen=True)
class OptimizationConfig:
    """Configuration for a single optimization run."""

    texture_resolution: int = 1024  # Max texture edge in px
    texture_quality: int = 100  # WebP quality, 0-100 (lossy)
    input_path: Path = Path("models/jatoba.glb")
    output_path: Path = Path("models/jatoba_mobile.glb")

    def __post_init__(self) -> None:
        if isinstance(self.texture_resolution, bool) or self.texture_resolution < 1:
            raise ValueError(
                f"texture_resolution must be a positive integer, got {self.texture_resolution}"
            )
        if isinstance(self.texture_quality, bool) or not (
            0 <= self.texture_quality <= 100
        ):
            raise ValueError(
                f"texture_quality must be in [0, 100], got {self.texture_quality}"
            )
        # Accept plain strings from callers
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "output_path", Path(self.output_path))


@dataclass(frozen=True)
class DracoOptions:
    """Draco encoder settings (quantization bits per attribute kind)."""

    method: str = "edgebreaker"
    quantize_position: int = 14
    quantize_normal: int = 10
    quantize_texcoord: int = 12
    quantize_color: int = 8
    quantize_generic: int = 12


DEFAULT_CONFIG = OptimizationConfig()
DEFAULT_DRACO_OPTIONS = DracoOptions()
