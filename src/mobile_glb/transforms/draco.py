"""Draco geometry compression stage."""

import tempfile
from pathlib import Path
from typing import Protocol

from mobile_glb.document import SceneDocument
from mobile_glb.utils.constants import DEFAULT_DRACO_OPTIONS, DRACO_EXTENSION, DracoOptions


class GeometryCodec(Protocol):
    """Anything that can Draco-encode a GLB file into another."""

    def encode(
        self, input_path: Path, output_path: Path, options: DracoOptions
    ) -> None: ...


def compress_geometry(
    document: SceneDocument,
    codec: GeometryCodec,
    options: DracoOptions = DEFAULT_DRACO_OPTIONS,
) -> bool:
    """
    Run the codec over the document through a temporary GLB round trip.

    The encoded result replaces the document state in place.

    Returns:
        True if the result declares KHR_draco_mesh_compression.
    """
    with tempfile.TemporaryDirectory(prefix="mobile-glb-") as tmp:
        src = Path(tmp) / "geometry_in.glb"
        dst = Path(tmp) / "geometry_out.glb"
        document.write(src)
        codec.encode(src, dst, options)
        document.replace(SceneDocument.read(dst))
    return document.uses_extension(DRACO_EXTENSION)
