"""Wrapper for the gltf-transform CLI used as Draco geometry codec."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from mobile_glb.errors import CodecError, CodecUnavailableError
from mobile_glb.utils.constants import DracoOptions

EXECUTABLE_NAME = "gltf-transform"


def find_gltf_transform() -> str | None:
    """Find gltf-transform executable in PATH."""
    return shutil.which(EXECUTABLE_NAME)


def build_draco_args(options: DracoOptions) -> list[str]:
    """Command-line flags for ``gltf-transform draco``."""
    return [
        "--method",
        options.method,
        "--quantize-position",
        str(options.quantize_position),
        "--quantize-normal",
        str(options.quantize_normal),
        "--quantize-texcoord",
        str(options.quantize_texcoord),
        "--quantize-color",
        str(options.quantize_color),
        "--quantize-generic",
        str(options.quantize_generic),
    ]


class DracoCodec:
    """Draco encoder backed by a resolved gltf-transform executable."""

    def __init__(self, executable: str) -> None:
        self.executable = executable

    @classmethod
    def acquire(cls) -> DracoCodec:
        """Locate the encoder once; raises if it is not installed."""
        executable = find_gltf_transform()
        if executable is None:
            raise CodecUnavailableError(
                f"{EXECUTABLE_NAME} not found in PATH "
                "(install with: npm install --global @gltf-transform/cli)"
            )
        return cls(executable)

    def encode(self, input_path: Path, output_path: Path, options: DracoOptions) -> None:
        """Draco-compress every mesh of input_path into output_path."""
        cmd = [
            self.executable,
            "draco",
            str(input_path),
            str(output_path),
            *build_draco_args(options),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise CodecError(f"{EXECUTABLE_NAME} could not be started: {e}") from e

        if result.returncode != 0:
            error_msg = result.stderr.strip() or result.stdout.strip() or "Unknown error"
            raise CodecError(f"{EXECUTABLE_NAME} draco failed: {error_msg}")
        if not output_path.exists():
            raise CodecError(f"{EXECUTABLE_NAME} completed but output file not found")
