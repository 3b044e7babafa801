"""
Pytest fixtures for mobile-glb tests.

Test scenes are assembled directly as GLB containers (JSON chunk + BIN
chunk) so the fixtures do not depend on the code under test.
"""

from __future__ import annotations

import io
import json
import shutil
import struct
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from mobile_glb.document import SceneDocument
from mobile_glb.utils.constants import DracoOptions

GLB_MAGIC = 0x46546C67
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942

TRIANGLE = struct.pack("<9f", 0, 0, 0, 1, 0, 0, 0, 1, 0)
OTHER_TRIANGLE = struct.pack("<9f", 0, 0, 0, 2, 0, 0, 0, 2, 0)
TRIANGLE_INDICES = struct.pack("<3H", 0, 1, 2)


def png_bytes(
    size: tuple[int, int] = (8, 4),
    color: tuple[int, ...] = (200, 30, 30, 255),
    mode: str = "RGBA",
) -> bytes:
    """Encode a solid-color PNG."""
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


def write_glb(path: Path, gltf_json: dict[str, Any], chunks: list[bytes]) -> Path:
    """
    Write a GLB whose buffer views are ``chunks`` in order.

    ``bufferViews`` and ``buffers`` are generated; every other property
    comes from ``gltf_json``. Views are 4-byte aligned.
    """
    bin_data = bytearray()
    views = []
    for chunk in chunks:
        bin_data.extend(b"\x00" * (-len(bin_data) % 4))
        views.append({"buffer": 0, "byteOffset": len(bin_data), "byteLength": len(chunk)})
        bin_data.extend(chunk)
    bin_data.extend(b"\x00" * (-len(bin_data) % 4))

    doc = {"asset": {"version": "2.0"}, **gltf_json}
    if chunks:
        doc["bufferViews"] = views
        doc["buffers"] = [{"byteLength": len(bin_data)}]

    json_bytes = json.dumps(doc).encode("utf-8")
    json_bytes += b" " * (-len(json_bytes) % 4)

    body = struct.pack("<II", len(json_bytes), CHUNK_JSON) + json_bytes
    if chunks:
        body += struct.pack("<II", len(bin_data), CHUNK_BIN) + bytes(bin_data)
    header = struct.pack("<III", GLB_MAGIC, 2, 12 + len(body))
    path.write_bytes(header + body)
    return path


def _position_accessor(view: int) -> dict[str, Any]:
    return {
        "bufferView": view,
        "componentType": 5126,
        "count": 3,
        "type": "VEC3",
        "min": [0, 0, 0],
        "max": [2, 2, 0],
    }


def duplicate_scene_json() -> tuple[dict[str, Any], list[bytes]]:
    """
    Scene with duplicated data and one unreferenced mesh.

    - accessors 0 and 2 hold identical positions
    - images 0 and 1 hold identical PNG bytes, used by textures 0 and 1
    - materials 0 and 1 differ only by name and texture
    - meshes 0 and 1 become identical once the above are merged
    - mesh 2 is not referenced by any node
    """
    image = png_bytes()
    chunks = [TRIANGLE, TRIANGLE_INDICES, image, image, TRIANGLE, OTHER_TRIANGLE]
    gltf_json = {
        "scene": 0,
        "scenes": [{"nodes": [0, 1]}],
        "nodes": [{"name": "A", "mesh": 0}, {"name": "B", "mesh": 1}],
        "meshes": [
            {"name": "tri_a", "primitives": [{"attributes": {"POSITION": 0}, "indices": 1, "material": 0}]},
            {"name": "tri_b", "primitives": [{"attributes": {"POSITION": 2}, "indices": 1, "material": 1}]},
            {"name": "orphan", "primitives": [{"attributes": {"POSITION": 3}, "material": 0}]},
        ],
        "materials": [
            {"name": "red_a", "pbrMetallicRoughness": {"baseColorTexture": {"index": 0}}},
            {"name": "red_b", "pbrMetallicRoughness": {"baseColorTexture": {"index": 1}}},
        ],
        "textures": [{"sampler": 0, "source": 0}, {"sampler": 0, "source": 1}],
        "samplers": [{"magFilter": 9729, "minFilter": 9987}],
        "images": [
            {"bufferView": 2, "mimeType": "image/png"},
            {"bufferView": 3, "mimeType": "image/png"},
        ],
        "accessors": [
            _position_accessor(0),
            {"bufferView": 1, "componentType": 5123, "count": 3, "type": "SCALAR"},
            _position_accessor(4),
            _position_accessor(5),
        ],
    }
    return gltf_json, chunks


@pytest.fixture
def duplicate_scene_path(tmp_path: Path) -> Path:
    """GLB file of ``duplicate_scene_json``."""
    gltf_json, chunks = duplicate_scene_json()
    return write_glb(tmp_path / "duplicates.glb", gltf_json, chunks)


@pytest.fixture
def duplicate_scene(duplicate_scene_path: Path) -> SceneDocument:
    """Loaded document of ``duplicate_scene_json``."""
    return SceneDocument.read(duplicate_scene_path)


@pytest.fixture
def textured_scene_path(tmp_path: Path) -> Path:
    """One triangle with a 64x32 base color texture."""
    gltf_json = {
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [{"primitives": [{"attributes": {"POSITION": 0}, "material": 0}]}],
        "materials": [{"pbrMetallicRoughness": {"baseColorTexture": {"index": 0}}}],
        "textures": [{"source": 0}],
        "images": [{"name": "albedo", "bufferView": 1, "mimeType": "image/png"}],
        "accessors": [_position_accessor(0)],
    }
    chunks = [TRIANGLE, png_bytes(size=(64, 32))]
    return write_glb(tmp_path / "textured.glb", gltf_json, chunks)


@pytest.fixture
def textured_scene(textured_scene_path: Path) -> SceneDocument:
    return SceneDocument.read(textured_scene_path)


class FakeCodec:
    """Stands in for gltf-transform: copies input to output unchanged."""

    def __init__(self) -> None:
        self.calls: list[DracoOptions] = []

    def encode(self, input_path: Path, output_path: Path, options: DracoOptions) -> None:
        self.calls.append(options)
        shutil.copyfile(input_path, output_path)


class FailingCodec:
    """Codec whose encoder always fails."""

    def encode(self, input_path: Path, output_path: Path, options: DracoOptions) -> None:
        raise RuntimeError("draco encoder exploded")


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()


@pytest.fixture
def failing_codec() -> FailingCodec:
    return FailingCodec()


@pytest.fixture
def make_glb():
    """Factory writing GLB files from JSON and buffer view chunks."""
    return write_glb


@pytest.fixture
def make_png():
    """Factory for solid-color PNG bytes."""
    return png_bytes
