"""In-memory scene document backed by pygltflib.

pygltflib handles the glTF JSON and GLB container. The document keeps the
payload of every buffer view as its own ``bytes`` object so that transforms
can replace, merge or drop views without juggling buffer offsets; the single
GLB buffer is rebuilt from these views on write.

Every cross reference in glTF is an integer index into a per-kind list.
``reindex`` is the one place that knows where those references live, so
merging (dedup) and removal (prune) share the same rewrite.
"""

from __future__ import annotations

import base64
import mimetypes
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from pygltflib import GLTF2, Buffer, BufferView

from mobile_glb.utils import element_size, get_field, set_field
from mobile_glb.utils.constants import DRACO_EXTENSION, IMAGE_SOURCE_EXTENSIONS

# Kinds that ``reindex`` understands, named after the glTF top-level arrays
KINDS: tuple[str, ...] = (
    "accessors",
    "bufferViews",
    "images",
    "samplers",
    "textures",
    "materials",
    "meshes",
    "nodes",
    "skins",
    "cameras",
    "animations",
)

INSTANCING_EXTENSION = "EXT_mesh_gpu_instancing"
VARIANTS_EXTENSION = "KHR_materials_variants"


def build_mapping(
    count: int,
    merged: dict[int, int] | None = None,
    removed: set[int] | frozenset[int] = frozenset(),
) -> dict[int, int | None]:
    """
    Build a ``reindex`` mapping for a list of ``count`` entities.

    Args:
        count: Current length of the list
        merged: duplicate index -> index of the entity it merges into
        removed: indices to drop outright

    Returns:
        Mapping of every old index to its new index, or None when removed.
    """
    merged = merged or {}
    mapping: dict[int, int | None] = {}
    next_index = 0
    for i in range(count):
        if i in removed or i in merged:
            continue
        mapping[i] = next_index
        next_index += 1
    for dup, canonical in merged.items():
        mapping[dup] = mapping[canonical]
    for i in removed:
        mapping[i] = None
    return mapping


def attribute_items(attributes: Any) -> list[tuple[str, Any]]:
    """
    (name, accessor index) pairs of a primitive attributes/targets object.

    Application-specific attributes start with ``_`` (``_FEATURE_ID_0``);
    pygltflib keeps them in the same ``__dict__`` as the standard ones.
    """
    if attributes is None:
        return []
    if isinstance(attributes, dict):
        return list(attributes.items())
    return list(vars(attributes).items())


def variant_mappings(primitive: Any) -> list[Any]:
    """KHR_materials_variants mappings of a primitive (each has ``material``)."""
    variants = get_field(get_field(primitive, "extensions"), VARIANTS_EXTENSION)
    return get_field(variants, "mappings") or []


def _extension_texture_infos(value: Any) -> Iterator[Any]:
    """Texture infos nested in an extensions dict (``*Texture`` keys)."""
    if not isinstance(value, dict):
        return
    for key, child in value.items():
        if key.endswith("Texture") and get_field(child, "index") is not None:
            yield child
        else:
            yield from _extension_texture_infos(child)


def material_texture_infos(material: Any) -> Iterator[Any]:
    """Every texture info object referenced by a material."""
    pbr = get_field(material, "pbrMetallicRoughness")
    holders = (
        get_field(pbr, "baseColorTexture"),
        get_field(pbr, "metallicRoughnessTexture"),
        get_field(material, "normalTexture"),
        get_field(material, "occlusionTexture"),
        get_field(material, "emissiveTexture"),
    )
    for holder in holders:
        if get_field(holder, "index") is not None:
            yield holder
    yield from _extension_texture_infos(get_field(material, "extensions"))


def texture_images(texture: Any) -> set[int]:
    """Every image a texture points at, fallback and image-format extensions alike."""
    images = {get_field(texture, "source")}
    extensions = get_field(texture, "extensions") or {}
    for name in IMAGE_SOURCE_EXTENSIONS:
        images.add(get_field(extensions.get(name), "source"))
    return images - {None}


class SceneDocument:
    """A glTF document plus the bytes of each of its buffer views."""

    def __init__(self, gltf: GLTF2, base_dir: Path | None = None) -> None:
        self.gltf = gltf
        self.base_dir = base_dir or Path.cwd()
        self.views: list[bytes] = []

        blob = gltf.binary_blob()
        buffers = [self._buffer_data(b, blob) for b in gltf.buffers or []]
        for view in gltf.bufferViews or []:
            data = buffers[view.buffer]
            start = view.byteOffset or 0
            self.views.append(bytes(data[start : start + view.byteLength]))

        self._embed_images()

    # -- provider -----------------------------------------------------------

    @classmethod
    def read(cls, path: str | Path) -> SceneDocument:
        """Load a .glb or .gltf file."""
        path = Path(path)
        gltf = GLTF2().load(str(path))
        if gltf is None:
            raise ValueError(f"Could not parse glTF document: {path}")
        return cls(gltf, base_dir=path.parent)

    def write(self, path: str | Path) -> None:
        """Pack all buffer views into one buffer and save as GLB."""
        path = Path(path)
        blob = bytearray()
        for view, data in zip(self.gltf.bufferViews, self.views):
            blob.extend(b"\x00" * (-len(blob) % 4))
            view.buffer = 0
            view.byteOffset = len(blob)
            view.byteLength = len(data)
            blob.extend(data)
        blob.extend(b"\x00" * (-len(blob) % 4))

        self.gltf.buffers = [Buffer(byteLength=len(blob))] if self.views else []
        self.gltf.set_binary_blob(bytes(blob))
        path.parent.mkdir(parents=True, exist_ok=True)
        self.gltf.save_binary(str(path))

    def replace(self, other: SceneDocument) -> None:
        """Adopt the state of another document in place."""
        self.gltf = other.gltf
        self.views = other.views

    def _buffer_data(self, buffer: Buffer, blob: bytes | None) -> bytes:
        uri = buffer.uri
        if uri is None:
            return blob or b""
        if uri.startswith("data:"):
            return base64.b64decode(uri.split(",", 1)[1])
        return (self.base_dir / unquote(uri)).read_bytes()

    def _embed_images(self) -> None:
        """Move data-URI and external images into buffer views."""
        for image in self.gltf.images or []:
            uri = image.uri
            if uri is None:
                continue
            if uri.startswith("data:"):
                header, payload = uri.split(",", 1)
                mime = header[5:].split(";", 1)[0] or None
                data = base64.b64decode(payload)
            else:
                mime = mimetypes.guess_type(uri)[0]
                data = (self.base_dir / unquote(uri)).read_bytes()
            image.bufferView = self.add_view(data)
            image.mimeType = image.mimeType or mime
            image.uri = None

    # -- bytes access -------------------------------------------------------

    def add_view(self, data: bytes) -> int:
        """Append a buffer view holding ``data``; returns its index."""
        if self.gltf.bufferViews is None:
            self.gltf.bufferViews = []
        self.gltf.bufferViews.append(BufferView(buffer=0, byteLength=len(data)))
        self.views.append(bytes(data))
        return len(self.views) - 1

    def view_bytes(self, index: int) -> bytes:
        return self.views[index]

    def set_view_bytes(self, index: int, data: bytes) -> None:
        self.views[index] = bytes(data)
        self.gltf.bufferViews[index].byteLength = len(data)

    def accessor_bytes(self, index: int) -> bytes | None:
        """Element bytes of an accessor, de-interleaved. None without a view."""
        accessor = self.gltf.accessors[index]
        if accessor.bufferView is None:
            return None
        view = self.gltf.bufferViews[accessor.bufferView]
        data = self.views[accessor.bufferView]
        size = element_size(accessor.type, accessor.componentType)
        stride = view.byteStride or size
        start = accessor.byteOffset or 0
        if stride == size:
            return data[start : start + size * accessor.count]
        return b"".join(
            data[start + k * stride : start + k * stride + size]
            for k in range(accessor.count)
        )

    def image_bytes(self, index: int) -> bytes:
        image = self.gltf.images[index]
        if image.bufferView is None:
            raise ValueError(f"Image {index} has no embedded data")
        return self.views[image.bufferView]

    def set_image_bytes(self, index: int, data: bytes, mime_type: str) -> None:
        image = self.gltf.images[index]
        if image.bufferView is None:
            image.bufferView = self.add_view(data)
        else:
            self.set_view_bytes(image.bufferView, data)
        image.mimeType = mime_type
        image.uri = None

    def remove_images(self, indices: set[int]) -> None:
        """Drop images, then the buffer views nothing else points at."""
        if not indices:
            return
        images = self.gltf.images or []
        candidates = {images[i].bufferView for i in indices} - {None}
        self.reindex("images", build_mapping(len(images), removed=indices))

        unused = candidates - self._referenced_views()
        if unused:
            self.reindex("bufferViews", build_mapping(len(self.views), removed=unused))

    def _referenced_views(self) -> set[int]:
        used = set()
        for holder, key in self._scalar_refs("bufferViews"):
            value = get_field(holder, key)
            if value is not None:
                used.add(value)
        return used

    # -- extensions ---------------------------------------------------------

    def add_extension(self, name: str, required: bool = False) -> None:
        """Declare an extension in extensionsUsed (and extensionsRequired)."""
        used = self.gltf.extensionsUsed or []
        if name not in used:
            used.append(name)
        self.gltf.extensionsUsed = used
        if required:
            req = self.gltf.extensionsRequired or []
            if name not in req:
                req.append(name)
            self.gltf.extensionsRequired = req

    def uses_extension(self, name: str) -> bool:
        return name in (self.gltf.extensionsUsed or []) or name in (
            self.gltf.extensionsRequired or []
        )

    # -- references ---------------------------------------------------------

    def primitives(self) -> Iterator[Any]:
        for mesh in self.gltf.meshes or []:
            yield from mesh.primitives or []

    def extension_texture_infos(self) -> Iterator[Any]:
        """Texture infos held by extensions of anything but a material."""
        gltf = self.gltf
        holders = [
            gltf,
            *(gltf.scenes or []),
            *(gltf.nodes or []),
            *(gltf.meshes or []),
            *self.primitives(),
            *(gltf.cameras or []),
            *(gltf.skins or []),
            *(gltf.animations or []),
        ]
        for holder in holders:
            yield from _extension_texture_infos(get_field(holder, "extensions"))

    def texture_infos(self) -> Iterator[Any]:
        """Every texture info in the document."""
        for material in self.gltf.materials or []:
            yield from material_texture_infos(material)
        yield from self.extension_texture_infos()

    def reindex(self, kind: str, mapping: dict[int, int | None]) -> None:
        """
        Rewrite every reference of ``kind`` through ``mapping`` and compact.

        Entities whose new index is None are dropped; several old indices
        may share one new index (merge). The first old index that maps to a
        given new index supplies the surviving entity.
        """
        if kind not in KINDS:
            raise ValueError(f"Unknown kind: {kind}")

        def remap(value: int | None) -> int | None:
            return None if value is None else mapping.get(value)

        for holder, key in self._scalar_refs(kind):
            value = get_field(holder, key)
            if value is not None:
                set_field(holder, key, remap(value))

        for holder, key in self._list_refs(kind):
            values = get_field(holder, key)
            if values:
                set_field(holder, key, [v for v in map(remap, values) if v is not None])

        items = getattr(self.gltf, kind) or []
        size = max((v for v in mapping.values() if v is not None), default=-1) + 1
        compacted: list[Any] = [None] * size
        views: list[bytes | None] = [None] * size
        for old, item in enumerate(items):
            new = mapping.get(old)
            if new is not None and compacted[new] is None:
                compacted[new] = item
                if kind == "bufferViews":
                    views[new] = self.views[old]
        setattr(self.gltf, kind, compacted)
        if kind == "bufferViews":
            self.views = [v for v in views if v is not None]

    def _scalar_refs(self, kind: str) -> Iterator[tuple[Any, str]]:
        """(holder, key) pairs holding a single index of ``kind``."""
        gltf = self.gltf
        if kind == "accessors":
            for prim in self.primitives():
                yield prim, "indices"
                for name, _ in attribute_items(prim.attributes):
                    yield prim.attributes, name
                for target in prim.targets or []:
                    for name, _ in attribute_items(target):
                        yield target, name
            for skin in gltf.skins or []:
                yield skin, "inverseBindMatrices"
            for anim in gltf.animations or []:
                for sampler in anim.samplers or []:
                    yield sampler, "input"
                    yield sampler, "output"
            for node in gltf.nodes or []:
                inst = get_field(get_field(node, "extensions"), INSTANCING_EXTENSION)
                attrs = get_field(inst, "attributes") or {}
                yield from ((attrs, name) for name in list(attrs))
        elif kind == "bufferViews":
            for acc in gltf.accessors or []:
                yield acc, "bufferView"
                sparse = acc.sparse
                if sparse is not None:
                    yield get_field(sparse, "indices"), "bufferView"
                    yield get_field(sparse, "values"), "bufferView"
            for image in gltf.images or []:
                yield image, "bufferView"
            for prim in self.primitives():
                draco = get_field(get_field(prim, "extensions"), DRACO_EXTENSION)
                if draco is not None:
                    yield draco, "bufferView"
        elif kind == "images":
            for tex in gltf.textures or []:
                yield tex, "source"
                extensions = get_field(tex, "extensions") or {}
                for name in IMAGE_SOURCE_EXTENSIONS:
                    if name in extensions:
                        yield extensions[name], "source"
        elif kind == "samplers":
            for tex in gltf.textures or []:
                yield tex, "sampler"
        elif kind == "textures":
            for info in self.texture_infos():
                yield info, "index"
        elif kind == "materials":
            for prim in self.primitives():
                yield prim, "material"
                for mapping in variant_mappings(prim):
                    yield mapping, "material"
        elif kind == "meshes":
            for node in gltf.nodes or []:
                yield node, "mesh"
        elif kind == "nodes":
            for skin in gltf.skins or []:
                yield skin, "skeleton"
            for anim in gltf.animations or []:
                for channel in anim.channels or []:
                    yield channel.target, "node"
        elif kind == "skins":
            for node in gltf.nodes or []:
                yield node, "skin"
        elif kind == "cameras":
            for node in gltf.nodes or []:
                yield node, "camera"

    def _list_refs(self, kind: str) -> Iterator[tuple[Any, str]]:
        """(holder, key) pairs holding a list of indices of ``kind``."""
        if kind != "nodes":
            return
        for scene in self.gltf.scenes or []:
            yield scene, "nodes"
        for node in self.gltf.nodes or []:
            yield node, "children"
        for skin in self.gltf.skins or []:
            yield skin, "joints"
