"""Merge structurally identical entities into shared instances."""

import json
from collections.abc import Callable, Hashable
from dataclasses import asdict, is_dataclass
from typing import Any

from mobile_glb.document import SceneDocument, build_mapping

KeyFn = Callable[[SceneDocument, int, Any], Hashable | None]


def _json_value(value: Any) -> Any:
    # pygltflib Attributes is a plain object holding standard and custom names
    if hasattr(value, "__dict__"):
        return vars(value)
    return str(value)


def _properties_key(item: Any) -> str:
    """Canonical JSON of an entity without its name."""
    data = asdict(item) if is_dataclass(item) else dict(item)
    data.pop("name", None)
    return json.dumps(data, sort_keys=True, default=_json_value)


def _accessor_key(document: SceneDocument, index: int, accessor: Any) -> Hashable | None:
    if accessor.sparse is not None:
        return None
    data = document.accessor_bytes(index)
    if data is None:
        # Draco placeholders and zero-filled accessors carry no comparable data
        return None
    return (
        accessor.componentType,
        accessor.type,
        bool(accessor.normalized),
        accessor.count,
        data,
    )


def _image_key(document: SceneDocument, index: int, image: Any) -> Hashable | None:
    if image.bufferView is None:
        return None
    return image.mimeType, document.image_bytes(index)


def _property_key(document: SceneDocument, index: int, item: Any) -> Hashable | None:
    return _properties_key(item)


# Order matters: later kinds compare references already rewritten by earlier ones
DEDUP_ORDER: tuple[tuple[str, KeyFn], ...] = (
    ("accessors", _accessor_key),
    ("images", _image_key),
    ("samplers", _property_key),
    ("textures", _property_key),
    ("materials", _property_key),
    ("meshes", _property_key),
)


def _merge(document: SceneDocument, kind: str, key_fn: KeyFn) -> int:
    """Merge duplicates of one kind; returns how many were merged away."""
    items = getattr(document.gltf, kind) or []
    seen: dict[Hashable, int] = {}
    merged: dict[int, int] = {}
    for index, item in enumerate(items):
        key = key_fn(document, index, item)
        if key is None:
            continue
        if key in seen:
            merged[index] = seen[key]
        else:
            seen[key] = index

    if merged:
        document.reindex(kind, build_mapping(len(items), merged))
    return len(merged)


def dedup(document: SceneDocument) -> dict[str, int]:
    """
    Merge duplicate accessors, images, samplers, textures, materials and meshes.

    References to a duplicate are redirected to the first equivalent entity,
    and the duplicate is removed. Buffer views left without users are not
    touched here; ``prune`` drops them.

    Returns:
        Number of entities merged away, per kind.
    """
    return {kind: _merge(document, kind, key_fn) for kind, key_fn in DEDUP_ORDER}
