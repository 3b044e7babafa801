"""Helpers for reading glTF properties that may be dicts or dataclasses."""

from typing import Any


def get_field(obj: Any, key: str) -> Any:
    """Read ``key`` from a pygltflib object or a plain JSON dict."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def set_field(obj: Any, key: str, value: Any) -> None:
    """Write ``key`` on a pygltflib object or a plain JSON dict."""
    if isinstance(obj, dict):
        if value is None:
            obj.pop(key, None)
        else:
            obj[key] = value
    else:
        setattr(obj, key, value)


def element_size(accessor_type: str, component_type: int) -> int:
    """Byte size of one accessor element (unpadded)."""
    return TYPE_COMPONENTS[accessor_type] * COMPONENT_SIZES[component_type]


# glTF componentType -> bytes per component
COMPONENT_SIZES: dict[int, int] = {
    5120: 1,  # BYTE
    5121: 1,  # UNSIGNED_BYTE
    5122: 2,  # SHORT
    5123: 2,  # UNSIGNED_SHORT
    5125: 4,  # UNSIGNED_INT
    5126: 4,  # FLOAT
}

# glTF accessor type -> components per element
TYPE_COMPONENTS: dict[str, int] = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
    "MAT2": 4,
    "MAT3": 9,
    "MAT4": 16,
}
