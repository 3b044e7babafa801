"""Remove entities that are unreachable from the scene roots."""

from typing import Any

from mobile_glb.document import (
    INSTANCING_EXTENSION,
    SceneDocument,
    attribute_items,
    build_mapping,
    material_texture_infos,
    texture_images,
    variant_mappings,
)
from mobile_glb.utils import get_field
from mobile_glb.utils.constants import DRACO_EXTENSION

PRUNE_ORDER: tuple[str, ...] = (
    "nodes",
    "skins",
    "cameras",
    "meshes",
    "materials",
    "textures",
    "images",
    "samplers",
    "accessors",
    "bufferViews",
)


def _root_nodes(gltf: Any) -> list[int]:
    """Scene roots; without scenes, every node that is nobody's child."""
    if gltf.scenes:
        return [i for scene in gltf.scenes for i in scene.nodes or []]
    nodes = gltf.nodes or []
    children = {c for node in nodes for c in node.children or []}
    return [i for i in range(len(nodes)) if i not in children]


def _reachable(gltf: Any) -> tuple[set[int], set[int]]:
    """Nodes and skins reachable from the roots, following skin joints."""
    nodes = gltf.nodes or []
    skins = gltf.skins or []
    kept_nodes: set[int] = set()
    kept_skins: set[int] = set()
    stack = _root_nodes(gltf)
    while stack:
        index = stack.pop()
        if index in kept_nodes or not 0 <= index < len(nodes):
            continue
        kept_nodes.add(index)
        node = nodes[index]
        stack.extend(node.children or [])
        if node.skin is not None and node.skin not in kept_skins:
            kept_skins.add(node.skin)
            skin = skins[node.skin]
            stack.extend(skin.joints or [])
            if skin.skeleton is not None:
                stack.append(skin.skeleton)
    return kept_nodes, kept_skins


def _prune_animations(gltf: Any, kept_nodes: set[int]) -> int:
    """Drop channels aimed at removed nodes, then empty animations."""
    kept: list[Any] = []
    for anim in gltf.animations or []:
        channels = [
            ch
            for ch in anim.channels or []
            if ch.target is None
            or ch.target.node is None
            or ch.target.node in kept_nodes
        ]
        if not channels:
            continue
        used = sorted({ch.sampler for ch in channels})
        remap = {old: new for new, old in enumerate(used)}
        for ch in channels:
            ch.sampler = remap[ch.sampler]
        anim.samplers = [anim.samplers[i] for i in used]
        anim.channels = channels
        kept.append(anim)
    removed = len(gltf.animations or []) - len(kept)
    if gltf.animations is not None:
        gltf.animations = kept
    return removed


def prune(document: SceneDocument) -> dict[str, int]:
    """
    Remove nodes, meshes, materials, textures, accessors and the rest of the
    graph that no scene root can reach.

    Besides the core references, EXT_mesh_gpu_instancing attributes,
    KHR_materials_variants mappings, KHR_draco_mesh_compression buffer
    views, image-format texture extensions and ``*Texture`` infos inside
    any extension are followed.

    Returns:
        Number of entities removed, per kind.
    """
    gltf = document.gltf
    kept_nodes, kept_skins = _reachable(gltf)
    removed_animations = _prune_animations(gltf, kept_nodes)

    nodes = gltf.nodes or []
    kept: dict[str, set[int]] = {kind: set() for kind in PRUNE_ORDER}
    kept["nodes"] = kept_nodes
    kept["skins"] = kept_skins

    for index in kept_nodes:
        node = nodes[index]
        if node.mesh is not None:
            kept["meshes"].add(node.mesh)
        if node.camera is not None:
            kept["cameras"].add(node.camera)
        inst = get_field(get_field(node, "extensions"), INSTANCING_EXTENSION)
        kept["accessors"].update((get_field(inst, "attributes") or {}).values())

    for index in kept["meshes"]:
        for prim in gltf.meshes[index].primitives or []:
            if prim.material is not None:
                kept["materials"].add(prim.material)
            for mapping in variant_mappings(prim):
                if get_field(mapping, "material") is not None:
                    kept["materials"].add(mapping["material"])
            if prim.indices is not None:
                kept["accessors"].add(prim.indices)
            attribute_sets = [prim.attributes, *(prim.targets or [])]
            for attributes in attribute_sets:
                kept["accessors"].update(
                    v for _, v in attribute_items(attributes) if v is not None
                )
            draco = get_field(get_field(prim, "extensions"), DRACO_EXTENSION)
            if get_field(draco, "bufferView") is not None:
                kept["bufferViews"].add(draco["bufferView"])

    for index in kept_skins:
        matrices = gltf.skins[index].inverseBindMatrices
        if matrices is not None:
            kept["accessors"].add(matrices)

    for anim in gltf.animations or []:
        for sampler in anim.samplers or []:
            kept["accessors"].update((sampler.input, sampler.output))

    for index in kept["materials"]:
        for info in material_texture_infos(gltf.materials[index]):
            kept["textures"].add(get_field(info, "index"))

    # Extension-held texture infos are kept whatever holds them
    for info in document.extension_texture_infos():
        kept["textures"].add(get_field(info, "index"))

    for index in kept["textures"]:
        texture = gltf.textures[index]
        if texture.sampler is not None:
            kept["samplers"].add(texture.sampler)
        kept["images"].update(texture_images(texture))

    for index in kept["accessors"]:
        accessor = gltf.accessors[index]
        if accessor.bufferView is not None:
            kept["bufferViews"].add(accessor.bufferView)
        if accessor.sparse is not None:
            for part in ("indices", "values"):
                view = get_field(get_field(accessor.sparse, part), "bufferView")
                if view is not None:
                    kept["bufferViews"].add(view)

    for index in kept["images"]:
        if gltf.images[index].bufferView is not None:
            kept["bufferViews"].add(gltf.images[index].bufferView)

    removed = {"animations": removed_animations}
    for kind in PRUNE_ORDER:
        count = len(getattr(gltf, kind) or [])
        dropped = set(range(count)) - kept[kind]
        removed[kind] = len(dropped)
        if dropped:
            document.reindex(kind, build_mapping(count, removed=dropped))
    return removed
