"""Structural statistics of a scene document."""

from dataclasses import asdict, dataclass

from mobile_glb.document import SceneDocument


@dataclass(frozen=True)
class StructuralStats:
    """Entity counts captured at one point of a run."""

    textures: int = 0
    materials: int = 0
    meshes: int = 0
    nodes: int = 0
    accessors: int = 0
    animations: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def analyze_document(document: SceneDocument) -> StructuralStats:
    """
    Count textures, materials, meshes, nodes, accessors and animations.

    Read-only: the document is not modified, so repeated calls on an
    unchanged document return equal stats.
    """
    gltf = document.gltf
    return StructuralStats(
        textures=len(gltf.textures or []),
        materials=len(gltf.materials or []),
        meshes=len(gltf.meshes or []),
        nodes=len(gltf.nodes or []),
        accessors=len(gltf.accessors or []),
        animations=len(gltf.animations or []),
    )
