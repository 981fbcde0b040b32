"""
Mesh synthesis from branch forests.

This module converts a grown forest into a triangulated tube surface:
- A ring of vertices around every branch end, perpendicular to the branch
- An extra base ring at the start of every root
- A quad strip (two triangles per radial segment) from each ring to its
  parent's ring, or to the root's own base ring
- A triangle fan closing every leaf ring

Ring radii come from a direction-sensitive radius function that widens
junctions where children fork away and blends half of each branch's radius
with its parent's, so chains have no radius jumps.

VERTEX LAYOUT
-------------
Branch i owns vertices [i * S, (i + 1) * S); the base ring of the k-th root
(in index order) owns [(N + k) * S, (N + k + 1) * S), where S is the number
of radial segments and N the branch count.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, TYPE_CHECKING
import logging
import numpy as np

from ...core.forest import BranchForest, ROOT
from ...core.environment import Environment
from ...policies import MeshPolicy
from ...utils.geometry import UP, normalize, rotation_between

if TYPE_CHECKING:
    import trimesh

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SkeletonMesh:
    """
    Triangulated coral surface.

    vertices are (V, 3) positions, faces (F, 3) vertex indices and normals
    (V, 3) smooth vertex normals (None when disabled).
    """
    vertices: np.ndarray
    faces: np.ndarray
    normals: Optional[np.ndarray] = None
    ring_offsets: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        return len(self.vertices) == 0

    @property
    def positions(self) -> np.ndarray:
        """Flat float32 position buffer for the render host."""
        return self.vertices.astype(np.float32).ravel()

    @property
    def indices(self) -> np.ndarray:
        """Flat uint32 triangle index buffer for the render host."""
        return self.faces.astype(np.uint32).ravel()

    def to_trimesh(self) -> "trimesh.Trimesh":
        """Wrap the buffers in a trimesh.Trimesh without reprocessing them."""
        import trimesh

        if self.is_empty:
            return trimesh.Trimesh()
        return trimesh.Trimesh(
            vertices=self.vertices,
            faces=self.faces,
            vertex_normals=self.normals,
            process=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vertex_count": self.vertex_count,
            "face_count": self.face_count,
        }

    @classmethod
    def empty(cls) -> "SkeletonMesh":
        return cls(
            vertices=np.zeros((0, 3)),
            faces=np.zeros((0, 3), dtype=np.int64),
            normals=np.zeros((0, 3)),
        )


def _own_radius(forest: BranchForest, index: int, queries: np.ndarray) -> np.ndarray:
    """
    Junction radius of a branch with children for each query direction.

    The child closest in angle to the query decides: size * (1 + angle / pi).
    """
    branch = forest[index]
    child_dirs = np.array([forest[c].direction for c in branch.children])
    cos = np.clip(queries @ child_dirs.T, -1.0, 1.0).max(axis=1)
    return branch.size * (1.0 + np.arccos(cos) / np.pi)


class SkeletonMesher:
    """
    Builds tube surfaces from branch forests.

    Parameters
    ----------
    policy : MeshPolicy, optional
        Radial resolution and normal generation.
    """

    def __init__(self, policy: Optional[MeshPolicy] = None):
        self.policy = policy if policy is not None else MeshPolicy()
        assert self.policy.radial_segments >= 3, \
            f"radial_segments must be >= 3, got {self.policy.radial_segments}"

        segments = self.policy.radial_segments
        angles = 2 * np.pi * np.arange(segments) / segments
        self._reference_ring = np.column_stack([np.cos(angles), np.zeros(segments), np.sin(angles)])

    def radius_of(self, forest: BranchForest, index: int, query_direction: np.ndarray) -> float:
        """
        Radius of a branch seen from `query_direction`.

        A leaf returns its size. Otherwise the junction radius toward the
        query is blended 50/50 with radius_of(parent, branch.direction) when
        a parent exists. The parent chain is walked iteratively.
        """
        branch = forest[index]
        if branch.is_leaf:
            return float(branch.size)

        query = normalize(query_direction)
        radius = 0.0
        weight = 1.0
        current = index
        while True:
            own = float(_own_radius(forest, current, query[None])[0])
            parent = forest[current].parent
            if parent == ROOT:
                radius += weight * own
                break
            radius += 0.5 * weight * own
            weight *= 0.5
            query = forest[current].direction
            current = parent
        return radius

    def _inherited_radii(self, forest: BranchForest) -> np.ndarray:
        """
        radius_of(parent, branch.direction) for every non-root branch.

        Parents always precede their children, so one pass in index order
        resolves every chain.
        """
        inherited = np.zeros(len(forest))
        for branch in forest:
            if branch.parent == ROOT:
                continue
            parent = forest[branch.parent]
            own = float(_own_radius(forest, parent.index, branch.direction[None])[0])
            if parent.parent == ROOT:
                inherited[branch.index] = own
            else:
                inherited[branch.index] = 0.5 * own + 0.5 * inherited[parent.index]
        return inherited

    def build(
        self,
        forest: BranchForest,
        attractors: Optional[np.ndarray] = None,
        environment: Optional[Environment] = None,
    ) -> SkeletonMesh:
        """
        Build the tube surface of a forest.

        Parameters
        ----------
        forest : BranchForest
            Forest to mesh.
        attractors : np.ndarray, optional
            Live attractor positions (N, 3), used for the temperature offset.
        environment : Environment, optional
            Source of the temperature offset; none applied when omitted.

        Returns
        -------
        SkeletonMesh
            Surface with (N + roots) * S vertices and
            2 * N * S + leaves * (S - 2) triangles. Empty for an empty forest.
        """
        n_branches = len(forest)
        if n_branches == 0:
            return SkeletonMesh.empty()

        segments = self.policy.radial_segments
        roots = [b.index for b in forest if b.parent == ROOT]
        base_ring_of = {root: n_branches + k for k, root in enumerate(roots)}
        n_rings = n_branches + len(roots)

        inherited = self._inherited_radii(forest)
        vertices = np.zeros((n_rings * segments, 3))

        for branch in forest:
            rotation = rotation_between(UP, branch.direction)
            ring_dirs = self._reference_ring @ rotation.T

            if branch.is_leaf:
                radii = np.full(segments, branch.size, dtype=float)
            else:
                own = _own_radius(forest, branch.index, ring_dirs)
                radii = own if branch.parent == ROOT else 0.5 * own + 0.5 * inherited[branch.index]

            if environment is not None:
                radii = radii + environment.temperature_offset(branch.end, attractors)
                radii = np.maximum(radii, 0.0)

            offset = branch.index * segments
            vertices[offset:offset + segments] = branch.end + ring_dirs * radii[:, None]

            if branch.parent == ROOT:
                offset = base_ring_of[branch.index] * segments
                vertices[offset:offset + segments] = branch.start + ring_dirs * branch.size

        faces = []
        seam = np.arange(segments)
        nxt = (seam + 1) % segments
        for branch in forest:
            if branch.parent == ROOT:
                bottom = base_ring_of[branch.index] * segments
            else:
                bottom = branch.parent * segments
            top = branch.index * segments

            strip = np.empty((2 * segments, 3), dtype=np.int64)
            strip[0::2] = np.column_stack([bottom + seam, top + seam, top + nxt])
            strip[1::2] = np.column_stack([bottom + seam, top + nxt, bottom + nxt])
            faces.append(strip)

            if branch.is_leaf:
                fan = np.arange(segments - 2)
                faces.append(np.column_stack([
                    np.full(segments - 2, top),
                    top + fan + 1,
                    top + fan + 2,
                ]))

        faces = np.vstack(faces)

        normals = None
        if self.policy.smooth_normals:
            normals = self._vertex_normals(vertices, faces)

        logger.debug(f"Built coral mesh: {len(vertices)} vertices, {len(faces)} faces")

        return SkeletonMesh(
            vertices=vertices,
            faces=faces,
            normals=normals,
            ring_offsets=np.arange(n_branches, dtype=np.int64) * segments,
        )

    @staticmethod
    def _vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
        """Area-weighted vertex normals of the triangulated surface."""
        import trimesh

        mesh = trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
        return np.array(mesh.vertex_normals)

    def build_lines(self, forest: BranchForest) -> np.ndarray:
        """Skeleton line list: start/end pairs of every branch, shape (N, 2, 3)."""
        return forest.segments()
