"""Segment arena for the robot's kinematic tree.

This module defines the immutable topology the solvers walk. Segments live
in a flat arena addressed by integer index, each storing its parent's index
(or `ROOT_PARENT` for the root), so ancestor walks are plain index lookups.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import jax
import jax.numpy as jnp
import numpy as np
from flax import struct

from ..errors import ChainConstructionError, DescriptionParseError, UnknownSegmentError
from .description import JointKind, RobotDescription

Array = jax.Array

ROOT_PARENT = -1


@dataclass(frozen=True)
class Joint:
    """Joint attaching a segment to its parent. Movable axes are stored unit length."""
    name: str
    kind: JointKind = JointKind.NONE
    axis: Tuple[float, float, float] = (1.0, 0.0, 0.0)

    def __post_init__(self):
        if not self.kind.movable:
            return
        axis = np.asarray(self.axis, dtype=np.float64)
        norm = np.linalg.norm(axis)
        if axis.shape != (3,) or not norm > 1e-12:
            raise DescriptionParseError(f"Joint '{self.name}' needs a non-zero 3D axis, got {self.axis}")
        object.__setattr__(self, "axis", tuple(float(a) for a in axis / norm))

    @property
    def movable(self) -> bool:
        return self.kind.movable


@dataclass(frozen=True, eq=False)
class Segment:
    """One rigid body of the tree plus the joint attaching it to its parent."""
    name: str
    parent: Optional[str] = None
    offset: Array = field(default_factory=lambda: jnp.eye(4))
    joint: Optional[Joint] = None


@dataclass(frozen=True, eq=False)
class Chain:
    """Fixed path from `base` down to `tip`.

    `segments` holds the segments strictly below `base` up to and including
    `tip`, in base-to-tip order. It is empty when base and tip coincide.
    """
    base: str
    tip: str
    segments: Tuple[Segment, ...] = ()

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return tuple(
            s.joint.name for s in self.segments if s.joint is not None and s.joint.movable
        )

    @property
    def num_joints(self) -> int:
        return len(self.joint_names)


def twist_axis(joint: Optional[Joint]) -> Array:
    """6D twist axis of a joint, zero for fixed and NONE joints."""
    if joint is None or not joint.movable:
        return jnp.zeros(6)
    axis = jnp.asarray(joint.axis, dtype=jnp.float64)
    if joint.kind is JointKind.REVOLUTE:
        # Revolute: [0, 0, 0, wx, wy, wz]
        return jnp.concatenate([jnp.zeros(3), axis])
    # Prismatic: [vx, vy, vz, 0, 0, 0]
    return jnp.concatenate([axis, jnp.zeros(3)])


@struct.dataclass
class Topology:
    """Immutable arena representation of the kinematic tree.

    Attributes:
        segment_names: Segment names in breadth-first order from the root.
                       Index 0 is always the root.
        parent_indices: parent_indices[i] is the arena index of segment i's
                        parent, ROOT_PARENT for the root.
        joints: The joint attaching each segment to its parent (None for root).
        joint_slots: Dense joint-state index per segment, -1 when the
                     segment's joint is not movable.
        offsets: Array of shape (num_segments, 4, 4) with each segment's fixed
                 offset from its parent.
        joint_axes: Array of shape (num_segments, 6) holding the twist axis
                    [vx,vy,vz,wx,wy,wz] of each segment's joint.
    """
    segment_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Tuple[int, ...] = struct.field(pytree_node=False)
    joints: Tuple[Optional[Joint], ...] = struct.field(pytree_node=False)
    joint_slots: Tuple[int, ...] = struct.field(pytree_node=False)
    offsets: Array
    joint_axes: Array

    @classmethod
    def from_segments(cls, segments: Sequence[Segment]) -> "Topology":
        """Build the arena from segments listed in any order.

        Exactly one segment must have no parent. Segments are re-ordered
        breadth-first from the root, children kept in input order, and
        movable joints are numbered in that order.
        """
        by_name: Dict[str, Segment] = {}
        for seg in segments:
            if seg.name in by_name:
                raise DescriptionParseError(f"Duplicate segment '{seg.name}'")
            by_name[seg.name] = seg

        roots = [s.name for s in segments if s.parent is None]
        if len(roots) != 1:
            raise DescriptionParseError(f"Expected exactly one root segment, found: {roots}")

        children: Dict[str, List[str]] = {name: [] for name in by_name}
        for seg in segments:
            if seg.parent is None:
                continue
            if seg.parent not in by_name:
                raise DescriptionParseError(
                    f"Segment '{seg.name}' has unknown parent '{seg.parent}'"
                )
            children[seg.parent].append(seg.name)

        ordered: List[str] = []
        queue = deque([roots[0]])
        while queue:
            current = queue.popleft()
            ordered.append(current)
            queue.extend(children[current])

        if len(ordered) != len(by_name):
            missing = sorted(set(by_name) - set(ordered))
            raise DescriptionParseError(f"Segments not reachable from the root: {missing}")

        index = {name: i for i, name in enumerate(ordered)}
        parent_indices = []
        joint_slots = []
        next_slot = 0
        for name in ordered:
            seg = by_name[name]
            parent_indices.append(ROOT_PARENT if seg.parent is None else index[seg.parent])
            if seg.joint is not None and seg.joint.movable:
                joint_slots.append(next_slot)
                next_slot += 1
            else:
                joint_slots.append(-1)

        return cls(
            segment_names=tuple(ordered),
            parent_indices=tuple(parent_indices),
            joints=tuple(by_name[name].joint for name in ordered),
            joint_slots=tuple(joint_slots),
            offsets=jnp.stack([jnp.asarray(by_name[name].offset) for name in ordered]),
            joint_axes=jnp.stack([twist_axis(by_name[name].joint) for name in ordered]),
        )

    @property
    def root(self) -> str:
        return self.segment_names[0]

    @property
    def num_segments(self) -> int:
        return len(self.segment_names)

    @property
    def num_joints(self) -> int:
        """Number of movable joints, i.e. the dense state length."""
        return sum(1 for slot in self.joint_slots if slot >= 0)

    def __contains__(self, name: str) -> bool:
        return name in self.segment_names

    def index_of(self, name: str) -> int:
        try:
            return self.segment_names.index(name)
        except ValueError:
            raise UnknownSegmentError(name) from None

    def segment(self, index: int) -> Segment:
        parent = self.parent_indices[index]
        return Segment(
            name=self.segment_names[index],
            parent=None if parent == ROOT_PARENT else self.segment_names[parent],
            offset=self.offsets[index],
            joint=self.joints[index],
        )

    def path_to(self, name: str) -> Tuple[int, ...]:
        """Arena indices from the root (inclusive) to `name` (inclusive)."""
        path = []
        i = self.index_of(name)
        while i != ROOT_PARENT:
            path.append(i)
            i = self.parent_indices[i]
        return tuple(reversed(path))

    def is_ancestor(self, ancestor: str, name: str) -> bool:
        """True when `ancestor` lies on the root path of `name` (or is `name`)."""
        return self.index_of(ancestor) in self.path_to(name)

    def chain(self, base: str, tip: str) -> Chain:
        """Extract the fixed chain from `base` down to `tip`."""
        try:
            base_idx = self.index_of(base)
            path = self.path_to(tip)
        except UnknownSegmentError as exc:
            raise ChainConstructionError(
                f"Could not create chain from {base} to {tip}: {exc}"
            ) from exc
        if base_idx not in path:
            raise ChainConstructionError(
                f"Could not create chain from {base} to {tip}: "
                f"'{tip}' does not descend from '{base}'"
            )
        start = path.index(base_idx) + 1
        return Chain(base=base, tip=tip, segments=tuple(self.segment(i) for i in path[start:]))

    def movable_joints(self) -> Iterable[Tuple[int, Joint]]:
        """Yield (dense slot, joint) for every movable joint in walk order."""
        for slot, joint in zip(self.joint_slots, self.joints):
            if slot >= 0:
                yield slot, joint


def build_topology(description: RobotDescription) -> Topology:
    """Turn a validated description into the segment arena.

    Only links connected to the description's root become segments. Each
    segment's fixed offset is the origin of the joint that ends in it.
    """
    segments = []
    queue = deque([description.root])
    while queue:
        link_name = queue.popleft()
        spec = description.joint_to(link_name)
        if spec is None:
            segments.append(Segment(name=link_name))
        else:
            segments.append(Segment(
                name=link_name,
                parent=spec.parent,
                offset=spec.origin,
                joint=Joint(name=spec.name, kind=spec.kind, axis=tuple(spec.axis)),
            ))
        queue.extend(description.children_of(link_name))
    return Topology.from_segments(segments)
