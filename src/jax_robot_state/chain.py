"""Forward kinematics along the sensor chain and through the full tree.

Both solvers share one composition rule: walking from the root towards the
tip, each segment contributes its fixed offset followed by its joint motion
evaluated at the current joint value (identity for fixed joints, a rotation
about the axis for revolute joints, a translation along it for prismatic
ones). Nothing is cached across calls.
"""

from typing import Dict, Optional

import jax
import jax.numpy as jnp
from jax import Array

from .core import Chain, Topology
from .core.topology import twist_axis
from .errors import KinematicSolveError
from .transforms import se3


def check_finite(T: Array, target: str) -> Array:
    if not bool(jnp.all(jnp.isfinite(T))):
        raise KinematicSolveError(f"Transform to '{target}' is not finite")
    return T


def solve_chain(chain: Chain, q: Array) -> Array:
    """Compute the transform from the chain's base to its tip.

    Args:
        chain: Chain extracted from the topology.
        q: Joint values for the chain's movable joints only, in chain order.

    Returns:
        4x4 transform of the tip frame expressed in the base frame.

    Raises:
        KinematicSolveError: The chain is degenerate, the number of joint
            values does not match the chain, or the result is not finite.
    """
    if not chain.segments and chain.base != chain.tip:
        raise KinematicSolveError(f"Chain from {chain.base} to {chain.tip} has no segments")

    q = jnp.asarray(q, dtype=jnp.float64).reshape(-1)
    if q.shape[0] != chain.num_joints:
        raise KinematicSolveError(
            f"Chain from {chain.base} to {chain.tip} needs {chain.num_joints} joint values, "
            f"got {q.shape[0]}"
        )

    T = se3.identity()
    j = 0
    for segment in chain.segments:
        T = se3.multiply(T, segment.offset)
        if segment.joint is not None and segment.joint.movable:
            T = se3.multiply(T, se3.exp(twist_axis(segment.joint) * q[j]))
            j += 1

    return check_finite(T, chain.tip)


class TreeFkSolver:
    """Root-to-segment forward kinematics over the whole topology.

    `solve` walks the unique root path of its target. Passing the same
    `cache` dict to several calls within one resolution lets later walks
    start from the deepest ancestor already computed.
    """

    def __init__(self, topology: Topology):
        self.topology = topology

    def _local(self, q: Array, i: int) -> Array:
        slot = self.topology.joint_slots[i]
        offset = self.topology.offsets[i]
        if slot < 0:
            return offset
        return se3.multiply(offset, se3.exp(self.topology.joint_axes[i] * q[slot]))

    def solve(self, q: Array, target: str, cache: Optional[Dict[int, Array]] = None) -> Array:
        """Compute the transform from the root to `target`.

        Args:
            q: Dense joint vector of shape (num_joints,).
            target: Segment name.
            cache: Optional per-call memo of arena index -> root transform.

        Raises:
            UnknownSegmentError: `target` is not in the topology.
            KinematicSolveError: `q` has the wrong length or the result is
                not finite.
        """
        path = self.topology.path_to(target)

        q = jnp.asarray(q, dtype=jnp.float64).reshape(-1)
        if q.shape[0] != self.topology.num_joints:
            raise KinematicSolveError(
                f"Tree needs {self.topology.num_joints} joint values, got {q.shape[0]}"
            )

        T = se3.identity()
        start = 0
        if cache is not None:
            for k in range(len(path) - 1, -1, -1):
                if path[k] in cache:
                    T = cache[path[k]]
                    start = k + 1
                    break

        for i in path[start:]:
            T = se3.multiply(T, self._local(q, i))
            if cache is not None:
                cache[i] = T

        return check_finite(T, target)


def solve_tree(topology: Topology, q: Array, target: str) -> Array:
    """Compute the transform from the topology root to `target`."""
    return TreeFkSolver(topology).solve(q, target)


def forward_kinematics_world(topology: Topology, q: Array) -> Array:
    """Root transforms for every segment in one pass.

    Relies on the arena's breadth-first order (parents precede children), so
    the whole tree is evaluated with a single `jax.lax.scan` and the function
    can be jitted.

    Args:
        topology: Segment arena.
        q: Dense joint vector of shape (num_joints,).

    Returns:
        Array of shape (num_segments, 4, 4), indexed like `segment_names`.
    """
    num_segments = topology.num_segments
    slots = jnp.array(topology.joint_slots, dtype=jnp.int32)
    parents = jnp.array(topology.parent_indices, dtype=jnp.int32)

    if topology.num_joints:
        q_seg = jnp.where(slots >= 0, jnp.asarray(q)[jnp.maximum(slots, 0)], 0.0)
    else:
        q_seg = jnp.zeros(num_segments)

    world = jnp.broadcast_to(topology.offsets[0], (num_segments, 4, 4))

    def scan_body(carry, i):
        T_root_to_parent = carry[parents[i]]
        T_local = topology.offsets[i] @ se3.exp(topology.joint_axes[i] * q_seg[i])
        return carry.at[i].set(T_root_to_parent @ T_local), None

    world, _ = jax.lax.scan(scan_body, world, jnp.arange(1, num_segments))
    return world
