"""Stable joint-name to dense-index mapping."""

from typing import Dict, Iterator, NamedTuple, Optional, Tuple

import jax
import jax.numpy as jnp

from ..errors import UnresolvedJointError
from .description import RobotDescription
from .topology import Topology

Array = jax.Array


class JointLimits(NamedTuple):
    """Per-index joint limits. Unlimited joints hold -inf/inf."""
    lower: Array
    upper: Array


class JointIndex:
    """Bijection between movable joint names and indices in [0, N).

    Built once from a topology and never mutated afterwards, so a single
    instance can be shared read-only between resolvers.
    """

    __slots__ = ("_names", "_lookup")

    def __init__(self, names: Tuple[str, ...]):
        lookup: Dict[str, int] = {}
        for i, name in enumerate(names):
            if name in lookup:
                raise UnresolvedJointError(name, "appears more than once in the topology")
            lookup[name] = i
        self._names = tuple(names)
        self._lookup = lookup

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __contains__(self, name: str) -> bool:
        return name in self._lookup

    def __repr__(self) -> str:
        return f"JointIndex({self._names!r})"

    def get(self, name: str) -> Optional[int]:
        return self._lookup.get(name)

    def index_of(self, name: str) -> int:
        return self._lookup[name]

    def name_of(self, index: int) -> str:
        return self._names[index]


def build_joint_index(
    topology: Topology, description: RobotDescription
) -> Tuple[JointIndex, JointLimits]:
    """Index every movable joint of `topology` and record its limits.

    Each movable joint is looked up by name in the description document.
    Fixed and NONE joints contribute no index.

    Raises:
        UnresolvedJointError: a movable topology joint has no description
            entry, or the description disagrees on its kind.
    """
    names = [None] * topology.num_joints
    lower = [-jnp.inf] * topology.num_joints
    upper = [jnp.inf] * topology.num_joints

    for slot, joint in topology.movable_joints():
        spec = description.joint(joint.name)
        if spec is None:
            raise UnresolvedJointError(joint.name)
        if spec.kind is not joint.kind:
            raise UnresolvedJointError(
                joint.name,
                f"is {joint.kind.value} in the topology but {spec.kind.value} in the description",
            )
        names[slot] = joint.name
        if spec.limits is not None:
            lower[slot], upper[slot] = spec.limits

    index = JointIndex(tuple(names))
    return index, JointLimits(jnp.array(lower, dtype=jnp.float64), jnp.array(upper, dtype=jnp.float64))
