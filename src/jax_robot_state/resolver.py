"""Resolution of link poses in the sensor frame from joint state updates.

`StateResolver` owns one joint-state stream: it keeps the dense joint vector
and the frame map between calls. The description, topology, joint index,
chain and link set it builds at construction are immutable and may be
shared with other resolvers.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import jax
import jax.numpy as jnp

from .chain import TreeFkSolver, check_finite, forward_kinematics_world, solve_chain
from .config import RobotStateConfig
from .core import RobotDescription, build_joint_index, build_topology
from .errors import (
    ConfigError,
    KinematicSolveError,
    RobotStateError,
    UnknownJointError,
    UnresolvedJointError,
)
from .io import load_urdf
from .links import resolve_mesh_path, select_links
from .transforms import se3, so3

Array = jax.Array

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JointState:
    """Sparse joint update: `position[i]` is the value of joint `name[i]`."""
    name: Sequence[str]
    position: Sequence[float]

    def __post_init__(self):
        if len(self.name) != len(self.position):
            raise ValueError(
                f"JointState has {len(self.name)} names but {len(self.position)} positions"
            )

    def __iter__(self):
        return iter(zip(self.name, self.position))


JointUpdate = Union[JointState, Mapping[str, float], Iterable[Tuple[str, float]]]


def _as_pairs(update: JointUpdate) -> List[Tuple[str, float]]:
    if isinstance(update, Mapping):
        return list(update.items())
    return [(name, value) for name, value in update]


class StateResolver:
    """Resolves tracked link poses relative to the sensor frame.

    Args:
        config: Frame names and description location.
        description: Already parsed description. When omitted it is loaded
            from `config.description_path`.

    Raises:
        DescriptionParseError: The description cannot be loaded or parsed.
        UnresolvedJointError: The topology and description disagree.
        ConfigError: Neither a description nor a description path is given.
        ChainConstructionError: No chain from the kinematic frame to the
            camera frame exists.
    """

    def __init__(self, config: RobotStateConfig, description: Optional[RobotDescription] = None):
        self.config = config
        if description is None:
            if config.description_path is None:
                raise ConfigError(
                    "No robot description given and config.description_path is unset"
                )
            description = load_urdf(config.description_path)
        self.description = description

        self.topology = build_topology(description)
        self.joint_index, self.limits = build_joint_index(self.topology, description)

        base, tip = config.kinematic_frame, config.camera_frame
        self.chain = self.topology.chain(base, tip)
        logger.info("Successfully created chain from %s to %s", base, tip)

        chain_slots = []
        for name in self.chain.joint_names:
            slot = self.joint_index.get(name)
            if slot is None:
                raise UnresolvedJointError(name, "is in the sensor chain but has no joint index")
            chain_slots.append(slot)
        self._chain_slots = jnp.array(chain_slots, dtype=jnp.int32)

        self.link_set, self.mesh_paths = select_links(
            description, self.topology.root, config.mesh_extensions
        )
        logger.info("Tracking %d mesh links: %s", len(self.link_set), ", ".join(self.link_set))

        self._tree_solver = TreeFkSolver(self.topology)
        self._world = jax.jit(functools.partial(forward_kinematics_world, self.topology))
        self._q = jnp.zeros(len(self.joint_index))
        self._camera = se3.identity()
        self.frame_map: Dict[str, Array] = {}
        self.errors: List[RobotStateError] = []

    @property
    def num_joints(self) -> int:
        return len(self.joint_index)

    @property
    def state(self) -> Array:
        """Copy of the dense joint vector."""
        return jnp.array(self._q)

    @property
    def camera_transform(self) -> Array:
        """Root-to-sensor transform from the last resolution."""
        return self._camera

    def get_joint_index(self, name: str) -> int:
        """Dense index of joint `name`, or -1 when it has none."""
        index = self.joint_index.get(name)
        return -1 if index is None else index

    def part_mesh_paths(self) -> List[str]:
        """Mesh files of the tracked links, index-aligned with `link_set`."""
        return [
            resolve_mesh_path(path, self.config.description_package_path)
            for path in self.mesh_paths
        ]

    def update_joints(self, update: JointUpdate) -> List[UnknownJointError]:
        """Merge a sparse update into the dense joint vector.

        Entries naming unknown joints are logged and skipped; every other
        entry still applies and joints absent from the update keep their
        previous value.

        Returns:
            One error per skipped entry.
        """
        failures = []
        for position, (name, value) in enumerate(_as_pairs(update)):
            index = self.joint_index.get(name)
            if index is None:
                error = UnknownJointError(name, position)
                logger.error("%s", error)
                failures.append(error)
                continue
            self._q = self._q.at[index].set(value)
        return failures

    def resolve(self, update: JointUpdate) -> Dict[str, Array]:
        """Merge `update` and recompute every tracked link's sensor-frame pose.

        Returns the frame map (link key -> 4x4 transform). Recoverable
        failures are logged and collected in `self.errors`; a link whose
        solve fails keeps its previous entry.
        """
        self.errors = list(self.update_joints(update))

        try:
            root_to_sensor = self._solve_camera()
        except KinematicSolveError as exc:
            logger.error("Could not get transform from %s to %s: %s",
                         self.chain.base, self.chain.tip, exc)
            self.errors.append(exc)
            return self.frame_map
        self._camera = root_to_sensor
        sensor_from_root = se3.inverse(root_to_sensor)

        world = self._world(self._q)
        for key in dict.fromkeys(self.link_set):
            try:
                root_to_link = check_finite(world[self.topology.index_of(key)], key)
            except KinematicSolveError as exc:
                logger.error("Tree solve failed for link %s: %s", key, exc)
                self.errors.append(exc)
                continue
            self.frame_map[key] = se3.multiply(sensor_from_root, root_to_link)

        return self.frame_map

    def _solve_camera(self) -> Array:
        if self.chain.base == self.topology.root:
            root_to_base = se3.identity()
        else:
            root_to_base = self._tree_solver.solve(self._q, self.chain.base)
        base_to_sensor = solve_chain(self.chain, self._q[self._chain_slots])
        return se3.multiply(root_to_base, base_to_sensor)

    def transforms(self) -> List[Tuple[str, Optional[Array]]]:
        """(link key, transform) pairs index-aligned with `mesh_paths`.

        A key that has never resolved successfully pairs with None.
        """
        return [(key, self.frame_map.get(key)) for key in self.link_set]

    def link_position(self, index: int) -> Array:
        """Position of tracked link `index` in the sensor frame."""
        return se3.get_position(self.frame_map[self.link_set[index]])

    def link_orientation(self, index: int) -> Array:
        """Orientation of tracked link `index` as a (w, x, y, z) quaternion."""
        return so3.to_quaternion(se3.get_rotation(self.frame_map[self.link_set[index]]))
