"""Robot description data structures.

A `RobotDescription` is the parsed form of the robot description document:
every link with its visual geometry, every joint with its kind, origin, axis
and limits. It keeps all links, including auxiliary fixtures that are not
connected to the root, so link selection can decide what is renderable.
"""

import enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

import jax
import jax.numpy as jnp

from ..errors import DescriptionParseError

Array = jax.Array


class JointKind(enum.Enum):
    """Kinds of joint connecting a segment to its parent."""
    NONE = "none"
    FIXED = "fixed"
    REVOLUTE = "revolute"
    PRISMATIC = "prismatic"

    @property
    def movable(self) -> bool:
        return self in (JointKind.REVOLUTE, JointKind.PRISMATIC)


@dataclass(frozen=True)
class MeshGeometry:
    """Visual geometry backed by an external mesh resource."""
    filename: str
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class PrimitiveGeometry:
    """Box, cylinder or sphere visual with its defining dimensions."""
    shape: str
    dimensions: Tuple[float, ...] = ()


Geometry = Union[MeshGeometry, PrimitiveGeometry, None]


@dataclass(frozen=True)
class LinkSpec:
    name: str
    visual: Geometry = None


@dataclass(frozen=True, eq=False)
class JointSpec:
    """A joint entry of the description document.

    Attributes:
        name: Joint name, unique within the description.
        kind: Joint kind; continuous joints are revolute without limits.
        parent: Name of the parent link.
        child: Name of the child link.
        origin: (4, 4) fixed transform from the parent link to the joint frame.
        axis: Unit axis of motion expressed in the joint frame.
        limits: (lower, upper) for limited revolute and prismatic joints.
    """
    name: str
    kind: JointKind
    parent: str
    child: str
    origin: Array = field(default_factory=lambda: jnp.eye(4))
    axis: Tuple[float, float, float] = (1.0, 0.0, 0.0)
    limits: Optional[Tuple[float, float]] = None


@dataclass(frozen=True, eq=False)
class RobotDescription:
    """Validated set of links and joints with a designated root link."""
    name: str
    links: Tuple[LinkSpec, ...]
    joints: Tuple[JointSpec, ...]
    root: str
    _links: Dict[str, LinkSpec] = field(init=False, repr=False)
    _joints: Dict[str, JointSpec] = field(init=False, repr=False)
    _joint_by_child: Dict[str, JointSpec] = field(init=False, repr=False)

    def __post_init__(self):
        links: Dict[str, LinkSpec] = {}
        for link in self.links:
            if link.name in links:
                raise DescriptionParseError(f"Duplicate link '{link.name}'")
            links[link.name] = link

        joints: Dict[str, JointSpec] = {}
        joint_by_child: Dict[str, JointSpec] = {}
        for joint in self.joints:
            if joint.name in joints:
                raise DescriptionParseError(f"Duplicate joint '{joint.name}'")
            for end in (joint.parent, joint.child):
                if end not in links:
                    raise DescriptionParseError(
                        f"Joint '{joint.name}' references unknown link '{end}'"
                    )
            if joint.child in joint_by_child:
                raise DescriptionParseError(
                    f"Link '{joint.child}' is the child of both "
                    f"'{joint_by_child[joint.child].name}' and '{joint.name}'"
                )
            joints[joint.name] = joint
            joint_by_child[joint.child] = joint

        if self.root not in links:
            raise DescriptionParseError(f"Root link '{self.root}' not found")
        if self.root in joint_by_child:
            raise DescriptionParseError(f"Root link '{self.root}' has a parent joint")

        object.__setattr__(self, "_links", links)
        object.__setattr__(self, "_joints", joints)
        object.__setattr__(self, "_joint_by_child", joint_by_child)

        for link in self.links:
            self._check_acyclic(link.name)

    def _check_acyclic(self, name: str) -> None:
        seen = set()
        current: Optional[str] = name
        while current is not None:
            if current in seen:
                raise DescriptionParseError(f"Parent cycle through link '{current}'")
            seen.add(current)
            current = self.parent_of(current)

    def link(self, name: str) -> Optional[LinkSpec]:
        return self._links.get(name)

    def joint(self, name: str) -> Optional[JointSpec]:
        return self._joints.get(name)

    def joint_to(self, link_name: str) -> Optional[JointSpec]:
        """Joint whose child is `link_name`, or None for parentless links."""
        return self._joint_by_child.get(link_name)

    def parent_of(self, link_name: str) -> Optional[str]:
        joint = self._joint_by_child.get(link_name)
        return joint.parent if joint is not None else None

    def children_of(self, link_name: str) -> Tuple[str, ...]:
        return tuple(j.child for j in self.joints if j.parent == link_name)
