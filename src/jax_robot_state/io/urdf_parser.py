"""URDF parser for loading robot descriptions.

This module parses URDF documents with lxml into `RobotDescription` objects:
links with their visual geometry and joints with origin, axis and limits.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import jax.numpy as jnp
import numpy as np
from lxml import etree

from jax_robot_state.core.description import (
    Geometry,
    JointKind,
    JointSpec,
    LinkSpec,
    MeshGeometry,
    PrimitiveGeometry,
    RobotDescription,
)
from jax_robot_state.errors import DescriptionParseError
from jax_robot_state.transforms import se3, so3

logger = logging.getLogger(__name__)

_JOINT_KINDS = {
    "revolute": JointKind.REVOLUTE,
    "continuous": JointKind.REVOLUTE,
    "prismatic": JointKind.PRISMATIC,
    "fixed": JointKind.FIXED,
}


def load_urdf(urdf_path: Union[str, Path]) -> RobotDescription:
    """Load a URDF file and convert it to a RobotDescription.

    Args:
        urdf_path: Path to the URDF file to load.

    Returns:
        RobotDescription: Validated links and joints with the root link set.
    """
    try:
        with open(urdf_path, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise DescriptionParseError(f"Could not read robot description {urdf_path}: {exc}") from exc
    return parse_urdf(data)


def parse_urdf(document: Union[str, bytes]) -> RobotDescription:
    """Parse a URDF document held in memory.

    Raises:
        DescriptionParseError: The XML is malformed or describes an
            inconsistent robot.
    """
    if isinstance(document, str):
        document = document.encode("utf-8")
    try:
        root = etree.fromstring(document)
    except etree.XMLSyntaxError as exc:
        raise DescriptionParseError(f"Failed to parse urdf: {exc}") from exc

    if root.tag != "robot":
        raise DescriptionParseError(f"Expected <robot> root element, got <{root.tag}>")

    links = [_parse_link(elem) for elem in root.findall("link")]
    joints = [_parse_joint(elem) for elem in root.findall("joint")]

    # Find root link (not a child of any joint)
    child_links = {j.child for j in joints}
    root_links = [link.name for link in links if link.name not in child_links]
    if not root_links:
        raise DescriptionParseError("No root link found")
    if len(root_links) > 1:
        logger.warning(
            "Found %d parentless links, using '%s' as root; disconnected: %s",
            len(root_links), root_links[0], ", ".join(root_links[1:]),
        )

    return RobotDescription(
        name=root.get("name", ""),
        links=tuple(links),
        joints=tuple(joints),
        root=root_links[0],
    )


def _require(elem, attr: str) -> str:
    value = elem.get(attr)
    if not value:
        raise DescriptionParseError(f"<{elem.tag}> is missing the '{attr}' attribute")
    return value


def _floats(text: Optional[str], default: str, count: Optional[int] = None) -> Tuple[float, ...]:
    text = default if text is None else text
    try:
        values = tuple(float(x) for x in text.split())
    except ValueError as exc:
        raise DescriptionParseError(f"Invalid number list '{text}'") from exc
    if count is not None and len(values) != count:
        raise DescriptionParseError(f"Expected {count} numbers, got '{text}'")
    return values


def _parse_geometry(geometry_elem) -> Geometry:
    for shape in geometry_elem:
        if not isinstance(shape.tag, str):
            continue
        if shape.tag == "mesh":
            return MeshGeometry(
                filename=_require(shape, "filename"),
                scale=_floats(shape.get("scale"), "1 1 1", 3),
            )
        if shape.tag == "box":
            return PrimitiveGeometry("box", _floats(shape.get("size"), "0 0 0", 3))
        if shape.tag == "cylinder":
            return PrimitiveGeometry(
                "cylinder",
                _floats(shape.get("radius"), "0", 1) + _floats(shape.get("length"), "0", 1),
            )
        if shape.tag == "sphere":
            return PrimitiveGeometry("sphere", _floats(shape.get("radius"), "0", 1))
        raise DescriptionParseError(f"Unknown geometry type <{shape.tag}>")
    return None


def _parse_link(link_elem) -> LinkSpec:
    name = _require(link_elem, "name")
    visual_elem = link_elem.find("visual")
    geometry_elem = visual_elem.find("geometry") if visual_elem is not None else None
    visual = _parse_geometry(geometry_elem) if geometry_elem is not None else None
    return LinkSpec(name=name, visual=visual)


def _parse_joint(joint_elem) -> JointSpec:
    name = _require(joint_elem, "name")
    joint_type = _require(joint_elem, "type")
    kind = _JOINT_KINDS.get(joint_type, JointKind.NONE)

    parent_elem = joint_elem.find("parent")
    child_elem = joint_elem.find("child")
    if parent_elem is None or child_elem is None:
        raise DescriptionParseError(f"Joint '{name}' needs both <parent> and <child>")

    origin_elem = joint_elem.find("origin")
    if origin_elem is not None:
        xyz = jnp.array(_floats(origin_elem.get("xyz"), "0 0 0", 3))
        rpy = jnp.array(_floats(origin_elem.get("rpy"), "0 0 0", 3))
        origin = se3.from_position_and_rotation(xyz, so3.from_rpy(rpy))
    else:
        origin = jnp.eye(4)

    axis_elem = joint_elem.find("axis")
    axis = np.array(_floats(axis_elem.get("xyz") if axis_elem is not None else None, "1 0 0", 3))
    norm = np.linalg.norm(axis)
    if kind.movable:
        if norm < 1e-12:
            raise DescriptionParseError(f"Joint '{name}' has a zero-length axis")
        axis = axis / norm

    limits = None
    limit_elem = joint_elem.find("limit")
    if kind.movable and joint_type != "continuous" and limit_elem is not None:
        limits = (
            _floats(limit_elem.get("lower"), "0", 1)[0],
            _floats(limit_elem.get("upper"), "0", 1)[0],
        )

    return JointSpec(
        name=name,
        kind=kind,
        parent=_require(parent_elem, "link"),
        child=_require(child_elem, "link"),
        origin=origin,
        axis=tuple(float(a) for a in axis),
        limits=limits,
    )
