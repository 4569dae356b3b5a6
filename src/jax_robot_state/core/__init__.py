"""Core data structures: robot description, segment arena and joint index.

Everything here is built once after the description is ingested and is
read-only afterwards.
"""

from .description import (
    Geometry,
    JointKind,
    JointSpec,
    LinkSpec,
    MeshGeometry,
    PrimitiveGeometry,
    RobotDescription,
)
from .joint_index import JointIndex, JointLimits, build_joint_index
from .topology import ROOT_PARENT, Chain, Joint, Segment, Topology, build_topology

__all__ = [
    "Chain",
    "Geometry",
    "Joint",
    "JointIndex",
    "JointKind",
    "JointLimits",
    "JointSpec",
    "LinkSpec",
    "MeshGeometry",
    "PrimitiveGeometry",
    "ROOT_PARENT",
    "RobotDescription",
    "Segment",
    "Topology",
    "build_joint_index",
    "build_topology",
]
