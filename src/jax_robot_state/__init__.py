"""
JAX Robot State: sensor-frame link poses for articulated robots.

Given a robot description and a stream of sparse joint-state updates, this
library resolves the pose of every mesh-bearing link relative to a sensor
frame, ready for rendering the robot into synthetic sensor images.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from .chain import TreeFkSolver, forward_kinematics_world, solve_chain, solve_tree
from .config import RobotStateConfig, load_config
from .links import LinkSelection, select_links
from .resolver import JointState, StateResolver

__version__ = "0.1.0"
__all__ = [
    "JointState",
    "LinkSelection",
    "RobotStateConfig",
    "StateResolver",
    "TreeFkSolver",
    "core",
    "forward_kinematics_world",
    "io",
    "load_config",
    "select_links",
    "solve_chain",
    "solve_tree",
    "transforms",
]
