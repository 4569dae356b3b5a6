"""Exception hierarchy for robot state resolution.

Construction-time errors are fatal: the resolver cannot run without a
consistent description, topology and chain. Solve and lookup errors are
recoverable and are collected per resolution call instead of propagated.
"""


class RobotStateError(Exception):
    """Base class for all errors raised by jax_robot_state."""


class ConfigError(RobotStateError, ValueError):
    """Invalid configuration value or unknown configuration key."""


class DescriptionParseError(RobotStateError):
    """The robot description document is malformed or inconsistent."""


class UnresolvedJointError(RobotStateError):
    """A movable joint in the topology has no matching description entry."""

    def __init__(self, joint_name: str, reason: str = "not found in the robot description"):
        self.joint_name = joint_name
        super().__init__(f"Joint '{joint_name}' {reason}")


class ChainConstructionError(RobotStateError):
    """No chain connects the kinematic frame to the sensor frame."""


class KinematicSolveError(RobotStateError):
    """Forward kinematics could not produce a transform."""


class UnknownSegmentError(KinematicSolveError, KeyError):
    """A solve targeted a segment that is not part of the topology."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Segment '{name}' not found in topology")

    def __str__(self):
        return self.args[0]


class UnknownJointError(RobotStateError, KeyError):
    """An incoming joint state entry names a joint without an index."""

    def __init__(self, name: str, position: int):
        self.name = name
        self.position = position
        super().__init__(f"i: {position}, No joint index for {name}")

    def __str__(self):
        return self.args[0]
