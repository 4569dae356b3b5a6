"""Resolver configuration.

Frame names and description locations are passed in explicitly through
`RobotStateConfig` rather than looked up from a global parameter source.
"""

import dataclasses
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

from .errors import ConfigError
from .links import DEFAULT_MESH_EXTENSIONS


@dataclass(frozen=True)
class RobotStateConfig:
    """Settings consumed by `StateResolver`.

    Attributes:
        description_path: URDF file to load when no description is handed in.
        description_package_path: Directory that `package://` mesh URIs are
            resolved against.
        camera_frame: Name of the sensor frame segment.
        kinematic_frame: Name of the segment the sensor chain starts from.
        mesh_extensions: Mesh file suffixes that mark a link as renderable.
    """
    description_path: Optional[str] = None
    description_package_path: str = ".."
    camera_frame: str = "XTION"
    kinematic_frame: str = "BASE"
    mesh_extensions: Tuple[str, ...] = DEFAULT_MESH_EXTENSIONS

    def __post_init__(self):
        if not self.camera_frame:
            raise ConfigError("camera_frame must be a non-empty string")
        if not self.kinematic_frame:
            raise ConfigError("kinematic_frame must be a non-empty string")
        if isinstance(self.mesh_extensions, str):
            raise ConfigError(
                f"mesh_extensions must be a list of suffixes, got the string {self.mesh_extensions!r}"
            )
        # JSON hands lists over; store a tuple so the config stays hashable
        object.__setattr__(
            self, "mesh_extensions", tuple(ext.lower() for ext in self.mesh_extensions)
        )

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "RobotStateConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**dict(values))


def load_config(path: Union[str, Path]) -> RobotStateConfig:
    """Load a `RobotStateConfig` from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return RobotStateConfig.from_dict(data)
