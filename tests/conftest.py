"""Shared fixtures for the robot state tests."""

from pathlib import Path

import pytest

from jax_robot_state import RobotStateConfig, StateResolver
from jax_robot_state.io import load_urdf, parse_urdf

FIXTURES = Path(__file__).parent / "fixtures"

# root -> J1 (revolute about z) -> link1 -> J2 (fixed) -> link_mesh
SIMPLE_URDF = """<?xml version="1.0"?>
<robot name="simple">
  <link name="root"/>
  <link name="link1"/>
  <link name="link_mesh">
    <visual>
      <geometry>
        <mesh filename="arm.mesh"/>
      </geometry>
    </visual>
  </link>
  <joint name="J1" type="revolute">
    <parent link="root"/>
    <child link="link1"/>
    <origin xyz="0.1 0 0" rpy="0 0 0"/>
    <axis xyz="0 0 1"/>
    <limit lower="-3.14" upper="3.14" effort="1" velocity="1"/>
  </joint>
  <joint name="J2" type="fixed">
    <parent link="link1"/>
    <child link="link_mesh"/>
    <origin xyz="0 0.2 0" rpy="0 0 0"/>
  </joint>
</robot>
"""


@pytest.fixture
def camera_arm_path():
    return FIXTURES / "camera_arm.urdf"


@pytest.fixture
def camera_arm(camera_arm_path):
    return load_urdf(camera_arm_path)


@pytest.fixture
def camera_arm_config(camera_arm_path):
    return RobotStateConfig(
        description_path=str(camera_arm_path),
        description_package_path="/opt/robots",
        camera_frame="camera_link",
        kinematic_frame="base_link",
    )


@pytest.fixture
def camera_arm_resolver(camera_arm_config):
    return StateResolver(camera_arm_config)


@pytest.fixture
def simple_description():
    return parse_urdf(SIMPLE_URDF)


@pytest.fixture
def simple_resolver(simple_description):
    config = RobotStateConfig(
        camera_frame="root",
        kinematic_frame="root",
        mesh_extensions=(".mesh",),
    )
    return StateResolver(config, simple_description)
