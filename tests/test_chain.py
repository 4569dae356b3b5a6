"""Tests for chain and tree forward kinematics."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from jax_robot_state.chain import TreeFkSolver, forward_kinematics_world, solve_chain, solve_tree
from jax_robot_state.core import Chain, build_topology
from jax_robot_state.errors import KinematicSolveError, UnknownSegmentError
from jax_robot_state.transforms import se3, so3

Q = jnp.array([0.3, -0.4, 0.2, 0.7, 0.05])  # head_pan, shoulder_pan, head_tilt, elbow, wrist_slide


def _offsets_product(topology, name):
    T = np.eye(4)
    for i in topology.path_to(name):
        T = T @ np.asarray(topology.offsets[i])
    return T


def test_tree_at_rest_is_product_of_offsets(camera_arm):
    """With all joints at zero only the fixed offsets remain."""
    topology = build_topology(camera_arm)
    q = jnp.zeros(topology.num_joints)
    for name in topology.segment_names:
        np.testing.assert_allclose(solve_tree(topology, q, name), _offsets_product(topology, name),
                                   rtol=0, atol=1e-12)


def test_tree_known_configuration(camera_arm):
    """Hand-composed pose of the tool for a non-zero configuration."""
    topology = build_topology(camera_arm)
    T = solve_tree(topology, Q, "tool")

    def trans(x, y, z):
        return se3.from_position_and_rotation(jnp.array([x, y, z]), jnp.eye(3))

    def rot(axis, angle):
        return se3.from_position_and_rotation(jnp.zeros(3), so3.exp(jnp.array(axis) * angle))

    expected = (trans(0, 0, 0.5)                        # torso_joint
                @ trans(0, 0.2, 0.3) @ rot([0, 0, 1.0], -0.4)  # shoulder_pan
                @ trans(0.4, 0, 0) @ rot([0, 1.0, 0], 0.7)     # elbow
                @ trans(0.3, 0, 0) @ trans(0.05, 0, 0))        # wrist_slide
    np.testing.assert_allclose(T, expected, atol=1e-12)


def test_tree_unknown_target(camera_arm):
    topology = build_topology(camera_arm)
    with pytest.raises(UnknownSegmentError):
        solve_tree(topology, Q, "fixture_table")


def test_tree_wrong_state_length(camera_arm):
    topology = build_topology(camera_arm)
    with pytest.raises(KinematicSolveError, match="needs 5 joint values"):
        solve_tree(topology, jnp.zeros(3), "tool")


def test_tree_non_finite_state(camera_arm):
    topology = build_topology(camera_arm)
    q = Q.at[1].set(jnp.nan)
    with pytest.raises(KinematicSolveError, match="not finite"):
        solve_tree(topology, q, "forearm")
    # links off the affected path still solve
    solve_tree(topology, q, "camera_link")


def test_tree_cache_matches_fresh_walks(camera_arm):
    """Memoized prefixes give the same transforms as independent walks."""
    topology = build_topology(camera_arm)
    solver = TreeFkSolver(topology)
    cache = {}
    for name in ("tool_tip", "forearm", "camera_link", "head", "tool"):
        np.testing.assert_allclose(solver.solve(Q, name, cache), solver.solve(Q, name), atol=1e-15)
    assert topology.index_of("upper_arm") in cache


def test_chain_matches_tree_from_root(camera_arm):
    """A chain from the root reproduces the tree solve of its tip."""
    topology = build_topology(camera_arm)
    chain = topology.chain("base_link", "camera_link")
    assert chain.joint_names == ("head_pan", "head_tilt")
    q_chain = jnp.array([Q[0], Q[2]])
    np.testing.assert_allclose(solve_chain(chain, q_chain), solve_tree(topology, Q, "camera_link"),
                               atol=1e-12)


def test_chain_from_inner_base(camera_arm):
    """root->base composed with base->tip equals root->tip."""
    topology = build_topology(camera_arm)
    chain = topology.chain("torso", "camera_link")
    base = solve_tree(topology, Q, "torso")
    tip = solve_chain(chain, jnp.array([Q[0], Q[2]]))
    np.testing.assert_allclose(base @ tip, solve_tree(topology, Q, "camera_link"), atol=1e-12)


def test_empty_chain_is_identity(camera_arm):
    topology = build_topology(camera_arm)
    chain = topology.chain("base_link", "base_link")
    np.testing.assert_array_equal(solve_chain(chain, jnp.zeros(0)), jnp.eye(4))


def test_degenerate_chain():
    with pytest.raises(KinematicSolveError, match="no segments"):
        solve_chain(Chain(base="a", tip="b"), jnp.zeros(0))


def test_chain_missing_joint_values(camera_arm):
    topology = build_topology(camera_arm)
    chain = topology.chain("base_link", "camera_link")
    with pytest.raises(KinematicSolveError, match="needs 2 joint values, got 1"):
        solve_chain(chain, jnp.array([0.1]))


def test_forward_kinematics_world_matches_tree(camera_arm):
    """The single-scan evaluation agrees with per-segment walks."""
    topology = build_topology(camera_arm)
    world = forward_kinematics_world(topology, Q)
    assert world.shape == (topology.num_segments, 4, 4)
    for i, name in enumerate(topology.segment_names):
        np.testing.assert_allclose(world[i], solve_tree(topology, Q, name), atol=1e-12)


def test_forward_kinematics_world_jit(camera_arm):
    topology = build_topology(camera_arm)
    world = jax.jit(lambda q: forward_kinematics_world(topology, q))(Q)
    np.testing.assert_allclose(world, forward_kinematics_world(topology, Q), atol=1e-12)
