"""Tests for the transforms module."""

import hypothesis
import jax
import jax.numpy as jnp
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_robot_state.transforms import se3, so3

# Use hypothesis profile for CI
hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)


def _random_transform(seed):
    key_t, key_w = jax.random.split(jax.random.PRNGKey(seed))
    t = jax.random.normal(key_t, (3,))
    w = jax.random.normal(key_w, (3,))
    return se3.from_position_and_rotation(t, so3.exp(w))


def test_so3_exp_identity():
    """Zero axis-angle gives the exact identity rotation."""
    R = so3.exp(jnp.zeros(3))
    np.testing.assert_array_equal(R, jnp.eye(3))


def test_so3_exp_quarter_turn_about_z():
    """Rodrigues' formula matches the closed-form z rotation."""
    R = so3.exp(jnp.array([0.0, 0.0, jnp.pi / 2]))
    expected = jnp.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
    np.testing.assert_allclose(R, expected, atol=1e-12)


def test_so3_skew_symmetric():
    """Skew matrix reproduces the cross product."""
    a = jnp.array([1.0, 2.0, 3.0])
    b = jnp.array([-0.5, 0.25, 2.0])
    np.testing.assert_allclose(so3.skew_symmetric(a) @ b, jnp.cross(a, b), atol=1e-12)


def test_so3_from_rpy_fixed_axes():
    """Roll is applied first, yaw last."""
    R = so3.from_rpy(jnp.array([jnp.pi / 2, 0.0, jnp.pi / 2]))
    # x axis: roll leaves it, yaw maps it to y
    np.testing.assert_allclose(R @ jnp.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)
    # y axis: roll maps it to z, yaw leaves z
    np.testing.assert_allclose(R @ jnp.array([0.0, 1.0, 0.0]), [0.0, 0.0, 1.0], atol=1e-12)


def test_so3_to_quaternion_identity():
    """Identity rotation converts to the unit quaternion (1, 0, 0, 0)."""
    quat = so3.to_quaternion(jnp.eye(3))
    np.testing.assert_allclose(quat, [1.0, 0.0, 0.0, 0.0], atol=1e-12)


def test_so3_to_quaternion_half_turn():
    """A half turn about x has zero scalar part."""
    R = so3.exp(jnp.array([jnp.pi, 0.0, 0.0]))
    quat = so3.to_quaternion(R)
    np.testing.assert_allclose(jnp.abs(quat), [0.0, 1.0, 0.0, 0.0], atol=1e-7)


def test_se3_exp_pure_rotation():
    """A revolute twist rotates without translating."""
    T = se3.exp(jnp.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.3]))
    np.testing.assert_allclose(se3.get_position(T), jnp.zeros(3), atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), so3.exp(jnp.array([0.0, 0.0, 0.3])), atol=1e-12)


def test_se3_exp_pure_translation():
    """A prismatic twist translates along its axis."""
    T = se3.exp(jnp.array([0.0, 0.5, 0.0, 0.0, 0.0, 0.0]))
    np.testing.assert_allclose(se3.get_position(T), [0.0, 0.5, 0.0], atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), jnp.eye(3), atol=1e-12)


def test_se3_exp_zero_is_exact_identity():
    """A joint at rest contributes an exact identity."""
    np.testing.assert_array_equal(se3.exp(jnp.zeros(6)), jnp.eye(4))


def test_se3_multiply_and_apply():
    """Composition applies the right-hand transform first."""
    t1 = se3.from_position_and_rotation(jnp.array([1.0, 0.0, 0.0]), jnp.eye(3))
    t2 = se3.from_position_and_rotation(
        jnp.array([0.0, 1.0, 0.0]), so3.exp(jnp.array([0.0, 0.0, jnp.pi / 2]))
    )
    point = jnp.array([1.0, 0.0, 0.0])
    transformed = se3.apply(se3.multiply(t1, t2), point)
    np.testing.assert_allclose(transformed, [1.0, 2.0, 0.0], atol=1e-12)


def test_se3_apply_multiple_points():
    T = se3.from_position_and_rotation(jnp.array([0.0, 0.0, 1.0]), jnp.eye(3))
    points = jnp.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    np.testing.assert_allclose(se3.apply(T, points), [[0.0, 0.0, 1.0], [1.0, 2.0, 4.0]])


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None)
def test_transform_inverse_property(seed):
    """T^-1 @ T is the identity for random rigid transforms."""
    T = _random_transform(seed)
    np.testing.assert_allclose(se3.multiply(se3.inverse(T), T), jnp.eye(4), atol=1e-10)
    np.testing.assert_allclose(se3.multiply(T, se3.inverse(T)), jnp.eye(4), atol=1e-10)
