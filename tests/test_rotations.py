import numpy as np
import pytest

from rigid_body_kernel.core.physics import (
    apply_inverse_inertia,
    euler_to_matrix,
    integrate_quaternion_body,
    is_proper_rotation,
    matrix_to_euler,
    matrix_to_quaternion,
    principal_axes,
    quat_conjugate,
    quat_multiply,
    quat_to_matrix,
    rotation_error,
)


@pytest.mark.parametrize(
    "q",
    [
        [1.0, 0.0, 0.0, 0.0],
        [np.cos(0.4), 0.0, 0.0, np.sin(0.4)],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
        [0.1, -0.7, 0.5, 0.3],
    ],
)
def test_quaternion_matrix_roundtrip(q: list[float]) -> None:
    matrix = quat_to_matrix(np.array(q))
    recovered = matrix_to_quaternion(matrix)
    assert recovered[0] >= 0.0
    assert np.isclose(np.linalg.norm(recovered), 1.0)
    np.testing.assert_allclose(quat_to_matrix(recovered), matrix, atol=1e-12)
    assert is_proper_rotation(matrix, 1e-12)


def test_quaternion_product_composes_rotations() -> None:
    q1 = matrix_to_quaternion(euler_to_matrix(0.3, 0.9, -0.4))
    q2 = matrix_to_quaternion(euler_to_matrix(1.2, 0.2, 0.7))
    np.testing.assert_allclose(
        quat_to_matrix(quat_multiply(q1, q2)),
        quat_to_matrix(q1) @ quat_to_matrix(q2),
        atol=1e-12,
    )
    identity = quat_multiply(q1, quat_conjugate(q1))
    np.testing.assert_allclose(identity, [1.0, 0.0, 0.0, 0.0], atol=1e-12)


def test_euler_roundtrip() -> None:
    angles = np.array([0.3, 1.1, 2.0])
    matrix = euler_to_matrix(*angles)
    assert is_proper_rotation(matrix, 1e-12)
    np.testing.assert_allclose(matrix_to_euler(matrix), angles, atol=1e-12)


def test_euler_degenerate_theta() -> None:
    matrix = euler_to_matrix(0.4, 0.0, 0.0)
    np.testing.assert_allclose(matrix_to_euler(matrix), [0.4, 0.0, 0.0], atol=1e-12)
    flipped = euler_to_matrix(0.4, np.pi, 0.0)
    np.testing.assert_allclose(euler_to_matrix(*matrix_to_euler(flipped)), flipped, atol=1e-9)


def test_rotation_error_flags_bad_matrices() -> None:
    assert rotation_error(np.eye(3)) == 0.0
    assert rotation_error(np.diag([1.0, 1.0, -1.0])) == pytest.approx(2.0)
    assert rotation_error(2.0 * np.eye(3)) > 1.0
    assert rotation_error(np.full((3, 3), np.nan)) == float("inf")
    assert rotation_error(np.eye(2)) == float("inf")


def test_integrate_quaternion_body_quarter_turn() -> None:
    q = integrate_quaternion_body(np.array([1.0, 0.0, 0.0, 0.0]), np.array([0.0, 0.0, np.pi / 2.0]), 1.0)
    np.testing.assert_allclose(quat_to_matrix(q) @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)


def test_principal_axes_are_proper() -> None:
    inertia = np.array([[2.0, 0.3, 0.0], [0.3, 1.0, 0.1], [0.0, 0.1, 3.0]])
    moments, frame = principal_axes(inertia)
    assert np.all(np.diff(moments) >= 0.0)
    assert np.linalg.det(frame) == pytest.approx(1.0)
    np.testing.assert_allclose(frame @ np.diag(moments) @ frame.T, inertia, atol=1e-12)


def test_inverse_inertia_ignores_vanishing_axes() -> None:
    inertia = np.diag([0.0, 2.0, 4.0])
    omega = apply_inverse_inertia(inertia, np.array([5.0, 2.0, 2.0]), 1e-6)
    np.testing.assert_allclose(omega, [0.0, 1.0, 0.5], atol=1e-12)
    np.testing.assert_allclose(apply_inverse_inertia(np.zeros((3, 3)), np.ones(3), 1e-6), np.zeros(3))
