from .com import (
    angular_momentum_about_com,
    center_of_mass,
    center_of_velocity,
    invariant_position_sum,
    mass_weighted_offset_sum,
    total_mass,
)
from .frames import FrameChoice, from_frame, to_frame
from .inertia import apply_inverse_inertia, point_mass_inertia, principal_axes, vanishing_axes
from .rotations import (
    IDENTITY_QUATERNION,
    euler_to_matrix,
    integrate_quaternion_body,
    is_proper_rotation,
    matrix_to_euler,
    matrix_to_quaternion,
    normalize_quaternion,
    quat_conjugate,
    quat_multiply,
    quat_to_matrix,
    rotation_error,
)

__all__ = [
    "angular_momentum_about_com",
    "apply_inverse_inertia",
    "center_of_mass",
    "center_of_velocity",
    "euler_to_matrix",
    "FrameChoice",
    "from_frame",
    "IDENTITY_QUATERNION",
    "integrate_quaternion_body",
    "invariant_position_sum",
    "is_proper_rotation",
    "mass_weighted_offset_sum",
    "matrix_to_euler",
    "matrix_to_quaternion",
    "normalize_quaternion",
    "point_mass_inertia",
    "principal_axes",
    "quat_conjugate",
    "quat_multiply",
    "quat_to_matrix",
    "rotation_error",
    "to_frame",
    "total_mass",
    "vanishing_axes",
]
