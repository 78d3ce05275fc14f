from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence

import numpy as np

from ..errors import InvariantViolationError, RigidBodySetupError
from ..physics.com import angular_momentum_about_com, center_of_velocity, mass_weighted_offset_sum
from ..physics.frames import FrameChoice, from_frame, to_frame
from ..physics.inertia import apply_inverse_inertia, point_mass_inertia, principal_axes, vanishing_axes
from ..physics.rotations import matrix_to_euler, matrix_to_quaternion, rotation_error
from ..settings import DEFAULT_SETTINGS, KernelSettings
from .particles import Capability, Particle, ParticleArena, Vector

_LOG = logging.getLogger(__name__)

MemberKey = int | Particle


def _readonly(values: object, shape: tuple[int, ...]) -> np.ndarray:
    arr = np.array(values, dtype=float).reshape(shape)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class ReferenceGeometry:
    """Body-frame layout of a rigid body's members, fixed at finalization.

    ``offsets[i]`` is member ``i`` relative to the center of mass and
    ``orientations[i]`` its orientation relative to the body frame (``None``
    for members without orientation). ``unit_frame`` holds the principal axes
    the body frame was aligned with, or the identity when the tensor is kept
    as computed.
    """

    offsets: np.ndarray
    orientations: tuple[np.ndarray | None, ...]
    masses: np.ndarray
    inertia: np.ndarray
    unit_frame: np.ndarray
    principal_moments: np.ndarray
    linear_axes: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        count = int(np.asarray(self.offsets).size // 3)
        object.__setattr__(self, "offsets", _readonly(self.offsets, (count, 3)))
        object.__setattr__(self, "masses", _readonly(self.masses, (-1,)))
        object.__setattr__(
            self,
            "orientations",
            tuple(None if orient is None else _readonly(orient, (3, 3)) for orient in self.orientations),
        )
        object.__setattr__(self, "inertia", _readonly(self.inertia, (3, 3)))
        object.__setattr__(self, "unit_frame", _readonly(self.unit_frame, (3, 3)))
        object.__setattr__(self, "principal_moments", _readonly(self.principal_moments, (3,)))
        if self.masses.shape[0] != count or len(self.orientations) != count:
            raise ValueError("Reference geometry arrays must be aligned")

    def __len__(self) -> int:
        return int(self.offsets.shape[0])

    @property
    def is_linear(self) -> bool:
        return len(self.linear_axes) == 1

    @property
    def linear_axis(self) -> int | None:
        return self.linear_axes[0] if self.is_linear else None

    def offset_sum(self) -> Vector:
        return mass_weighted_offset_sum(self.offsets, self.masses)


def build_reference_geometry(
    body_id: str,
    positions: np.ndarray,
    masses: np.ndarray,
    orientations: Sequence[np.ndarray | None],
    inertias: Sequence[np.ndarray | None],
    rotation: np.ndarray,
    settings: KernelSettings = DEFAULT_SETTINGS,
) -> tuple[ReferenceGeometry, np.ndarray, Vector]:
    """Compute reference geometry from an initial lab-frame placement.

    Returns the geometry, the body rotation matching it and the lab-frame
    center of mass. ``rotation`` is the body's initial orientation; with
    principal axes enabled the returned rotation is ``rotation @ U``.
    """
    pos = np.asarray(positions, dtype=float).reshape(-1, 3)
    m = np.asarray(masses, dtype=float).reshape(-1)
    count = pos.shape[0]
    if count == 0:
        raise RigidBodySetupError(body_id, "rigid body has no members")
    if m.shape[0] != count or len(orientations) != count or len(inertias) != count:
        raise RigidBodySetupError(
            body_id,
            f"member count {count} does not match geometry counts "
            f"(masses={m.shape[0]}, orientations={len(orientations)}, inertias={len(inertias)})",
        )
    if not np.all(np.isfinite(pos)):
        raise RigidBodySetupError(body_id, "initial member placement is not finite")
    total = float(np.sum(m))
    if total <= 0.0:
        raise RigidBodySetupError(body_id, "total mass must be positive")

    com = np.sum(pos * m[:, None], axis=0) / total
    if count > 1 and float(np.max(np.linalg.norm(pos - com, axis=1))) <= settings.coincidence_tolerance:
        raise RigidBodySetupError(body_id, f"all {count} members are coincident; inertia tensor is ill-posed")

    offsets = to_frame(pos, FrameChoice.BODY, rotation, origin=com)
    ref_orients = [None if orient is None else rotation.T @ orient for orient in orientations]
    inertia = point_mass_inertia(offsets, m)
    for orient, own in zip(ref_orients, inertias):
        if orient is not None and own is not None:
            inertia = inertia + orient @ own @ orient.T

    moments, axes = principal_axes(inertia)
    if settings.use_principal_axes:
        offsets = offsets @ axes
        ref_orients = [None if orient is None else axes.T @ orient for orient in ref_orients]
        inertia = np.diag(moments)
        unit_frame = axes
        body_rotation = rotation @ axes
    else:
        unit_frame = np.eye(3, dtype=float)
        body_rotation = np.array(rotation, dtype=float)

    geometry = ReferenceGeometry(
        offsets=offsets,
        orientations=tuple(ref_orients),
        masses=m,
        inertia=inertia,
        unit_frame=unit_frame,
        principal_moments=moments,
        linear_axes=vanishing_axes(moments, settings.linear_axis_epsilon),
    )
    return geometry, body_rotation, com


@dataclass(eq=False)
class RigidBody:
    """Particles moving as one rigid unit.

    Members are attached with :meth:`add_member` and frozen into a reference
    geometry by a single :meth:`calc_ref_coords` call. Afterwards each step
    runs :meth:`calc_forces_and_torques` before the integrator and
    :meth:`update_atoms` after it. ``rotation`` maps body-frame vectors to
    the lab frame and ``angular_momentum`` is expressed in the body frame.
    """

    body_id: str
    arena: ParticleArena = field(repr=False)
    settings: KernelSettings = DEFAULT_SETTINGS
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3, dtype=float))
    members: List[int] = field(default_factory=list, init=False)
    previous_rotation: np.ndarray = field(default_factory=lambda: np.eye(3, dtype=float), init=False)
    position: Vector = field(default_factory=lambda: np.zeros(3, dtype=float), init=False)
    velocity: Vector = field(default_factory=lambda: np.zeros(3, dtype=float), init=False)
    angular_momentum: Vector = field(default_factory=lambda: np.zeros(3, dtype=float), init=False)
    force: Vector = field(default_factory=lambda: np.zeros(3, dtype=float), init=False)
    torque: Vector = field(default_factory=lambda: np.zeros(3, dtype=float), init=False)
    _geometry: ReferenceGeometry | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.rotation = self._checked_rotation(self.rotation)
        self.previous_rotation = self.rotation.copy()

    # -- capability -----------------------------------------------------

    @property
    def object_id(self) -> str:
        return self.body_id

    @property
    def capability(self) -> Capability:
        return Capability.TRANSLATIONAL_AND_ROTATIONAL

    @property
    def is_directional(self) -> bool:
        return True

    @property
    def mass(self) -> float:
        return float(sum(atom.mass for atom in self.iter_atoms()))

    @property
    def orientation(self) -> Vector:
        return matrix_to_quaternion(self.rotation)

    def rotation_matrix(self) -> np.ndarray:
        return self.rotation.copy()

    def set_rotation_matrix(self, rotation: np.ndarray) -> None:
        self.set_rotation(rotation)

    def inertia_tensor(self) -> np.ndarray:
        return self.get_i()

    # -- setup ----------------------------------------------------------

    @property
    def is_finalized(self) -> bool:
        return self._geometry is not None

    @property
    def reference_geometry(self) -> ReferenceGeometry:
        if self._geometry is None:
            raise RigidBodySetupError(self.body_id, "reference geometry has not been computed; call calc_ref_coords()")
        return self._geometry

    def add_member(self, member: MemberKey) -> int:
        """Attach a particle (or an arena index) and return its arena index."""
        if self.is_finalized:
            raise RigidBodySetupError(self.body_id, "cannot attach members after calc_ref_coords()")
        if isinstance(member, Particle):
            index = self.arena.index_of(member)
            if index is None:
                index = self.arena.add(member)
        else:
            index = int(member)
            if not 0 <= index < len(self.arena):
                raise RigidBodySetupError(self.body_id, f"arena index {index} is out of range")
        owner = self.arena.owner_of(index)
        if owner is not None:
            raise RigidBodySetupError(
                self.body_id, f"particle {self.arena[index].particle_id!r} already belongs to {owner!r}"
            )
        self.arena.claim(index, self.body_id)
        self.members.append(index)
        return index

    def calc_ref_coords(self) -> ReferenceGeometry:
        if self.is_finalized:
            raise RigidBodySetupError(self.body_id, "reference geometry has already been computed")
        atoms = list(self.iter_atoms())
        geometry, rotation, com = build_reference_geometry(
            self.body_id,
            np.array([atom.position for atom in atoms], dtype=float).reshape(-1, 3),
            np.array([atom.mass for atom in atoms], dtype=float),
            [atom.rotation_matrix() if atom.is_directional else None for atom in atoms],
            [atom.inertia if atom.is_directional else None for atom in atoms],
            self.rotation,
            self.settings,
        )
        self._geometry = geometry
        self.rotation = rotation
        self.previous_rotation = rotation.copy()
        self.position = com
        self.velocity = center_of_velocity(atoms)
        self.angular_momentum = to_frame(angular_momentum_about_com(atoms), FrameChoice.BODY, rotation)

        _LOG.debug(
            "Rigid body %s finalized: %d members, mass %.6g, principal moments %s",
            self.body_id,
            len(atoms),
            float(np.sum(geometry.masses)),
            np.array2string(geometry.principal_moments, precision=6),
        )
        if len(geometry.linear_axes) > 1 and len(atoms) > 1:
            _LOG.warning(
                "Rigid body %s has %d vanishing principal moments; rotation about them is ignored",
                self.body_id,
                len(geometry.linear_axes),
            )
        return geometry

    # -- members --------------------------------------------------------

    @property
    def num_atoms(self) -> int:
        return len(self.members)

    def iter_atoms(self) -> Iterator[Particle]:
        for index in self.members:
            yield self.arena[index]

    def atoms(self) -> List[Particle]:
        return list(self.iter_atoms())

    @property
    def body_fixed_unit_frame(self) -> np.ndarray:
        return self.reference_geometry.unit_frame.copy()

    @property
    def is_linear(self) -> bool:
        return self.reference_geometry.is_linear

    @property
    def linear_axis(self) -> int | None:
        return self.reference_geometry.linear_axis

    # -- state setters --------------------------------------------------

    def set_rotation(self, rotation: np.ndarray) -> None:
        """Set the current rotation; member state changes only in :meth:`update_atoms`."""
        self.rotation = self._checked_rotation(rotation)

    def set_previous_rotation(self, rotation: np.ndarray) -> None:
        self.previous_rotation = self._checked_rotation(rotation)

    def set_position(self, position: Vector) -> None:
        self.position = self._checked_vector(position, "center-of-mass position")

    def set_velocity(self, velocity: Vector) -> None:
        self.velocity = self._checked_vector(velocity, "center-of-mass velocity")

    def set_angular_momentum(self, angular_momentum_body: Vector) -> None:
        self.angular_momentum = self._checked_vector(angular_momentum_body, "angular momentum")

    def set_angular_velocity(self, omega_lab: Vector) -> None:
        omega_body = to_frame(self._checked_vector(omega_lab, "angular velocity"), FrameChoice.BODY, self.rotation)
        self.angular_momentum = self.get_i() @ omega_body

    # -- kinematics -----------------------------------------------------

    def angular_velocity_body(self) -> Vector:
        return apply_inverse_inertia(
            self.reference_geometry.inertia, self.angular_momentum, self.settings.linear_axis_epsilon
        )

    def angular_velocity(self) -> Vector:
        return from_frame(self.angular_velocity_body(), FrameChoice.BODY, self.rotation)

    def kinetic_energy(self, epsilon: float | None = None) -> float:
        if epsilon is None:
            epsilon = self.settings.linear_axis_epsilon
        omega_body = apply_inverse_inertia(self.reference_geometry.inertia, self.angular_momentum, epsilon)
        translational = 0.5 * self.mass * float(np.dot(self.velocity, self.velocity))
        rotational = 0.5 * float(np.dot(omega_body, self.angular_momentum))
        return translational + rotational

    def calc_forces_and_torques(self) -> tuple[Vector, Vector]:
        """Reduce member forces and torques to the body resultant about the CoM.

        Summation follows member order. Only ``force`` and ``torque`` of the
        body are written; both are lab-frame and replace previous values.
        """
        if not self.is_finalized:
            raise RigidBodySetupError(self.body_id, "cannot reduce forces before calc_ref_coords()")
        force = np.zeros(3, dtype=float)
        torque = np.zeros(3, dtype=float)
        for atom in self.iter_atoms():
            self._check_member_finite(atom, atom.force, "force")
            force += atom.force
            torque += np.cross(atom.position - self.position, atom.force)
            if atom.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL:
                self._check_member_finite(atom, atom.torque, "torque")
                torque += atom.torque
        self.force = force
        self.torque = torque
        return force.copy(), torque.copy()

    def body_torque(self) -> Vector:
        return to_frame(self.torque, FrameChoice.BODY, self.rotation)

    def update_atoms(self) -> None:
        """Rewrite member position, velocity and orientation from the body state.

        ``v_i = v_com + omega x (R @ offset_i)`` with ``omega`` derived from
        the body-frame angular momentum. Member forces and torques are left
        untouched.
        """
        geometry = self.reference_geometry
        rotation = self._checked_rotation(self.rotation)
        position = self._checked_vector(self.position, "center-of-mass position")
        velocity = self._checked_vector(self.velocity, "center-of-mass velocity")
        self._checked_vector(self.angular_momentum, "angular momentum")
        omega = self.angular_velocity()
        rotated = from_frame(geometry.offsets, FrameChoice.BODY, rotation)
        for index, offset_lab, ref_orient in zip(self.members, rotated, geometry.orientations):
            atom = self.arena[index]
            atom.position = position + offset_lab
            atom.velocity = velocity + np.cross(omega, offset_lab)
            if atom.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL and ref_orient is not None:
                atom.set_rotation_matrix(rotation @ ref_orient)

    # -- queries --------------------------------------------------------

    def get_i(self) -> np.ndarray:
        return self.reference_geometry.inertia.copy()

    def get_grad(self) -> np.ndarray:
        """Energy gradient over ``(x, y, z, phi, theta, psi)`` for geometry optimization.

        The rotational part is ``-torque`` projected on the lab-frame axes of
        the z-x-z Euler rotations: lab z, the line of nodes and body z.
        """
        phi, theta, _ = matrix_to_euler(self.rotation)
        e_phi = np.array([0.0, 0.0, 1.0])
        e_theta = np.array([np.cos(phi), np.sin(phi), 0.0])
        e_psi = np.array([np.sin(theta) * np.sin(phi), -np.sin(theta) * np.cos(phi), np.cos(theta)])
        grad = np.zeros(6, dtype=float)
        grad[:3] = -self.force
        grad[3] = -float(np.dot(self.torque, e_phi))
        grad[4] = -float(np.dot(self.torque, e_theta))
        grad[5] = -float(np.dot(self.torque, e_psi))
        return grad

    def member_slot(self, key: MemberKey) -> int | None:
        if isinstance(key, Particle):
            for slot, index in enumerate(self.members):
                if self.arena[index] is key:
                    return slot
            return None
        if isinstance(key, (bool, np.bool_)) or not isinstance(key, (int, np.integer)):
            return None
        if 0 <= int(key) < len(self.members):
            return int(key)
        return None

    def atom_position(self, key: MemberKey) -> Vector | None:
        slot = self.member_slot(key)
        if slot is None:
            return None
        return self.arena[self.members[slot]].position.copy()

    def atom_velocity(self, key: MemberKey) -> Vector | None:
        slot = self.member_slot(key)
        if slot is None:
            return None
        return self.arena[self.members[slot]].velocity.copy()

    def atom_ref_coor(self, key: MemberKey) -> Vector | None:
        slot = self.member_slot(key)
        if slot is None or self._geometry is None:
            return None
        return self._geometry.offsets[slot].copy()

    def get_atom_pos(self, out: Vector, key: MemberKey) -> bool:
        return _write_into(out, self.atom_position(key))

    def get_atom_vel(self, out: Vector, key: MemberKey) -> bool:
        return _write_into(out, self.atom_velocity(key))

    def get_atom_ref_coor(self, out: Vector, key: MemberKey) -> bool:
        return _write_into(out, self.atom_ref_coor(key))

    # -- validation -----------------------------------------------------

    def _checked_rotation(self, rotation: np.ndarray) -> np.ndarray:
        arr = np.array(rotation, dtype=float)
        error = rotation_error(arr)
        if error > self.settings.orthonormality_tolerance:
            raise InvariantViolationError(
                self.body_id, f"rotation matrix is not a proper rotation (deviation {error:.3e})"
            )
        return arr

    def _checked_vector(self, values: Vector, name: str) -> Vector:
        arr = np.array(values, dtype=float).reshape(3)
        if self.settings.check_finite and not np.all(np.isfinite(arr)):
            raise InvariantViolationError(self.body_id, f"{name} is not finite")
        return arr

    def _check_member_finite(self, atom: Particle, values: Vector, name: str) -> None:
        if self.settings.check_finite and not np.all(np.isfinite(values)):
            raise InvariantViolationError(self.body_id, f"{name} on member {atom.particle_id!r} is not finite")


def _write_into(out: Vector, value: Vector | None) -> bool:
    if value is None:
        return False
    out[...] = value
    return True
