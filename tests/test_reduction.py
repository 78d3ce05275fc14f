import numpy as np
import pytest

from rigid_body_kernel.core.errors import InvariantViolationError
from rigid_body_kernel.core.model import Capability, Particle, ParticleArena, RigidBody


def _dimer() -> RigidBody:
    body = RigidBody(body_id="DIMER", arena=ParticleArena())
    body.add_member(Particle("A", 1.0, position=[1.0, 0.0, 0.0]))
    body.add_member(Particle("B", 1.0, position=[-1.0, 0.0, 0.0]))
    body.calc_ref_coords()
    return body


def test_equal_forces_on_antiparallel_offsets_cancel_torque() -> None:
    body = _dimer()
    for atom in body.iter_atoms():
        atom.force = np.array([0.0, 1.0, 0.0])
    force, torque = body.calc_forces_and_torques()
    np.testing.assert_allclose(force, [0.0, 2.0, 0.0])
    np.testing.assert_allclose(torque, [0.0, 0.0, 0.0], atol=1e-15)
    np.testing.assert_allclose(body.force, force)
    np.testing.assert_allclose(body.torque, torque)


def test_opposite_forces_form_a_couple() -> None:
    body = _dimer()
    first, second = body.atoms()
    first.force = np.array([0.0, 1.0, 0.0])
    second.force = np.array([0.0, -1.0, 0.0])
    force, torque = body.calc_forces_and_torques()
    np.testing.assert_allclose(force, np.zeros(3), atol=1e-15)
    np.testing.assert_allclose(torque, [0.0, 0.0, 2.0])


def test_reduction_replaces_previous_resultant() -> None:
    body = _dimer()
    body.atoms()[0].force = np.array([0.5, 0.0, 0.0])
    first = body.calc_forces_and_torques()
    second = body.calc_forces_and_torques()
    np.testing.assert_array_equal(first[0], second[0])
    np.testing.assert_array_equal(first[1], second[1])
    np.testing.assert_allclose(body.force, [0.5, 0.0, 0.0])


def test_reduction_is_independent_of_member_order() -> None:
    rng = np.random.default_rng(7)
    positions = rng.normal(size=(6, 3))
    masses = rng.uniform(0.5, 3.0, size=6)
    forces = rng.normal(size=(6, 3))
    torques = rng.normal(size=(6, 3))

    def build(order: np.ndarray) -> RigidBody:
        body = RigidBody(body_id="SHUFFLED", arena=ParticleArena())
        for i in order:
            particle = Particle(
                f"P{i}",
                float(masses[i]),
                position=positions[i],
                capability=Capability.TRANSLATIONAL_AND_ROTATIONAL if i % 2 else Capability.TRANSLATIONAL,
            )
            body.add_member(particle)
        body.calc_ref_coords()
        for i, atom in zip(order, body.iter_atoms()):
            atom.force = forces[i].copy()
            if atom.is_directional:
                atom.torque = torques[i].copy()
        return body

    reference = build(np.arange(6)).calc_forces_and_torques()
    shuffled = build(rng.permutation(6)).calc_forces_and_torques()
    np.testing.assert_allclose(shuffled[0], reference[0], rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(shuffled[1], reference[1], rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(reference[0], forces.sum(axis=0), atol=1e-12)


def test_directional_member_torque_is_added() -> None:
    body = RigidBody(body_id="DIR", arena=ParticleArena())
    body.add_member(
        Particle(
            "D",
            1.0,
            position=[0.0, 1.0, 0.0],
            capability=Capability.TRANSLATIONAL_AND_ROTATIONAL,
            inertia=np.eye(3),
        )
    )
    body.add_member(Particle("A", 1.0, position=[0.0, -1.0, 0.0]))
    body.calc_ref_coords()
    directional, plain = body.atoms()
    directional.force = np.array([1.0, 0.0, 0.0])
    directional.torque = np.array([0.0, 0.0, 0.5])
    plain.force = np.zeros(3)
    _, torque = body.calc_forces_and_torques()
    # (0, 1, 0) x (1, 0, 0) = (0, 0, -1), plus the member's own torque
    np.testing.assert_allclose(torque, [0.0, 0.0, -0.5])


def test_body_torque_is_lab_torque_in_body_frame() -> None:
    body = RigidBody(body_id="TRI", arena=ParticleArena())
    body.add_member(Particle("A", 1.0, position=[1.0, 0.2, 0.0]))
    body.add_member(Particle("B", 2.0, position=[-0.4, 0.9, 0.3]))
    body.add_member(Particle("C", 1.5, position=[0.1, -0.8, -0.6]))
    body.calc_ref_coords()
    body.atoms()[1].force = np.array([0.3, -0.2, 0.8])
    body.calc_forces_and_torques()
    np.testing.assert_allclose(body.body_torque(), body.rotation.T @ body.torque, atol=1e-15)
    np.testing.assert_allclose(body.rotation @ body.body_torque(), body.torque, atol=1e-12)


def test_reduction_leaves_members_untouched() -> None:
    body = _dimer()
    for atom in body.iter_atoms():
        atom.force = np.array([0.1, 0.2, 0.3])
    before = [(atom.position.copy(), atom.velocity.copy(), atom.force.copy()) for atom in body.iter_atoms()]
    body.calc_forces_and_torques()
    for atom, (position, velocity, force) in zip(body.iter_atoms(), before):
        np.testing.assert_array_equal(atom.position, position)
        np.testing.assert_array_equal(atom.velocity, velocity)
        np.testing.assert_array_equal(atom.force, force)


def test_non_finite_member_force_is_fatal() -> None:
    body = _dimer()
    body.atoms()[1].force = np.array([np.inf, 0.0, 0.0])
    with pytest.raises(InvariantViolationError, match="'B'"):
        body.calc_forces_and_torques()
