import numpy as np
import pytest

from rigid_body_kernel.core.errors import RigidBodySetupError
from rigid_body_kernel.core.model import (
    Capability,
    MolecularSystem,
    Particle,
    ParticleArena,
    iter_particle_states,
    movable_state,
    resolve_movable_by_id,
)


def _system() -> MolecularSystem:
    system = MolecularSystem()
    system.add_particle(Particle("free-1", 1.0, position=[5.0, 0.0, 0.0]))
    body = system.new_body("W1")
    body.add_member(Particle("O", 16.0, position=[0.0, 0.0, 0.0]))
    body.add_member(Particle("H", 1.0, position=[1.0, 0.0, 0.0]))
    system.add_particle(
        Particle("dip", 2.0, position=[0.0, 5.0, 0.0], capability=Capability.TRANSLATIONAL_AND_ROTATIONAL)
    )
    body.calc_ref_coords()
    return system


def test_integrable_objects_are_free_particles_then_bodies() -> None:
    system = _system()
    ids = [obj.object_id for obj in system.integrable_objects()]
    assert ids == ["free-1", "dip", "W1"]
    capabilities = [obj.capability for obj in system.integrable_objects()]
    assert capabilities == [
        Capability.TRANSLATIONAL,
        Capability.TRANSLATIONAL_AND_ROTATIONAL,
        Capability.TRANSLATIONAL_AND_ROTATIONAL,
    ]


def test_particle_states_name_members_by_body() -> None:
    system = _system()
    ids = [state.object_id for state in system.particle_states()]
    assert ids == ["free-1", "W1:O", "W1:H", "dip"]
    assert [state.object_id for state in iter_particle_states(system.arena)] == ["free-1", "O", "H", "dip"]


def test_body_state_snapshot() -> None:
    system = _system()
    body = system.body_by_id("W1")
    state = movable_state(body)
    assert state.is_directional
    assert state.mass == pytest.approx(17.0)
    np.testing.assert_allclose(state.position, body.position)
    assert state.orientation is not None and state.orientation[0] >= 0.0
    state.position[0] = 123.0
    assert body.position[0] != 123.0

    plain = movable_state(system.arena[0])
    assert not plain.is_directional
    assert plain.orientation is None and plain.angular_momentum is None and plain.torque is None


def test_resolve_movable_by_id() -> None:
    system = _system()
    objects = system.integrable_objects()
    body = system.body_by_id("W1")
    assert resolve_movable_by_id(objects, "W1") == (body, None)
    obj, member = resolve_movable_by_id(objects, "W1:H")
    assert obj is body and member is body.atoms()[1]
    assert resolve_movable_by_id(objects, "dip")[0] is system.arena[3]
    assert resolve_movable_by_id(objects, "W1:missing") == (None, None)
    assert resolve_movable_by_id(objects, "nothing") == (None, None)


def test_particle_validation() -> None:
    with pytest.raises(ValueError, match="positive"):
        Particle("bad", 0.0)
    with pytest.raises(ValueError, match="not directional"):
        Particle("plain", 1.0, orientation=[1.0, 0.0, 0.0, 0.0])
    with pytest.raises(ValueError, match="length 3"):
        Particle("short", 1.0, position=[1.0, 2.0])
    with pytest.raises(ValueError, match="has no orientation"):
        Particle("plain", 1.0).set_rotation_matrix(np.eye(3))

    directional = Particle("dir", 1.0, capability="translational_and_rotational", orientation=[2.0, 0.0, 0.0, 0.0])
    assert directional.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL
    np.testing.assert_allclose(directional.orientation, [1.0, 0.0, 0.0, 0.0])
    np.testing.assert_allclose(directional.angular_momentum, np.zeros(3))
    np.testing.assert_allclose(directional.torque, np.zeros(3))


def test_arena_ownership() -> None:
    arena = ParticleArena()
    particle = Particle("p", 1.0)
    index = arena.add(particle)
    with pytest.raises(ValueError, match="already stored"):
        arena.add(particle)
    assert arena.index_of(particle) == index
    assert arena.index_of(Particle("q", 1.0)) is None
    arena.claim(index, "B1")
    assert arena.owner_of(index) == "B1"
    assert arena.free_indices() == []
    with pytest.raises(ValueError, match="B1"):
        arena.claim(index, "B2")


def test_duplicate_body_id_is_rejected() -> None:
    system = _system()
    with pytest.raises(ValueError, match="Duplicate"):
        system.new_body("W1")
    assert system.total_mass() == pytest.approx(20.0)


def test_zero_accumulators_clears_forces_and_torques() -> None:
    system = _system()
    for particle in system.arena:
        particle.force = np.ones(3)
    system.arena[3].torque = np.ones(3)
    system.arena.zero_accumulators()
    for particle in system.arena:
        np.testing.assert_array_equal(particle.force, np.zeros(3))
    np.testing.assert_array_equal(system.arena[3].torque, np.zeros(3))


def test_failed_assembly_leaves_system_untouched() -> None:
    system = MolecularSystem()
    system.assemble_body(
        "GOOD",
        [Particle("A", 1.0, position=[1.0, 0.0, 0.0]), Particle("B", 1.0, position=[-1.0, 0.0, 0.0])],
    )
    loose = Particle("free", 1.0, position=[0.0, 3.0, 0.0])
    loose_index = system.add_particle(loose)

    with pytest.raises(RigidBodySetupError, match="coincident"):
        system.assemble_body(
            "BAD",
            [loose_index, Particle("C", 1.0, position=[0.0, 3.0, 0.0])],
        )

    assert [body.body_id for body in system.bodies] == ["GOOD"]
    assert [system.arena.owner_of(i) for i in range(len(system.arena))] == ["GOOD", "GOOD", None]
    assert [obj.object_id for obj in system.integrable_objects()] == ["free", "GOOD"]
    system.reduce_forces()
    system.update_atoms()

    rebuilt = system.assemble_body("BAD", [loose_index, Particle("C", 1.0, position=[0.0, 4.0, 0.0])])
    assert rebuilt.num_atoms == 2
    assert system.arena.free_indices() == []


def test_arena_truncate_keeps_owned_particles() -> None:
    arena = ParticleArena([Particle("a", 1.0), Particle("b", 1.0)])
    arena.claim(1, "B1")
    with pytest.raises(ValueError, match="still owned"):
        arena.truncate(1)
    arena.release(1)
    arena.truncate(1)
    assert len(arena) == 1
    replacement = Particle("c", 1.0)
    assert arena.add(replacement) == 1
