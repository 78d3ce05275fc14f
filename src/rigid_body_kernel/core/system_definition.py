from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

import numpy as np

from .model import Capability, MolecularSystem, Particle, RigidBody
from .physics import IDENTITY_QUATERNION, matrix_to_quaternion, quat_to_matrix
from .settings import DEFAULT_SETTINGS, KernelSettings
from .sim import ForceEvaluator, Integrator, Simulation, SymplecticEulerIntegrator

SYSTEM_SCHEMA_VERSION = 1

INTEGRATOR_IDS: dict[str, type[Integrator]] = {
    "symplectic_euler": SymplecticEulerIntegrator,
}


@dataclass
class SimulationDefinition:
    dt: float = 0.01
    integrator: str = "symplectic_euler"


@dataclass
class ParticleDefinition:
    """Initial lab-frame placement of one particle."""

    particle_id: str
    mass: float
    position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    directional: bool = False
    orientation: np.ndarray | None = None
    angular_momentum: np.ndarray | None = None
    inertia: np.ndarray | None = None


@dataclass
class RigidBodyDefinition:
    body_id: str
    members: List[ParticleDefinition]
    # Initial body frame; the principal-axis alignment is applied on top of it.
    orientation: np.ndarray = field(default_factory=lambda: IDENTITY_QUATERNION.copy())


@dataclass
class SystemDefinition:
    name: str
    simulation: SimulationDefinition = field(default_factory=SimulationDefinition)
    settings: KernelSettings = DEFAULT_SETTINGS
    particles: List[ParticleDefinition] = field(default_factory=list)
    bodies: List[RigidBodyDefinition] = field(default_factory=list)
    schema_version: int = SYSTEM_SCHEMA_VERSION


def integrator_from_id(integrator_id: str) -> Integrator:
    integrator_cls = INTEGRATOR_IDS.get(integrator_id)
    if integrator_cls is None:
        raise ValueError(f"Unknown integrator id: {integrator_id}")
    return integrator_cls()


def integrator_id_from_instance(integrator: Integrator) -> str:
    for key, integrator_cls in INTEGRATOR_IDS.items():
        if isinstance(integrator, integrator_cls):
            return key
    raise ValueError(f"Unsupported integrator: {type(integrator)}")


def particle_from_definition(defn: ParticleDefinition) -> Particle:
    capability = Capability.TRANSLATIONAL_AND_ROTATIONAL if defn.directional else Capability.TRANSLATIONAL
    return Particle(
        particle_id=defn.particle_id,
        mass=float(defn.mass),
        position=np.array(defn.position, dtype=float),
        velocity=np.array(defn.velocity, dtype=float),
        capability=capability,
        orientation=None if defn.orientation is None else np.array(defn.orientation, dtype=float),
        angular_momentum=None if defn.angular_momentum is None else np.array(defn.angular_momentum, dtype=float),
        inertia=None if defn.inertia is None else np.array(defn.inertia, dtype=float),
    )


def rigid_body_from_definition(defn: RigidBodyDefinition, system: MolecularSystem) -> RigidBody:
    return system.assemble_body(
        defn.body_id,
        [particle_from_definition(member) for member in defn.members],
        rotation=quat_to_matrix(defn.orientation),
    )


def system_from_definition(defn: SystemDefinition) -> MolecularSystem:
    system = MolecularSystem(settings=defn.settings)
    for particle in defn.particles:
        system.add_particle(particle_from_definition(particle))
    for body in defn.bodies:
        rigid_body_from_definition(body, system)
    return system


def simulation_from_definition(
    defn: SystemDefinition, force_evaluator: ForceEvaluator | None = None
) -> Simulation:
    return Simulation(
        system=system_from_definition(defn),
        dt=float(defn.simulation.dt),
        integrator=integrator_from_id(defn.simulation.integrator),
        force_evaluator=force_evaluator,
    )


def _particle_definition(particle: Particle) -> ParticleDefinition:
    return ParticleDefinition(
        particle_id=particle.particle_id,
        mass=float(particle.mass),
        position=particle.position.copy(),
        velocity=particle.velocity.copy(),
        directional=particle.is_directional,
        orientation=None if particle.orientation is None else particle.orientation.copy(),
        angular_momentum=None if particle.angular_momentum is None else particle.angular_momentum.copy(),
        inertia=None if particle.inertia is None else particle.inertia.copy(),
    )


def _body_definitions(bodies: Iterable[RigidBody]) -> List[RigidBodyDefinition]:
    definitions: List[RigidBodyDefinition] = []
    for body in bodies:
        # Undo the principal-axis alignment so reassembly reproduces this frame.
        initial = body.rotation @ body.body_fixed_unit_frame.T
        definitions.append(
            RigidBodyDefinition(
                body_id=body.body_id,
                members=[_particle_definition(atom) for atom in body.iter_atoms()],
                orientation=matrix_to_quaternion(initial),
            )
        )
    return definitions


def definition_from_simulation(name: str, sim: Simulation) -> SystemDefinition:
    system = sim.system
    return SystemDefinition(
        name=name,
        simulation=SimulationDefinition(
            dt=float(sim.dt),
            integrator=integrator_id_from_instance(sim.integrator),
        ),
        settings=system.settings,
        particles=[_particle_definition(system.arena[index]) for index in system.arena.free_indices()],
        bodies=_body_definitions(system.bodies),
    )
