from .errors import InvariantViolationError, RigidBodyError, RigidBodySetupError
from .model import (
    Capability,
    MassPointLike,
    MolecularSystem,
    Movable,
    MovableLike,
    MovableState,
    Particle,
    ParticleArena,
    ReferenceGeometry,
    RigidBody,
    Vector,
    integrable_objects,
    iter_movable_states,
    iter_particle_states,
    resolve_movable_by_id,
)
from .physics import (
    angular_momentum_about_com,
    center_of_mass,
    center_of_velocity,
    invariant_position_sum,
    total_mass,
)
from .settings import DEFAULT_SETTINGS, KernelSettings
from .sim import ForceEvaluator, Integrator, Simulation, SymplecticEulerIntegrator

__all__ = [
    "Capability",
    "MassPointLike",
    "MolecularSystem",
    "Movable",
    "MovableLike",
    "MovableState",
    "Particle",
    "ParticleArena",
    "ReferenceGeometry",
    "RigidBody",
    "Vector",
    "integrable_objects",
    "iter_movable_states",
    "iter_particle_states",
    "resolve_movable_by_id",
    "angular_momentum_about_com",
    "center_of_mass",
    "center_of_velocity",
    "invariant_position_sum",
    "total_mass",
    "DEFAULT_SETTINGS",
    "KernelSettings",
    "RigidBodyError",
    "RigidBodySetupError",
    "InvariantViolationError",
    "ForceEvaluator",
    "Integrator",
    "Simulation",
    "SymplecticEulerIntegrator",
]
