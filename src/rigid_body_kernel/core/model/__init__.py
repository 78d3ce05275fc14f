from .movable import (
    MemberIdSeparator,
    Movable,
    MovableLike,
    MovableState,
    integrable_objects,
    iter_movable_states,
    iter_particle_states,
    member_object_id,
    movable_state,
    resolve_movable_by_id,
)
from .particles import Capability, MassPointLike, Particle, ParticleArena, Vector
from .rigid_body import MemberKey, ReferenceGeometry, RigidBody, build_reference_geometry
from .system import MolecularSystem

__all__ = [
    "build_reference_geometry",
    "Capability",
    "integrable_objects",
    "iter_movable_states",
    "iter_particle_states",
    "MassPointLike",
    "member_object_id",
    "MemberIdSeparator",
    "MemberKey",
    "MolecularSystem",
    "Movable",
    "MovableLike",
    "movable_state",
    "MovableState",
    "Particle",
    "ParticleArena",
    "ReferenceGeometry",
    "resolve_movable_by_id",
    "RigidBody",
    "Vector",
]
