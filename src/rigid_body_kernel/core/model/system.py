from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

import numpy as np

from ..errors import RigidBodyError
from ..settings import DEFAULT_SETTINGS, KernelSettings
from .movable import Movable, MovableState, integrable_objects, iter_particle_states
from .particles import Particle, ParticleArena
from .rigid_body import MemberKey, RigidBody

_LOG = logging.getLogger(__name__)


@dataclass
class MolecularSystem:
    arena: ParticleArena = field(default_factory=ParticleArena)
    bodies: List[RigidBody] = field(default_factory=list)
    settings: KernelSettings = DEFAULT_SETTINGS

    def add_particle(self, particle: Particle) -> int:
        return self.arena.add(particle)

    def new_body(self, body_id: str, rotation: np.ndarray | None = None) -> RigidBody:
        if self.body_by_id(body_id) is not None:
            raise ValueError(f"Duplicate rigid body id: {body_id}")
        body = RigidBody(
            body_id=body_id,
            arena=self.arena,
            settings=self.settings,
            rotation=np.eye(3, dtype=float) if rotation is None else rotation,
        )
        self.bodies.append(body)
        return body

    def assemble_body(
        self,
        body_id: str,
        members: Iterable[MemberKey],
        rotation: np.ndarray | None = None,
    ) -> RigidBody:
        """Create, populate and finalize a body in one step.

        On a setup or invariant error the body is withdrawn, its members are
        released and particles stored during assembly are dropped again.
        """
        arena_length = len(self.arena)
        body = self.new_body(body_id, rotation=rotation)
        try:
            for member in members:
                body.add_member(member)
            body.calc_ref_coords()
        except RigidBodyError:
            self.bodies.remove(body)
            for index in body.members:
                self.arena.release(index)
            self.arena.truncate(arena_length)
            _LOG.warning("Assembly of rigid body %s aborted", body_id)
            raise
        return body

    def body_by_id(self, body_id: str) -> RigidBody | None:
        for body in self.bodies:
            if body.body_id == body_id:
                return body
        return None

    def integrable_objects(self) -> List[Movable]:
        return integrable_objects(self.arena, self.bodies)

    def particle_states(self) -> List[MovableState]:
        return iter_particle_states(self.arena, self.bodies)

    def reduce_forces(self) -> None:
        for body in self.bodies:
            body.calc_forces_and_torques()

    def update_atoms(self) -> None:
        for body in self.bodies:
            body.update_atoms()

    def total_mass(self) -> float:
        return float(sum(particle.mass for particle in self.arena))
