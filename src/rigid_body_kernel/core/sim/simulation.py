from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ..model import Capability, MolecularSystem, MovableLike
from ..physics import apply_inverse_inertia, integrate_quaternion_body, matrix_to_quaternion, quat_to_matrix

_LOG = logging.getLogger(__name__)


class ForceEvaluator(Protocol):
    def compute(self, system: MolecularSystem) -> None:
        ...


class Integrator(Protocol):
    def step(self, sim: "Simulation") -> None:
        ...


@dataclass
class SymplecticEulerIntegrator:
    """Semi-implicit Euler update of every integrable object."""

    def step(self, sim: "Simulation") -> None:
        epsilon = sim.system.settings.linear_axis_epsilon
        for obj in sim.system.integrable_objects():
            obj.velocity = obj.velocity + obj.force / obj.mass * sim.dt
            obj.position = obj.position + obj.velocity * sim.dt
            if obj.capability is Capability.TRANSLATIONAL_AND_ROTATIONAL:
                _advance_rotation(obj, sim.dt, epsilon)


def _advance_rotation(obj: MovableLike, dt: float, epsilon: float) -> None:
    rotation = obj.rotation_matrix()
    # Lab-frame angular momentum is what torque-free motion conserves.
    momentum_lab = rotation @ obj.angular_momentum + obj.torque * dt
    omega_body = apply_inverse_inertia(obj.inertia_tensor(), rotation.T @ momentum_lab, epsilon)
    q = integrate_quaternion_body(matrix_to_quaternion(rotation), omega_body, dt)
    obj.set_rotation_matrix(quat_to_matrix(q))
    obj.angular_momentum = obj.rotation_matrix().T @ momentum_lab


@dataclass
class Simulation:
    """Runs the per-step cycle.

    Forces are zeroed and evaluated, every body reduces them, the integrator
    advances the integrable objects, and every body then rebuilds its
    members. Each phase finishes for all bodies before the next begins.
    """

    system: MolecularSystem
    dt: float
    integrator: Integrator
    force_evaluator: ForceEvaluator | None = None
    time: float = 0.0
    step_count: int = 0

    def step(self) -> None:
        if self.dt <= 0:
            raise ValueError("dt must be positive")
        self.system.arena.zero_accumulators()
        if self.force_evaluator is not None:
            self.force_evaluator.compute(self.system)
        self.system.reduce_forces()
        for body in self.system.bodies:
            body.set_previous_rotation(body.rotation)
        self.integrator.step(self)
        self.system.update_atoms()
        self.time += self.dt
        self.step_count += 1
        _LOG.debug("Step %d done at t=%.6g", self.step_count, self.time)

    def run(self, steps: int) -> None:
        if steps < 0:
            raise ValueError("steps must be non-negative")
        for _ in range(steps):
            self.step()

    def kinetic_energy(self) -> float:
        epsilon = self.system.settings.linear_axis_epsilon
        total = 0.0
        for obj in self.system.integrable_objects():
            total += obj.kinetic_energy(epsilon)
        return total
