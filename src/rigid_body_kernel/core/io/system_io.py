from __future__ import annotations

import json
from typing import Any, Dict, List

import numpy as np

from ..settings import KernelSettings
from ..system_definition import (
    SYSTEM_SCHEMA_VERSION,
    ParticleDefinition,
    RigidBodyDefinition,
    SimulationDefinition,
    SystemDefinition,
)


def system_definition_to_dict(defn: SystemDefinition) -> Dict[str, Any]:
    return {
        "schema_version": defn.schema_version,
        "name": defn.name,
        "simulation": {
            "dt": defn.simulation.dt,
            "integrator": defn.simulation.integrator,
        },
        "settings": _settings_to_dict(defn.settings),
        "particles": [_particle_to_dict(particle) for particle in defn.particles],
        "bodies": [
            {
                "body_id": body.body_id,
                "orientation": np.asarray(body.orientation, dtype=float).tolist(),
                "members": [_particle_to_dict(member) for member in body.members],
            }
            for body in defn.bodies
        ],
    }


def _settings_to_dict(settings: KernelSettings) -> Dict[str, Any]:
    return {
        "orthonormality_tolerance": settings.orthonormality_tolerance,
        "linear_axis_epsilon": settings.linear_axis_epsilon,
        "coincidence_tolerance": settings.coincidence_tolerance,
        "use_principal_axes": settings.use_principal_axes,
        "check_finite": settings.check_finite,
    }


def _particle_to_dict(particle: ParticleDefinition) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "particle_id": particle.particle_id,
        "mass": particle.mass,
        "position": np.asarray(particle.position, dtype=float).tolist(),
        "velocity": np.asarray(particle.velocity, dtype=float).tolist(),
    }
    if not particle.directional:
        return payload
    payload["directional"] = True
    for key in ("orientation", "angular_momentum", "inertia"):
        value = getattr(particle, key)
        if value is not None:
            payload[key] = np.asarray(value, dtype=float).tolist()
    return payload


def _settings_from_dict(payload: Dict[str, Any]) -> KernelSettings:
    defaults = KernelSettings()
    return KernelSettings(
        orthonormality_tolerance=float(payload.get("orthonormality_tolerance", defaults.orthonormality_tolerance)),
        linear_axis_epsilon=float(payload.get("linear_axis_epsilon", defaults.linear_axis_epsilon)),
        coincidence_tolerance=float(payload.get("coincidence_tolerance", defaults.coincidence_tolerance)),
        use_principal_axes=bool(payload.get("use_principal_axes", defaults.use_principal_axes)),
        check_finite=bool(payload.get("check_finite", defaults.check_finite)),
    )


def _optional_array(payload: Dict[str, Any], key: str) -> np.ndarray | None:
    value = payload.get(key)
    return None if value is None else np.array(value, dtype=float)


def _particle_from_dict(payload: Dict[str, Any]) -> ParticleDefinition:
    if "particle_id" not in payload:
        raise ValueError("Particle entry is missing 'particle_id'")
    return ParticleDefinition(
        particle_id=str(payload["particle_id"]),
        mass=float(payload.get("mass", 1.0)),
        position=np.array(payload.get("position", [0.0, 0.0, 0.0]), dtype=float),
        velocity=np.array(payload.get("velocity", [0.0, 0.0, 0.0]), dtype=float),
        directional=bool(payload.get("directional", False)),
        orientation=_optional_array(payload, "orientation"),
        angular_momentum=_optional_array(payload, "angular_momentum"),
        inertia=_optional_array(payload, "inertia"),
    )


def system_definition_from_dict(payload: Dict[str, Any]) -> SystemDefinition:
    version = int(payload.get("schema_version", 0))
    if version != SYSTEM_SCHEMA_VERSION:
        raise ValueError(f"Unsupported system schema version: {version}")
    simulation_payload = payload.get("simulation", {})
    simulation = SimulationDefinition(
        dt=float(simulation_payload.get("dt", 0.01)),
        integrator=str(simulation_payload.get("integrator", "symplectic_euler")),
    )
    bodies: List[RigidBodyDefinition] = []
    for body_payload in payload.get("bodies", []):
        members = body_payload.get("members", [])
        if not members:
            raise ValueError(f"Rigid body {body_payload.get('body_id')!r} has no members")
        bodies.append(
            RigidBodyDefinition(
                body_id=str(body_payload.get("body_id", "")),
                members=[_particle_from_dict(member) for member in members],
                orientation=np.array(body_payload.get("orientation", [1.0, 0.0, 0.0, 0.0]), dtype=float),
            )
        )
    return SystemDefinition(
        name=str(payload.get("name", "Untitled System")),
        simulation=simulation,
        settings=_settings_from_dict(payload.get("settings", {})),
        particles=[_particle_from_dict(particle) for particle in payload.get("particles", [])],
        bodies=bodies,
        schema_version=version,
    )


def serialize_system_definition(defn: SystemDefinition) -> str:
    return json.dumps(system_definition_to_dict(defn), indent=2)


def deserialize_system_definition(payload: str) -> SystemDefinition:
    return system_definition_from_dict(json.loads(payload))
