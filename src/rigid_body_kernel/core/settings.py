from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KernelSettings:
    orthonormality_tolerance: float = 1e-8
    linear_axis_epsilon: float = 1e-6
    coincidence_tolerance: float = 1e-12
    use_principal_axes: bool = True
    check_finite: bool = True

    def __post_init__(self) -> None:
        for name in ("orthonormality_tolerance", "linear_axis_epsilon", "coincidence_tolerance"):
            value = getattr(self, name)
            if not value > 0.0:
                raise ValueError(f"{name} must be positive")


DEFAULT_SETTINGS = KernelSettings()
