from .simulation import ForceEvaluator, Integrator, Simulation, SymplecticEulerIntegrator

__all__ = ["ForceEvaluator", "Integrator", "Simulation", "SymplecticEulerIntegrator"]
