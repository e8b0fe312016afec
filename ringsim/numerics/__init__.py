"""Time integrators, pressure solver and timestep control"""

from .integrators import (
    Integrator,
    IntegrationResult,
    ForwardEuler,
    Midpoint,
    RungeKutta4,
    SymplecticEuler,
    VelocityVerlet,
    available_integrators,
    get_integrator
)
from .pressure_poisson import SORPoissonSolver, SORResult
from .time_integration import AdaptiveTimeStep

__all__ = [
    'Integrator',
    'IntegrationResult',
    'ForwardEuler',
    'Midpoint',
    'RungeKutta4',
    'SymplecticEuler',
    'VelocityVerlet',
    'available_integrators',
    'get_integrator',
    'SORPoissonSolver',
    'SORResult',
    'AdaptiveTimeStep'
]
