"""Domain solvers implementing the ring contract"""

from .mechanics import MomentumRing
from .thermal import ThermalRing
from .species import SpeciesRing
from .heat import HeatSolver1D, HeatSolver2D
from .navier_stokes import NavierStokesSolver, NavierStokes2D, NavierStokes3D
from .electromagnetic import YeeSolver1D
from .quantum import QuantumSolver1D
from .spacetime import MetricTensor4D, SpacetimeRing
from .wave import WaveSolver1D

__all__ = [
    'MomentumRing',
    'ThermalRing',
    'SpeciesRing',
    'HeatSolver1D',
    'HeatSolver2D',
    'NavierStokesSolver',
    'NavierStokes2D',
    'NavierStokes3D',
    'YeeSolver1D',
    'QuantumSolver1D',
    'MetricTensor4D',
    'SpacetimeRing',
    'WaveSolver1D'
]
