"""
Adaptive timestep control for the grid-backed solvers
"""

import logging

import numpy as np

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AdaptiveTimeStep:
    """
    Adaptive time stepping based on a solver's stability bound

    Works with any solver exposing ``max_stable_dt()`` (Navier-Stokes,
    heat, Yee).
    """

    def __init__(self, cfl_number: float = 0.5, min_dt: float = 1e-6, max_dt: float = 1e-2):
        """
        Initialize adaptive time stepping

        Args:
            cfl_number: Safety factor applied to the stability bound
            min_dt: Minimum allowed time step
            max_dt: Maximum allowed time step
        """
        if not 0 < cfl_number <= 1:
            raise ConfigurationError(f"CFL number must lie in (0, 1], got {cfl_number}")
        if not 0 < min_dt <= max_dt:
            raise ConfigurationError(f"Need 0 < min_dt <= max_dt, got {min_dt}, {max_dt}")
        self.cfl_number = cfl_number
        self.min_dt = min_dt
        self.max_dt = max_dt

    def compute_dt(self, solver) -> float:
        """
        Compute adaptive time step
        """
        bound = solver.max_stable_dt()
        if not np.isfinite(bound):
            return self.max_dt

        dt = float(np.clip(self.cfl_number * bound, self.min_dt, self.max_dt))
        if dt > bound:
            logger.warning("Minimum time step %g exceeds the stability bound %g", self.min_dt, bound)
        return dt
