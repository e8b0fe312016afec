"""
1D wave equation ∂²u/∂t² = c² ∂²u/∂x² for a vibrating string

Written as the first order pair ∂u/∂t = v, ∂v/∂t = c² ∂²u/∂x² and advanced
with the kick-drift leapfrog

    v^{n+1} = v^n + dt c² ∆u^n
    u^{n+1} = u^n + dt v^{n+1}

Fixed ends ('dirichlet') pin u = 0 at both ends, free ends ('neumann') use
the ghost-point Laplacian.
"""

import logging
from typing import Dict, Optional

import numpy as np

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import EnergyContributions, KinematicState, PhysicalRing
from ..geometry.derivatives import check_boundary, laplacian
from ..geometry.grid import Grid1D
from ..utils.initial_conditions import gaussian_pulse_1d
from .electromagnetic import CourantCheck

logger = logging.getLogger(__name__)


class WaveSolver1D(PhysicalRing):
    """
    String of linear density ρ under tension τ = ρc²

    The reported energy is the staggered form

        W = ½ρ Σ wᵢ vᵢ² + ½τ Σ wᵢ u^{n-1}ᵢ (-∆u^n)ᵢ

    with trapezoid weights wᵢ, which the leapfrog conserves exactly for
    c·dt/dx < 1. ``set_state`` takes u^n and v^n; the matching
    u^{n-1} = u^n - dt·v^n depends on the step size, so it is rebuilt when
    ``set_state`` is given dt, or else on the first step.

    Example:
        string = WaveSolver1D(Grid1D(201, 1.0), wave_speed=1.0)
        string.set_gaussian(0.01, 0.5, 0.05)
        string.step(0.5 * string.max_stable_dt())
    """

    name = 'Wave (string 1D)'

    def __init__(self, grid: Grid1D, wave_speed: float, linear_density: float = 1.0,
                 bc: str = 'dirichlet', ring_id: str = 'wave',
                 context: Optional[SimulationContext] = None):
        super().__init__(ring_id, context)
        if not isinstance(grid, Grid1D):
            raise ConfigurationError("WaveSolver1D needs a Grid1D")
        if not wave_speed > 0:
            raise ConfigurationError(f"Wave speed must be positive, got {wave_speed}")
        if not linear_density > 0:
            raise ConfigurationError(f"Linear density must be positive, got {linear_density}")
        self.grid = grid
        self.c = float(wave_speed)
        self.rho = float(linear_density)
        self.bc = check_boundary(bc)
        self._weights = grid.integration_weights()

        self.u = grid.zeros()
        self.v = grid.zeros()
        self._u_prev = self.u.copy()
        self._history_pending = False
        self._initial = (self.u.copy(), self.v.copy())
        self.time = 0.0

    @property
    def tension(self) -> float:
        return self.rho * self.c**2

    # --- state ----------------------------------------------------------

    def set_state(self, u: np.ndarray, v: Optional[np.ndarray] = None, dt: Optional[float] = None):
        """
        Install displacement and velocity; fixed ends are forced to rest at zero

        Args:
            u: Displacement on the grid nodes (m)
            v: Velocity on the grid nodes (m/s), zero when omitted
            dt: Step size the run will use; with a nonzero v it makes the
                reported energy exact before the first step
        """
        u = np.array(u, dtype=float)
        v = np.zeros(self.grid.n) if v is None else np.array(v, dtype=float)
        for label, values in (('displacement', u), ('velocity', v)):
            if values.shape != (self.grid.n,):
                raise ConfigurationError(
                    f"{label} must have {self.grid.n} nodes, got {values.shape}"
                )
            self._require_finite(label, values)
        if self.bc == 'dirichlet':
            u[0] = u[-1] = 0.0
            v[0] = v[-1] = 0.0
        self.u = u
        self.v = v
        self._u_prev = u.copy()
        self._history_pending = bool(np.any(v))
        if dt is not None and self._history_pending:
            self._rebuild_history(dt)
        self._initial = (u.copy(), v.copy())

    def set_gaussian(self, amplitude: float, center: float, sigma: float):
        """Plucked string at rest; the pulse splits into two halves moving apart"""
        self.set_state(gaussian_pulse_1d(self.grid, amplitude, center, sigma))

    def _rebuild_history(self, dt: float):
        self._u_prev = self.u - dt * self.v
        self._history_pending = False

    # --- diagnostics ----------------------------------------------------

    def kinetic_energy(self) -> float:
        return float(0.5 * self.rho * np.sum(self._weights * self.v**2))

    def potential_energy(self) -> float:
        stretch = -laplacian(self.u, self.grid.spacings, self.bc)
        return float(0.5 * self.tension * np.sum(self._weights * self._u_prev * stretch))

    def total_energy(self) -> float:
        return self.kinetic_energy() + self.potential_energy()

    def max_displacement(self) -> float:
        return float(np.max(np.abs(self.u)))

    def courant_number(self, dt: float) -> float:
        return self.c * dt / self.grid.dx

    def check_cfl(self, dt: float) -> CourantCheck:
        """Stable for c·dt/dx < 1"""
        courant = self.courant_number(dt)
        return CourantCheck(courant < 1.0, courant)

    def max_stable_dt(self) -> float:
        return self.grid.dx / self.c

    # --- contract -------------------------------------------------------

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        check = self.check_cfl(dt)
        if not check.ok:
            logger.warning("%s: Courant number %.3f is not below 1 at dt=%g",
                           self.ring_id, check.courant, dt)
        if self._history_pending:
            self._rebuild_history(dt)

        energy_before = self.total_energy()

        lap = laplacian(self.u, self.grid.spacings, self.bc)
        v_new = self.v + dt * self.c**2 * lap
        u_new = self.u + dt * v_new
        self._require_finite('displacement', u_new)

        self._u_prev = self.u
        self.u = u_new
        self.v = v_new
        self.time += dt
        return self.total_energy() - energy_before

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(kinetic=self.kinetic_energy(), potential=self.potential_energy())

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(position=self.max_displacement(), velocity=self.c,
                              mass=self.rho * self.grid.length)

    def reset(self):
        u, v = self._initial
        self.u = u.copy()
        self.v = v.copy()
        self._u_prev = self.u.copy()
        self._history_pending = bool(np.any(self.v))
        self.time = 0.0
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'kinetic_energy': self.kinetic_energy(),
            'potential_energy': self.potential_energy(),
            'max_displacement': self.max_displacement(),
            'wave_speed': self.c,
        }
