"""
1D electromagnetic solver on a Yee (staggered) grid

E lives on the N grid nodes, H on the N-1 half nodes between them.
Leapfrog update with H half a step behind E:

    H^{n+1/2} = H^{n-1/2} + dt/(μ dx) (E^n_{i+1} - E^n_i)
    E^{n+1}   = E^n       + dt/(ε dx) (H^{n+1/2}_{i+1/2} - H^{n+1/2}_{i-1/2})

Perfectly conducting walls hold E = 0 at both ends.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import CouplingData, EnergyContributions, KinematicState, PhysicalRing
from ..geometry.grid import Grid1D
from ..utils.initial_conditions import gaussian_pulse_1d

logger = logging.getLogger(__name__)

EPS0 = 8.854e-12  # Vacuum permittivity (F/m)
MU0 = 1.257e-6    # Vacuum permeability (H/m)
C = 299792458.0   # Speed of light (m/s)


@dataclass
class CourantCheck:
    ok: bool
    courant: float


class YeeSolver1D(PhysicalRing):
    """
    Source-free, lossless Maxwell solver in one dimension

    The reported field energy uses the staggered form

        W = ½ Σ μ (H^{n+½})² dx + ½ Σ ε E^n E^{n+1} dx

    which the leapfrog scheme conserves exactly, so it never grows in a
    lossless run. A field installed with ``set_field`` is read as E^n with
    H^{n-½}; the matching E^{n-1} depends on the step size, so it is rebuilt
    when ``set_field`` is given dt, or else on the first step.
    """

    name = 'Electromagnetic (Yee 1D)'

    def __init__(self, grid: Grid1D, relative_permittivity=1.0, relative_permeability: float = 1.0,
                 ring_id: str = 'em', context: Optional[SimulationContext] = None):
        super().__init__(ring_id, context)
        if not isinstance(grid, Grid1D):
            raise ConfigurationError("YeeSolver1D needs a Grid1D")
        if not relative_permeability > 0:
            raise ConfigurationError(
                f"Relative permeability must be positive, got {relative_permeability}"
            )
        self.grid = grid
        self.mu = MU0 * relative_permeability
        self.eps = self._permittivity(relative_permittivity)
        self.E = np.zeros(grid.n)
        self.H = np.zeros(grid.n - 1)
        self._E_prev = self.E.copy()
        self._history_pending = False
        self._initial = (self.E.copy(), self.H.copy(), self.eps.copy())
        self.time = 0.0

    def _permittivity(self, relative) -> np.ndarray:
        relative = np.broadcast_to(np.asarray(relative, dtype=float), (self.grid.n,))
        self._require_finite('permittivity', relative)
        return EPS0 * np.maximum(relative, 1.0)

    def set_permittivity(self, relative_permittivity):
        """Scalar or per-node relative permittivity, clamped so ε >= ε0"""
        self.eps = self._permittivity(relative_permittivity)

    def set_field(self, E: np.ndarray, H: Optional[np.ndarray] = None, dt: Optional[float] = None):
        """
        Install E on the nodes and H half a step behind it on the half nodes

        Args:
            E: Electric field, forced to zero on the walls
            H: Magnetic field, zero when omitted
            dt: Step size the run will use; with a nonzero H it makes
                ``field_energy`` exact before the first step
        """
        E = np.array(E, dtype=float)
        if E.shape != (self.grid.n,):
            raise ConfigurationError(f"E must have {self.grid.n} nodes, got {E.shape}")
        H = np.zeros(self.grid.n - 1) if H is None else np.array(H, dtype=float)
        if H.shape != (self.grid.n - 1,):
            raise ConfigurationError(f"H must have {self.grid.n - 1} half nodes, got {H.shape}")
        self._require_finite('field', E)
        self._require_finite('field', H)
        E[0] = E[-1] = 0.0
        self.E = E
        self.H = H
        self._E_prev = E.copy()
        self._history_pending = bool(np.any(H))
        if dt is not None and self._history_pending:
            self._rebuild_history(dt)
        self._initial = (E.copy(), H.copy(), self.eps.copy())

    def _rebuild_history(self, dt: float):
        """E^{n-1}: the field that a step with the current H carries into E^n"""
        E_prev = self.E.copy()
        E_prev[1:-1] -= dt / (self.eps[1:-1] * self.grid.dx) * np.diff(self.H)
        self._E_prev = E_prev
        self._history_pending = False

    def set_gaussian_pulse(self, amplitude: float, center: float, sigma: float):
        """Gaussian E pulse with H at rest; it splits into two counter-propagating halves"""
        self.set_field(gaussian_pulse_1d(self.grid, amplitude, center, sigma))

    def wave_speed(self) -> np.ndarray:
        return 1.0 / np.sqrt(self.eps * self.mu)

    def courant_number(self, dt: float) -> float:
        return float(np.max(self.wave_speed()) * dt / self.grid.dx)

    def check_cfl(self, dt: float) -> CourantCheck:
        """Stable for c_max·dt/dx <= 1"""
        courant = self.courant_number(dt)
        return CourantCheck(courant <= 1.0, courant)

    def max_stable_dt(self) -> float:
        return self.grid.dx / float(np.max(self.wave_speed()))

    def field_energy(self) -> float:
        dx = self.grid.dx
        magnetic = 0.5 * self.mu * np.sum(self.H**2) * dx
        electric = 0.5 * np.sum(self.eps * self._E_prev * self.E) * dx
        return float(magnetic + electric)

    def peak_e(self) -> float:
        return float(np.max(np.abs(self.E)))

    def peak_h(self) -> float:
        return float(np.max(np.abs(self.H)))

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        check = self.check_cfl(dt)
        if not check.ok:
            logger.warning("%s: Courant number %.3f exceeds 1 at dt=%g", self.ring_id, check.courant, dt)
        if self._history_pending:
            self._rebuild_history(dt)

        energy_before = self.field_energy()
        dx = self.grid.dx

        self.H = self.H + dt / (self.mu * dx) * np.diff(self.E)
        E_new = self.E.copy()
        E_new[1:-1] += dt / (self.eps[1:-1] * dx) * np.diff(self.H)
        E_new[0] = E_new[-1] = 0.0

        self._require_finite('field', E_new)
        self._E_prev = self.E
        self.E = E_new
        self.time += dt
        return self.field_energy() - energy_before

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        value = payload.field('relative_permittivity')
        if value is None:
            return
        try:
            relative = np.broadcast_to(np.asarray(value, dtype=float), (self.grid.n,))
        except (TypeError, ValueError):
            logger.warning("%s: ignoring permittivity of unusable shape from %s", self.ring_id, source_id)
            return
        if not np.all(np.isfinite(relative)):
            logger.warning("%s: ignoring non-finite permittivity from %s", self.ring_id, source_id)
            return
        self.eps = EPS0 * np.maximum(relative, 1.0)

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(electromagnetic=self.field_energy())

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(position=self.peak_e(), velocity=float(np.max(self.wave_speed())))

    def reset(self):
        E, H, eps = self._initial
        self.E = E.copy()
        self.H = H.copy()
        self.eps = eps.copy()
        self._E_prev = self.E.copy()
        self._history_pending = bool(np.any(self.H))
        self.time = 0.0
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'field_energy': self.field_energy(),
            'peak_E': self.peak_e(),
            'peak_H': self.peak_h(),
            'min_relative_permittivity': float(np.min(self.eps) / EPS0),
        }
