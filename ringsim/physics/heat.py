"""
Heat diffusion solvers (1D/2D), explicit FTCS scheme

With Neumann (no-flux) boundaries the thermal energy

    E = ρ·cp·Σ wᵢ Tᵢ

with trapezoid weights wᵢ is conserved exactly by the ghost-point
Laplacian, so no rescaling is applied after a step.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import CouplingData, EnergyContributions, EntropySignature, KinematicState, PhysicalRing
from ..geometry.derivatives import check_boundary, laplacian
from ..geometry.grid import Grid1D, Grid2D
from ..utils.initial_conditions import gaussian_pulse_1d, gaussian_pulse_2d

logger = logging.getLogger(__name__)


@dataclass
class DiffusionCheck:
    ok: bool
    number: float


class HeatSolver(PhysicalRing):
    """Shared FTCS machinery for HeatSolver1D and HeatSolver2D"""

    name = 'Heat diffusion'

    def __init__(self, grid, alpha: float, rho: float = 1000.0, cp: float = 1000.0,
                 bc: str = 'neumann', ring_id: str = 'heat',
                 context: Optional[SimulationContext] = None):
        super().__init__(ring_id, context)
        if not alpha > 0:
            raise ConfigurationError(f"Thermal diffusivity must be positive, got {alpha}")
        self.context.enforce('density', rho, ring_id)
        self.grid = grid
        self.alpha = alpha
        self.rho = rho
        self.cp = cp
        self.bc = check_boundary(bc)
        self.field = grid.zeros()
        self._initial_field = self.field.copy()
        self._weights = grid.integration_weights()
        self._pending_heat = 0.0
        self.time = 0.0

    def set_field(self, values: np.ndarray):
        values = np.array(values, dtype=float)
        if values.shape != self.grid.shape:
            raise ConfigurationError(
                f"Field shape {values.shape} does not match grid {self.grid.shape}"
            )
        self._require_finite('temperature', values)
        self.field = values
        self._initial_field = values.copy()

    def set_initial_condition(self, init: Callable[..., np.ndarray]):
        """Evaluate init on the grid coordinates"""
        self.set_field(init(*self.grid.coordinates()))

    def thermal_energy(self) -> float:
        return float(self.rho * self.cp * np.sum(self._weights * self.field))

    def total_heat_capacity(self) -> float:
        return float(self.rho * self.cp * np.sum(self._weights))

    def thermal_entropy(self) -> float:
        """ρ·cp·Σ wᵢ ln Tᵢ over points with positive temperature"""
        positive = self.field > 0
        if not positive.any():
            return 0.0
        return float(self.rho * self.cp * np.sum(self._weights[positive] * np.log(self.field[positive])))

    def get_max(self) -> float:
        return float(np.max(self.field))

    def get_min(self) -> float:
        return float(np.min(self.field))

    def get_average(self) -> float:
        return float(np.sum(self._weights * self.field) / np.sum(self._weights))

    def diffusion_number(self, dt: float) -> float:
        return self.alpha * dt * sum(1.0 / h**2 for h in self.grid.spacings)

    def check_cfl(self, dt: float) -> DiffusionCheck:
        """FTCS is stable for α·dt·Σ 1/h² <= 1/2"""
        number = self.diffusion_number(dt)
        return DiffusionCheck(number <= 0.5, number)

    def max_stable_dt(self) -> float:
        return 0.5 / (self.alpha * sum(1.0 / h**2 for h in self.grid.spacings))

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        energy_before = self.thermal_energy()
        entropy_before = self.thermal_entropy()

        lap = laplacian(self.field, self.grid.spacings, self.bc)
        new = self.field + dt * self.alpha * lap
        if self._pending_heat:
            new = self._add_heat(new, self._pending_heat * dt)
            self._pending_heat = 0.0
        self._require_finite('temperature', new)
        self.field = new
        self.time += dt

        # mixing of a positive temperature field only ever raises Σ w ln T
        produced = self.thermal_entropy() - entropy_before
        if produced > 0 and np.all(self.field > 0):
            self.produce_entropy(produced)
        return self.thermal_energy() - energy_before

    def _add_heat(self, field: np.ndarray, amount: float) -> np.ndarray:
        new = field + amount / self.total_heat_capacity()
        # diffusion never lowers the minimum, so only heat removal can reach 0 K
        if amount < 0:
            self.context.enforce('temperature', float(np.min(new)), self.ring_id)
        return new

    def absorb_energy(self, amount: float) -> float:
        """
        Spread the energy uniformly over the domain

        Raises:
            PhysicalBoundViolation: when removing heat would take any point
                to or below absolute zero
        """
        self.field = self._add_heat(self.field, amount)
        return amount

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        flux = payload.energy_flux
        if np.isfinite(flux):
            self._pending_heat += flux

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(thermal=self.thermal_energy())

    def get_entropy(self) -> EntropySignature:
        return EntropySignature(thermal=self.thermal_entropy(), irreversible=self.entropy_produced)

    def get_kinematic_state(self) -> KinematicState:
        mass = self.rho * float(np.sum(self._weights))
        return KinematicState(position=self.get_average(), velocity=0.0, mass=mass)

    def reset(self):
        self.field = self._initial_field.copy()
        self._pending_heat = 0.0
        self.entropy_produced = 0.0
        self.time = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'thermal_energy': self.thermal_energy(),
            'max_temperature': self.get_max(),
            'min_temperature': self.get_min(),
            'average_temperature': self.get_average(),
            'alpha': self.alpha,
        }


class HeatSolver1D(HeatSolver):
    """
    1D heat equation ∂T/∂t = α ∂²T/∂x²

    Example:
        solver = HeatSolver1D(Grid1D(101, 1.0), alpha=0.01)
        solver.set_gaussian(100.0, 0.5, 0.05)
    """

    def __init__(self, grid: Grid1D, alpha: float, **kwargs):
        if not isinstance(grid, Grid1D):
            raise ConfigurationError("HeatSolver1D needs a Grid1D")
        super().__init__(grid, alpha, **kwargs)

    def set_gaussian(self, amplitude: float, center: float, sigma: float, baseline: float = 0.0):
        self.set_field(gaussian_pulse_1d(self.grid, amplitude, center, sigma, baseline))


class HeatSolver2D(HeatSolver):
    """2D heat equation on a rectangular grid"""

    def __init__(self, grid: Grid2D, alpha: float, **kwargs):
        if not isinstance(grid, Grid2D):
            raise ConfigurationError("HeatSolver2D needs a Grid2D")
        super().__init__(grid, alpha, **kwargs)

    def set_gaussian(self, amplitude: float, center: Tuple[float, float], sigma: float,
                     baseline: float = 0.0):
        self.set_field(gaussian_pulse_2d(self.grid, amplitude, center, sigma, baseline))
