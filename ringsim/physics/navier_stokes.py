"""
Incompressible Navier-Stokes solver (2D/3D) using the projection method

One step:

1. advection (v·∇)v with central differences, one-sided at boundaries
2. provisional velocity u* = u + dt(-adv + ν∆u + F/ρ) on interior points
3. Poisson right-hand side (ρ/dt) div(u*)
4. pressure solve by SOR
5. projection u = u* - (dt/ρ)∇p on interior points

Boundary velocities are held fixed. The caller must respect the advective
and viscous stability limits; ``check_cfl`` and ``max_stable_dt`` compute
them but the solver never shrinks dt by itself.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..core.config import SORConfig
from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import (
    CouplingData,
    EnergyContributions,
    EntropySignature,
    KinematicState,
    PhysicalRing,
    finite_or_none
)
from ..geometry.derivatives import curl_2d, curl_3d, derivative, divergence, laplacian
from ..geometry.grid import Grid2D, Grid3D
from ..numerics.pressure_poisson import SORPoissonSolver, SORResult
from ..utils.initial_conditions import taylor_green_2d, taylor_green_3d

logger = logging.getLogger(__name__)

VISCOSITY_CLAMP = (0.5, 2.0)


@dataclass
class CFLCheck:
    ok: bool
    advection: float
    diffusion: float


class NavierStokesSolver(PhysicalRing):
    """
    Dimension-agnostic projection solver; see NavierStokes2D/3D
    """

    name = 'Incompressible fluid'

    def __init__(self, grid, nu: float, rho: float,
                 ring_id: str = 'fluid',
                 context: Optional[SimulationContext] = None,
                 sor_config: Optional[SORConfig] = None):
        """
        Args:
            grid: Grid2D or Grid3D
            nu: Kinematic viscosity (m²/s)
            rho: Density (kg/m³)
            ring_id: Identifier used by the orchestrator
            context: Session context (bounds, configuration)
            sor_config: Pressure solver settings, defaults to the context's
        """
        super().__init__(ring_id, context)
        if nu < 0:
            raise ConfigurationError(f"Viscosity must be non-negative, got {nu}")
        self.context.enforce('density', rho, ring_id)

        self.grid = grid
        self.nu_base = nu
        self.nu_effective = nu
        self.rho = rho
        self.time = 0.0

        self.velocity: List[np.ndarray] = [grid.zeros() for _ in range(grid.ndim)]
        self.forcing: List[np.ndarray] = [grid.zeros() for _ in range(grid.ndim)]
        self.pressure = grid.zeros()
        self._initial_velocity = [c.copy() for c in self.velocity]

        self.poisson = SORPoissonSolver(grid.shape, grid.spacings,
                                        sor_config or self.context.config.sor)
        self.last_solve: Optional[SORResult] = None
        self.last_divergence = (0.0, 0.0)
        self.rejected_projections = 0

    # --- state ----------------------------------------------------------

    def set_velocity(self, *components: np.ndarray):
        """Install a velocity field; it becomes the state ``reset`` returns to"""
        if len(components) != self.grid.ndim:
            raise ConfigurationError(
                f"Expected {self.grid.ndim} velocity components, got {len(components)}"
            )
        for comp in components:
            if np.shape(comp) != self.grid.shape:
                raise ConfigurationError(
                    f"Velocity component shape {np.shape(comp)} does not match grid {self.grid.shape}"
                )
        self.velocity = [np.array(c, dtype=float) for c in components]
        self._require_finite('velocity', self.velocity)
        self._initial_velocity = [c.copy() for c in self.velocity]
        self.pressure = self.grid.zeros()

    def clear_forcing(self):
        for f in self.forcing:
            f[...] = 0.0

    # --- operators ------------------------------------------------------

    def _advection(self, components: Sequence[np.ndarray]) -> List[np.ndarray]:
        """(v·∇)f for every velocity component f"""
        spacings = self.grid.spacings
        terms = []
        for f in components:
            adv = np.zeros_like(f)
            for axis, (v_axis, h) in enumerate(zip(components, spacings)):
                adv += v_axis * derivative(f, h, axis)
            terms.append(adv)
        return terms

    def _interior_divergence(self, components: Sequence[np.ndarray]) -> np.ndarray:
        return divergence(components, self.grid.spacings)[self.grid.interior]

    def _provisional_velocity(self, dt: float) -> List[np.ndarray]:
        interior = self.grid.interior
        advection = self._advection(self.velocity)
        u_star = []
        for comp, adv, force in zip(self.velocity, advection, self.forcing):
            lap = laplacian(comp, self.grid.spacings, 'dirichlet')
            rate = -adv + self.nu_effective * lap + force / self.rho
            new = comp.copy()
            new[interior] += dt * rate[interior]
            u_star.append(new)
        return u_star

    def _project(self, u_star: Sequence[np.ndarray], dt: float) -> List[np.ndarray]:
        interior = self.grid.interior
        rhs = np.zeros(self.grid.shape)
        rhs[interior] = (self.rho / dt) * self._interior_divergence(u_star)

        self.last_solve = self.poisson.solve(rhs)
        if not self.last_solve.converged:
            logger.warning("%s: pressure solve not converged after %d iterations "
                           "(last update %.3e)", self.ring_id,
                           self.last_solve.iterations, self.last_solve.max_update)
        self.pressure = self.last_solve.pressure

        factor = dt / self.rho
        projected = []
        for axis, (comp, h) in enumerate(zip(u_star, self.grid.spacings)):
            new = comp.copy()
            new[interior] -= factor * derivative(self.pressure, h, axis)[interior]
            projected.append(new)
        return projected

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        if dt <= 0:
            raise ConfigurationError(f"Time step must be positive, got {dt}")
        energy_before = self.kinetic_energy()

        if self.grid.has_interior:
            u_star = self._provisional_velocity(dt)
            self._require_finite('provisional velocity', u_star)
            u_new = self._project(u_star, dt)

            div_star = float(np.max(np.abs(self._interior_divergence(u_star))))
            div_new = float(np.max(np.abs(self._interior_divergence(u_new))))
            if div_new > div_star:
                # projection must never make the field less solenoidal
                logger.warning("%s: projection raised max divergence %.3e -> %.3e, "
                               "keeping provisional field", self.ring_id, div_star, div_new)
                self.rejected_projections += 1
                u_new = u_star
                div_new = div_star
            self._require_finite('velocity', u_new)
            self.velocity = u_new
            self.last_divergence = (div_star, div_new)

        self.time += dt
        energy_after = self.kinetic_energy()
        dissipated = energy_before - energy_after
        if dissipated > 0:
            self.produce_entropy(dissipated / self.context.config.reference_temperature)
        return energy_after - energy_before

    # --- diagnostics ----------------------------------------------------

    def speed(self) -> np.ndarray:
        return np.sqrt(sum(c**2 for c in self.velocity))

    def max_velocity(self) -> float:
        return float(np.max(self.speed()))

    def max_divergence(self) -> float:
        """Largest |div v| over interior points"""
        if not self.grid.has_interior:
            return 0.0
        return float(np.max(np.abs(self._interior_divergence(self.velocity))))

    def kinetic_energy(self) -> float:
        """½ρ|v|² summed over grid points times the cell volume"""
        return float(0.5 * self.rho * np.sum(sum(c**2 for c in self.velocity))
                     * self.grid.cell_volume)

    @abstractmethod
    def vorticity_squared(self) -> np.ndarray:
        """Squared vorticity magnitude at every grid point"""

    def enstrophy(self) -> float:
        return float(np.sum(self.vorticity_squared()) * self.grid.cell_volume)

    def max_vorticity(self) -> float:
        return float(np.sqrt(np.max(self.vorticity_squared())))

    def check_cfl(self, dt: float) -> CFLCheck:
        """
        Advective number |v|max dt / h and viscous number ν dt / h²

        The viscous limit is the 1D bound divided by the number of dimensions.
        """
        limits = self.context.config.stability
        h = self.grid.min_spacing
        advection = self.max_velocity() * dt / h
        diffusion = self.nu_effective * dt / (h * h)
        ok = advection < limits.advective and diffusion < limits.diffusive / self.grid.ndim
        return CFLCheck(ok, advection, diffusion)

    def max_stable_dt(self) -> float:
        limits = self.context.config.stability
        h = self.grid.min_spacing
        bounds = []
        v_max = self.max_velocity()
        if v_max > 0:
            bounds.append(limits.advective * h / v_max)
        if self.nu_effective > 0:
            bounds.append(limits.diffusive / self.grid.ndim * h * h / self.nu_effective)
        return min(bounds) if bounds else float('inf')

    # --- contract -------------------------------------------------------

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(kinetic=self.kinetic_energy())

    def get_entropy(self) -> EntropySignature:
        return EntropySignature(irreversible=self.entropy_produced)

    def get_kinematic_state(self) -> KinematicState:
        volume = float(np.prod([n * h for n, h in zip(self.grid.shape, self.grid.spacings)]))
        return KinematicState(position=0.0, velocity=self.max_velocity(), mass=self.rho * volume)

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        """
        Update the effective viscosity from 'viscosity_scale' or 'viscosity'

        The result is clamped to [0.5, 2.0] times the base viscosity.
        """
        scale = finite_or_none(payload.field('viscosity_scale'))
        nu = finite_or_none(payload.field('viscosity'))
        if scale is not None:
            nu = self.nu_base * scale
        if nu is None:
            return
        low, high = VISCOSITY_CLAMP
        self.nu_effective = float(np.clip(nu, low * self.nu_base, high * self.nu_base))

    def reset(self):
        self.velocity = [c.copy() for c in self._initial_velocity]
        self.pressure = self.grid.zeros()
        self.clear_forcing()
        self.nu_effective = self.nu_base
        self.entropy_produced = 0.0
        self.time = 0.0
        self.rejected_projections = 0
        self.last_solve = None

    def serialize(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'kinetic_energy': self.kinetic_energy(),
            'enstrophy': self.enstrophy(),
            'max_velocity': self.max_velocity(),
            'max_divergence': self.max_divergence(),
            'nu_effective': self.nu_effective,
            'rho': self.rho,
            'sor_iterations': float(self.last_solve.iterations if self.last_solve else 0),
        }


class NavierStokes2D(NavierStokesSolver):
    """
    2D incompressible flow on a uniform rectangular grid

    Example:
        grid = Grid2D(33, 33, 1.0, 1.0)
        fluid = NavierStokes2D(grid, nu=0.01, rho=1.0)
        fluid.set_taylor_green(1.0)
        fluid.step(1e-3)
    """

    def __init__(self, grid: Grid2D, nu: float, rho: float, **kwargs):
        if not isinstance(grid, Grid2D):
            raise ConfigurationError("NavierStokes2D needs a Grid2D")
        super().__init__(grid, nu, rho, **kwargs)

    @property
    def vx(self) -> np.ndarray:
        return self.velocity[0]

    @property
    def vy(self) -> np.ndarray:
        return self.velocity[1]

    def set_taylor_green(self, amplitude: float = 1.0):
        self.set_velocity(*taylor_green_2d(self.grid, amplitude))

    def vorticity(self) -> np.ndarray:
        return curl_2d(self.vx, self.vy, self.grid.spacings)

    def vorticity_squared(self) -> np.ndarray:
        return self.vorticity()**2

    def apply_stirring(self, x_center: float, y_center: float, omega: float, radius: float):
        """
        Azimuthal body force of magnitude omega inside a disc

        Replaces any previous forcing; points closer than 1% of the radius
        to the centre are left unforced.
        """
        self.clear_forcing()
        x, y = self.grid.coordinates()
        dx = x - x_center
        dy = y - y_center
        r = np.sqrt(dx**2 + dy**2)
        inside = (r < radius) & (r > 0.01 * radius)
        safe_r = np.where(inside, r, 1.0)
        self.forcing[0][inside] = (-omega * dy / safe_r)[inside]
        self.forcing[1][inside] = (omega * dx / safe_r)[inside]


class NavierStokes3D(NavierStokesSolver):
    """3D incompressible flow on a uniform box grid"""

    def __init__(self, grid: Grid3D, nu: float, rho: float, **kwargs):
        if not isinstance(grid, Grid3D):
            raise ConfigurationError("NavierStokes3D needs a Grid3D")
        super().__init__(grid, nu, rho, **kwargs)

    @property
    def u(self) -> np.ndarray:
        return self.velocity[0]

    @property
    def v(self) -> np.ndarray:
        return self.velocity[1]

    @property
    def w(self) -> np.ndarray:
        return self.velocity[2]

    def set_taylor_green(self, amplitude: float = 1.0):
        self.set_velocity(*taylor_green_3d(self.grid, amplitude))

    def vorticity(self):
        return curl_3d(self.u, self.v, self.w, self.grid.spacings)

    def vorticity_squared(self) -> np.ndarray:
        omega_x, omega_y, omega_z = self.vorticity()
        return omega_x**2 + omega_y**2 + omega_z**2
