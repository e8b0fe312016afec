"""
1D time-dependent Schrödinger equation, Crank-Nicolson propagation

    iħ ∂ψ/∂t = -ħ²/(2m) ∂²ψ/∂x² + V(x) ψ

Hard walls hold ψ = 0 at both ends of the grid. The Crank-Nicolson
propagator (1 + i dt H / 2ħ)⁻¹ (1 - i dt H / 2ħ) is unitary, so the total
probability is conserved to rounding for any dt.
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import splu

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import CouplingData, EnergyContributions, EntropySignature, KinematicState, PhysicalRing, finite_or_none
from ..geometry.grid import Grid1D
from ..utils.initial_conditions import gaussian_wavepacket

logger = logging.getLogger(__name__)

DIELECTRIC_RANGE = (0.1, 10.0)


class QuantumSolver1D(PhysicalRing):
    """
    Wavefunction on a 1D grid (natural units by default)

    The effective potential seen by the propagator is

        V_eff = dielectric_factor · V + phonon_offset

    where both modifiers come from coupling. The LU factorisation of the
    implicit operator is cached per (dt, V_eff) and rebuilt when either
    changes.
    """

    name = 'Quantum (Crank-Nicolson 1D)'

    def __init__(self, grid: Grid1D, hbar: float = 1.0, mass: float = 1.0,
                 ring_id: str = 'quantum', context: Optional[SimulationContext] = None):
        super().__init__(ring_id, context)
        if not isinstance(grid, Grid1D):
            raise ConfigurationError("QuantumSolver1D needs a Grid1D")
        if grid.n < 3:
            raise ConfigurationError("QuantumSolver1D needs at least one interior point")
        if not hbar > 0 or not mass > 0:
            raise ConfigurationError(f"hbar and mass must be positive (hbar={hbar}, mass={mass})")
        self.grid = grid
        self.hbar = hbar
        self.mass = mass
        self.psi = np.zeros(grid.n, dtype=complex)
        self.potential = np.zeros(grid.n)
        self.dielectric_factor = 1.0
        self.phonon_offset = 0.0
        self._potential_version = 0
        self._propagator: Optional[Tuple[Tuple[float, int], object, sparse.csc_matrix]] = None
        self._initial_psi = self.psi.copy()
        self._initial_potential = self.potential.copy()
        self.time = 0.0

    # --- initial states -------------------------------------------------

    def set_wavefunction(self, psi: np.ndarray, normalize: bool = True):
        psi = np.array(psi, dtype=complex)
        if psi.shape != (self.grid.n,):
            raise ConfigurationError(f"Wavefunction must have {self.grid.n} points, got {psi.shape}")
        self._require_finite('wavefunction', psi)
        psi[0] = psi[-1] = 0.0
        if normalize:
            norm = np.sqrt(np.sum(np.abs(psi)**2) * self.grid.dx)
            if norm == 0:
                raise ConfigurationError("Cannot normalise a wavefunction that vanishes everywhere")
            psi = psi / norm
        self.psi = psi
        self._initial_psi = psi.copy()
        self.time = 0.0

    def set_gaussian(self, center: float, sigma: float, momentum: float = 0.0):
        """Gaussian packet with mean momentum ħk = momentum"""
        self.set_wavefunction(gaussian_wavepacket(self.grid, center, sigma, momentum / self.hbar))

    def set_delta(self, position: float):
        """All probability at the interior grid point nearest to position"""
        index = int(round(position / self.grid.dx))
        if not 0 < index < self.grid.n - 1:
            raise ConfigurationError(f"Delta state at x={position} falls on or outside the walls")
        psi = np.zeros(self.grid.n, dtype=complex)
        psi[index] = 1.0
        self.set_wavefunction(psi)

    def set_potential(self, potential):
        """Scalar or per-point potential V(x)"""
        potential = np.broadcast_to(np.asarray(potential, dtype=float), (self.grid.n,)).copy()
        self._require_finite('potential', potential)
        self.potential = potential
        self._initial_potential = potential.copy()
        self._potential_version += 1

    # --- operators ------------------------------------------------------

    def effective_potential(self) -> np.ndarray:
        return self.dielectric_factor * self.potential + self.phonon_offset

    def hamiltonian(self) -> sparse.csc_matrix:
        """Hamiltonian restricted to the interior points (ψ = 0 on the walls)"""
        n = self.grid.n - 2
        kinetic = self.hbar**2 / (2 * self.mass * self.grid.dx**2)
        main = 2 * kinetic + self.effective_potential()[1:-1]
        off = np.full(n - 1, -kinetic)
        return sparse.diags([off, main, off], [-1, 0, 1], format='csc')

    def _get_propagator(self, dt: float):
        key = (dt, self._potential_version)
        if self._propagator is None or self._propagator[0] != key:
            H = self.hamiltonian()
            identity = sparse.identity(H.shape[0], dtype=complex, format='csc')
            factor = 0.5j * dt / self.hbar
            lu = splu((identity + factor * H).tocsc())
            explicit = (identity - factor * H).tocsc()
            self._propagator = (key, lu, explicit)
            logger.debug("%s: factorised propagator for dt=%g", self.ring_id, dt)
        return self._propagator[1], self._propagator[2]

    # --- stepping -------------------------------------------------------

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        energy_before = self.expectation_energy()
        lu, explicit = self._get_propagator(dt)

        psi_new = np.zeros_like(self.psi)
        psi_new[1:-1] = lu.solve(explicit @ self.psi[1:-1])
        self._require_finite('wavefunction', psi_new)
        self.psi = psi_new
        self.time += dt
        return self.expectation_energy() - energy_before

    # --- diagnostics ----------------------------------------------------

    def probability_density(self) -> np.ndarray:
        return np.abs(self.psi)**2

    def total_probability(self) -> float:
        return float(np.sum(self.probability_density()) * self.grid.dx)

    def expectation_position(self) -> float:
        density = self.probability_density()
        probability = np.sum(density)
        if probability == 0:
            return 0.0
        return float(np.sum(self.grid.x * density) / probability)

    def expectation_energy(self) -> float:
        """Re⟨ψ|H|ψ⟩"""
        interior = self.psi[1:-1]
        h_psi = self.hamiltonian() @ interior
        return float(np.real(np.vdot(interior, h_psi)) * self.grid.dx)

    def information_entropy(self) -> float:
        """Shannon entropy -Σ p ln p of the discrete distribution p = |ψ|² dx"""
        p = self.probability_density() * self.grid.dx
        p = p[p > 0]
        return float(-np.sum(p * np.log(p)))

    # --- ring contract --------------------------------------------------

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        changed = False

        factor = finite_or_none(payload.field('dielectric_factor'))
        if factor is not None:
            factor = float(np.clip(factor, *DIELECTRIC_RANGE))
            changed |= factor != self.dielectric_factor
            self.dielectric_factor = factor

        offset = finite_or_none(payload.field('phonon_coupling'))
        if offset is not None:
            changed |= offset != self.phonon_offset
            self.phonon_offset = offset

        if changed:
            self._potential_version += 1

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(quantum=self.expectation_energy())

    def get_entropy(self) -> EntropySignature:
        return EntropySignature(information=self.information_entropy(), irreversible=self.entropy_produced)

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(position=self.expectation_position(), velocity=0.0, mass=self.mass)

    def reset(self):
        self.psi = self._initial_psi.copy()
        self.potential = self._initial_potential.copy()
        self.dielectric_factor = 1.0
        self.phonon_offset = 0.0
        self._potential_version += 1
        self.time = 0.0
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'time': self.time,
            'probability': self.total_probability(),
            'expectation_x': self.expectation_position(),
            'energy': self.expectation_energy(),
            'information_entropy': self.information_entropy(),
            'dielectric_factor': self.dielectric_factor,
        }
