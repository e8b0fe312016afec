"""
Spacetime metric evaluation (geometric units, G = c = 1)

Coordinates are ordered (t, r, θ, φ) for curved metrics and (t, x, y, z)
for flat space. The signature convention is (-, +, +, +).
"""

import logging
import math
from typing import Dict, Optional, Sequence

import numpy as np

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError, NumericalInstability
from ..core.ring import CouplingData, EnergyContributions, KinematicState, PhysicalRing, finite_or_none

logger = logging.getLogger(__name__)


class MetricTensor4D:
    """
    A symmetric 4x4 metric g_μν evaluated at a single event

    Construction validates the components, so every instance is finite
    and invertible.
    """

    def __init__(self, components: Optional[np.ndarray] = None):
        if components is None:
            components = np.diag([-1.0, 1.0, 1.0, 1.0])
        components = np.array(components, dtype=float)
        if components.shape != (4, 4):
            raise ConfigurationError(f"Metric must be 4x4, got shape {components.shape}")
        if not np.all(np.isfinite(components)):
            raise NumericalInstability("Metric has non-finite components")
        if not np.allclose(components, components.T):
            raise ConfigurationError("Metric must be symmetric")
        if self._is_singular(components):
            raise NumericalInstability("Metric is singular")
        self.components = components

    @staticmethod
    def _is_singular(components: np.ndarray) -> bool:
        # normalise by the diagonal so the test is independent of the coordinate scales
        diagonal = np.abs(np.diag(components))
        scale = np.where(diagonal > 0, 1.0 / np.sqrt(np.where(diagonal > 0, diagonal, 1.0)), 1.0)
        return abs(np.linalg.det(components * np.outer(scale, scale))) < 1e-12

    @classmethod
    def minkowski(cls) -> 'MetricTensor4D':
        return cls()

    @classmethod
    def schwarzschild(cls, r: float, mass: float, theta: float = math.pi / 2) -> 'MetricTensor4D':
        """
        Exterior Schwarzschild metric diag(-f, 1/f, r², r² sin²θ), f = 1 - 2M/r

        Raises:
            NumericalInstability: on or inside the horizon (f <= 0), or where
                the angular part degenerates (θ on the polar axis)
        """
        if mass < 0:
            raise ConfigurationError(f"Mass parameter must be non-negative, got {mass}")
        if not r > 0:
            raise NumericalInstability(f"Schwarzschild metric undefined at r={r}")
        f = 1.0 - 2.0 * mass / r
        if f <= 0:
            raise NumericalInstability(
                f"r={r} lies on or inside the horizon r_s={2.0 * mass} (f={f})"
            )
        return cls(np.diag([-f, 1.0 / f, r**2, r**2 * math.sin(theta)**2]))

    def __getitem__(self, index):
        return self.components[index]

    def determinant(self) -> float:
        return float(np.linalg.det(self.components))

    def inverse(self) -> np.ndarray:
        """Contravariant metric g^μν"""
        return np.linalg.inv(self.components)

    def interval(self, dx: Sequence[float]) -> float:
        """ds² = g_μν dx^μ dx^ν"""
        dx = np.asarray(dx, dtype=float)
        if dx.shape != (4,):
            raise ConfigurationError(f"Displacement must have 4 components, got {dx.shape}")
        return float(dx @ self.components @ dx)

    def classify(self, dx: Sequence[float], tol: float = 1e-12) -> str:
        """'timelike', 'spacelike' or 'null'"""
        ds2 = self.interval(dx)
        if abs(ds2) <= tol:
            return 'null'
        return 'timelike' if ds2 < 0 else 'spacelike'

    def signature(self):
        eigenvalues = np.linalg.eigvalsh(self.components)
        return int(np.sum(eigenvalues < 0)), int(np.sum(eigenvalues > 0))

    def is_lorentzian(self) -> bool:
        """One negative and three positive eigenvalues"""
        return self.signature() == (1, 3)

    def __repr__(self) -> str:
        return f"MetricTensor4D(diag={np.diag(self.components).tolist()})"


class SpacetimeRing(PhysicalRing):
    """
    Static observer hovering at radius r outside a mass M

    The observer's clock runs slow against coordinate time by the lapse
    √f, so each step advances proper time by √f·dt. The ring stores no
    energy of its own.
    """

    name = 'Spacetime (static observer)'

    def __init__(self, radius: float, mass_parameter: float = 0.0,
                 ring_id: str = 'spacetime', context: Optional[SimulationContext] = None):
        super().__init__(ring_id, context)
        self.radius = float(radius)
        self.metric = MetricTensor4D.schwarzschild(self.radius, mass_parameter)
        self.mass_parameter = float(mass_parameter)
        self.coordinate_time = 0.0
        self.proper_time = 0.0
        self._initial_mass = self.mass_parameter

    def lapse(self) -> float:
        return math.sqrt(-self.metric[0, 0])

    def set_mass_parameter(self, mass: float):
        """Clamp into [0, r/2) so the observer stays outside the horizon"""
        upper = math.nextafter(self.radius / 2.0, 0.0)
        clamped = min(max(mass, 0.0), upper)
        if clamped != mass:
            logger.warning("%s: mass parameter %g clamped to %g", self.ring_id, mass, clamped)
        self.metric = MetricTensor4D.schwarzschild(self.radius, clamped)
        self.mass_parameter = clamped

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        self.coordinate_time += dt
        self.proper_time += self.lapse() * dt
        return 0.0

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        mass = finite_or_none(payload.field('mass_parameter'))
        if mass is not None:
            self.set_mass_parameter(mass)

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions()

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(position=self.radius, velocity=0.0, mass=self.mass_parameter)

    def reset(self):
        self.metric = MetricTensor4D.schwarzschild(self.radius, self._initial_mass)
        self.mass_parameter = self._initial_mass
        self.coordinate_time = 0.0
        self.proper_time = 0.0
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'radius': self.radius,
            'mass_parameter': self.mass_parameter,
            'coordinate_time': self.coordinate_time,
            'proper_time': self.proper_time,
            'lapse': self.lapse(),
            'determinant': self.metric.determinant(),
        }
