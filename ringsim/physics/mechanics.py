"""
Classical point-mass mechanics ring (velocity Verlet)
"""

from typing import Dict, Optional

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import CouplingData, EnergyContributions, KinematicState, PhysicalRing


class MomentumRing(PhysicalRing):
    """
    A body moving vertically under gravity with optional viscous friction

    Energy: kinetic ½mv² and potential mgh. Mechanical energy lost to
    friction during a step is offered to the 'thermal' ring as the mean
    friction power over that step.
    """

    name = 'Momentum (classical mechanics)'

    def __init__(self, position: float = 0.0, velocity: float = 0.0, mass: float = 1.0,
                 g: Optional[float] = None, friction: float = 0.0,
                 ring_id: str = 'momentum', context: Optional[SimulationContext] = None):
        """
        Args:
            position: Height above the reference level (m)
            velocity: Vertical velocity (m/s)
            mass: Mass (kg), must be positive
            g: Gravitational acceleration, defaults to the context setting
            friction: Viscous friction coefficient μ in F = -μv (kg/s)
        """
        super().__init__(ring_id, context)
        if not mass > 0:
            raise ConfigurationError(f"Mass must be positive, got {mass}")
        if friction < 0:
            raise ConfigurationError(f"Friction coefficient must be non-negative, got {friction}")
        self.position = float(position)
        self.velocity = float(velocity)
        self.mass = float(mass)
        self.g = self.context.config.gravity if g is None else float(g)
        self.friction = float(friction)
        self.acceleration = 0.0
        self.external_force = 0.0
        self.dissipated = 0.0
        self._last_dt = 0.0
        self._initial = (self.position, self.velocity)

    def add_force(self, force: float):
        """Queue an external force for the next step only"""
        self.external_force += force

    def kinetic_energy(self) -> float:
        return 0.5 * self.mass * self.velocity**2

    def potential_energy(self, g: Optional[float] = None) -> float:
        return self.mass * (self.g if g is None else g) * self.position

    def friction_power(self) -> float:
        """Mean power dissipated by friction during the last step"""
        if self._last_dt <= 0:
            return 0.0
        return self.dissipated / self._last_dt

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        g = self.g if not params or 'g' not in params else params['g']
        m = self.mass
        energy_before = self.kinetic_energy() + self.potential_energy(g)

        a_old = -g + self.external_force / m
        x_new = self.position + self.velocity * dt + 0.5 * a_old * dt * dt

        v_estimate = self.velocity + a_old * dt
        friction_force = -self.friction * v_estimate
        a_new = -g + (self.external_force + friction_force) / m
        v_new = self.velocity + 0.5 * (a_old + a_new) * dt

        self._require_finite('state', [x_new, v_new])
        self.position = x_new
        self.velocity = v_new
        self.acceleration = a_new
        self.external_force = 0.0

        energy_after = self.kinetic_energy() + self.potential_energy(g)
        self.dissipated = max(0.0, energy_before - energy_after) if self.friction > 0 else 0.0
        self._last_dt = dt
        return energy_after - energy_before

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(kinetic=self.kinetic_energy(), potential=self.potential_energy())

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(self.position, self.velocity, self.mass)

    def get_coupling_to(self, target_id: str) -> Optional[CouplingData]:
        if target_id == 'thermal' and self.friction > 0:
            return self._coupling(target_id, self.friction_power())
        return None

    def reset(self):
        self.position, self.velocity = self._initial
        self.acceleration = 0.0
        self.external_force = 0.0
        self.dissipated = 0.0
        self._last_dt = 0.0
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'position': self.position,
            'velocity': self.velocity,
            'mass': self.mass,
            'acceleration': self.acceleration,
            'g': self.g,
            'friction': self.friction,
        }
