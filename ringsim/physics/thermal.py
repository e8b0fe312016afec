"""
Lumped thermal reservoir ring
"""

import math
from typing import Dict, Optional

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import CouplingData, EnergyContributions, EntropySignature, KinematicState, PhysicalRing


class ThermalRing(PhysicalRing):
    """
    A body of uniform temperature T, mass m and heat capacity cp

    Internal energy m·cp·T, entropy m·cp·ln T (referenced to 1 K). Heat
    delivered through coupling is accumulated as a power and deposited on
    the next step.
    """

    name = 'Thermal reservoir'

    def __init__(self, temperature: float = 298.15, mass: float = 1.0, cp: float = 1000.0,
                 ring_id: str = 'thermal', context: Optional[SimulationContext] = None):
        super().__init__(ring_id, context)
        if not mass > 0 or not cp > 0:
            raise ConfigurationError(f"Mass and heat capacity must be positive (m={mass}, cp={cp})")
        self.temperature = self.context.enforce('temperature', float(temperature), ring_id)
        self.mass = float(mass)
        self.cp = float(cp)
        self.heat_source = 0.0
        self.incoming: Dict[str, float] = {}
        self._initial_temperature = self.temperature

    def heat_capacity(self) -> float:
        return self.mass * self.cp

    def internal_energy(self) -> float:
        return self.heat_capacity() * self.temperature

    def add_heat_source(self, power: float):
        """Constant power (W) applied on the next step"""
        self.heat_source += power

    def _deposit(self, heat: float) -> float:
        new_temperature = self.temperature + heat / self.heat_capacity()
        self.context.enforce('temperature', new_temperature, self.ring_id)
        if heat > 0:
            self.produce_entropy(heat / self.temperature)
        self.temperature = new_temperature
        return heat

    def absorb_energy(self, amount: float) -> float:
        """ΔT = Q / (m·cp); the whole amount is absorbed"""
        return self._deposit(amount)

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        flux = payload.energy_flux
        self.incoming[source_id] = flux if math.isfinite(flux) else 0.0

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        power = self.heat_source + sum(self.incoming.values())
        self.heat_source = 0.0
        self.incoming.clear()
        if power == 0.0:
            return 0.0
        return self._deposit(power * dt)

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(thermal=self.internal_energy())

    def get_entropy(self) -> EntropySignature:
        return EntropySignature(
            thermal=self.heat_capacity() * math.log(self.temperature),
            irreversible=self.entropy_produced,
        )

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(position=self.temperature, velocity=0.0, mass=self.mass)

    def reset(self):
        self.temperature = self._initial_temperature
        self.heat_source = 0.0
        self.incoming.clear()
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'temperature': self.temperature,
            'cp': self.cp,
            'mass': self.mass,
            'internal_energy': self.internal_energy(),
        }
