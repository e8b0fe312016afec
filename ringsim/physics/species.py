"""
Chemical kinetics ring: Michaelis-Menten substrate consumption
"""

from typing import Dict, Optional

from ..core.context import SimulationContext
from ..core.errors import ConfigurationError
from ..core.ring import CouplingData, EnergyContributions, KinematicState, PhysicalRing, finite_or_none


class SpeciesRing(PhysicalRing):
    """
    Enzyme-catalysed consumption of a substrate S

        v = Vmax·S / (Km + S),   S ← max(0, S - v·dt)

    Chemical energy E = -ΔH·S, so an exothermic reaction (ΔH < 0) stores
    positive energy in the substrate and releases it as S is consumed.
    """

    name = 'Species (Michaelis-Menten kinetics)'

    def __init__(self, concentration: float, v_max: float, k_m: float, delta_h: float,
                 ring_id: str = 'species', context: Optional[SimulationContext] = None):
        """
        Args:
            concentration: Initial substrate concentration S (mol/m³)
            v_max: Maximum reaction rate (mol/(m³·s))
            k_m: Michaelis constant (mol/m³), must be positive
            delta_h: Reaction enthalpy per unit concentration (J/(mol/m³))
        """
        super().__init__(ring_id, context)
        if not k_m > 0:
            raise ConfigurationError(f"Michaelis constant must be positive, got {k_m}")
        if v_max < 0:
            raise ConfigurationError(f"Maximum rate must be non-negative, got {v_max}")
        self.concentration = self.context.enforce('concentration', float(concentration), ring_id)
        self.v_max = float(v_max)
        self.k_m = float(k_m)
        self.delta_h = float(delta_h)
        self.reaction_rate = 0.0
        self.energy_released = 0.0
        self.environment_temperature = self.context.config.reference_temperature
        self._last_dt = 0.0
        self._initial_concentration = self.concentration

    def chemical_energy(self) -> float:
        return -self.delta_h * self.concentration

    def rate(self, concentration: Optional[float] = None) -> float:
        s = self.concentration if concentration is None else concentration
        return self.v_max * s / (self.k_m + s)

    def heat_rate(self) -> float:
        """
        Heat released per unit time over the last step

        Equals -ΔH·v unless the substrate ran out during the step.
        """
        if self._last_dt <= 0:
            return 0.0
        return self.energy_released / self._last_dt

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        self._last_dt = dt
        s = self.concentration
        if s <= 0 or self.v_max <= 0:
            self.reaction_rate = 0.0
            self.energy_released = 0.0
            return 0.0

        energy_before = self.chemical_energy()
        v = self.rate(s)
        self.concentration = max(0.0, s - v * dt)
        self.reaction_rate = v

        d_energy = self.chemical_energy() - energy_before
        self.energy_released = -d_energy
        if self.energy_released > 0:
            self.produce_entropy(self.energy_released / self.environment_temperature)
        return d_energy

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        """A 'temperature' field sets the temperature heat is released at"""
        temperature = finite_or_none(payload.field('temperature'))
        if temperature is not None and temperature > 0:
            self.environment_temperature = temperature

    def get_energy(self) -> EnergyContributions:
        return EnergyContributions(chemical=self.chemical_energy())

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState(position=self.concentration, velocity=-self.reaction_rate, mass=1.0)

    def get_coupling_to(self, target_id: str) -> Optional[CouplingData]:
        if target_id == 'thermal' and self.reaction_rate > 0:
            return self._coupling(target_id, self.heat_rate())
        return None

    def reset(self):
        self.concentration = self._initial_concentration
        self.reaction_rate = 0.0
        self.energy_released = 0.0
        self.environment_temperature = self.context.config.reference_temperature
        self._last_dt = 0.0
        self.entropy_produced = 0.0

    def serialize(self) -> Dict[str, float]:
        return {
            'concentration': self.concentration,
            'reaction_rate': self.reaction_rate,
            'V_max': self.v_max,
            'K_m': self.k_m,
            'delta_H': self.delta_h,
            'energy_released': self.energy_released,
        }
