"""
Capability contract shared by every physical domain ("ring")

The orchestrator only ever talks to rings through this interface, so it
never needs solver-specific logic.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Union

import numpy as np

from .context import SimulationContext
from .errors import NumericalInstability, PhysicalBoundViolation

logger = logging.getLogger(__name__)

FieldValue = Union[float, np.ndarray]


@dataclass(frozen=True)
class EnergyContributions:
    """Energy held by one domain (J); ``total`` is always the sum of the parts"""
    kinetic: float = 0.0
    potential: float = 0.0
    thermal: float = 0.0
    chemical: float = 0.0
    electromagnetic: float = 0.0
    quantum: float = 0.0

    @property
    def total(self) -> float:
        return (self.kinetic + self.potential + self.thermal + self.chemical
                + self.electromagnetic + self.quantum)

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data['total'] = self.total
        return data


@dataclass(frozen=True)
class EntropySignature:
    """Entropy held or produced by one domain (J/K)"""
    thermal: float = 0.0
    configurational: float = 0.0
    information: float = 0.0
    irreversible: float = 0.0

    @property
    def total(self) -> float:
        return self.thermal + self.configurational + self.information + self.irreversible

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data['total'] = self.total
        return data


@dataclass(frozen=True)
class KinematicState:
    """Position, velocity and mass as interpreted by the owning domain"""
    position: float = 0.0
    velocity: float = 0.0
    mass: float = 0.0


@dataclass
class CouplingData:
    """Payload pushed along a coupling edge once per global step"""
    energy_flux: float
    entropy_flux: float
    source_ring: str
    target_ring: str
    field_values: Optional[Dict[str, FieldValue]] = None

    def field(self, key: str) -> Optional[FieldValue]:
        if not self.field_values:
            return None
        return self.field_values.get(key)


def finite_or_none(value) -> Optional[float]:
    """Coerce a payload entry to a finite float, or None when it is unusable"""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class PhysicalRing(ABC):
    """
    Base class of every domain solver

    Subclasses own their state exclusively; nothing else mutates it except
    through ``step`` and ``receive_coupling_data``.
    """

    name: str = 'ring'

    def __init__(self, ring_id: str, context: Optional[SimulationContext] = None):
        self.ring_id = ring_id
        self.context = context or SimulationContext()
        self.entropy_produced = 0.0

    # --- contract -------------------------------------------------------

    @abstractmethod
    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> float:
        """Advance by dt and return the change in this ring's total energy"""

    @abstractmethod
    def get_energy(self) -> EnergyContributions:
        ...

    def get_entropy(self) -> EntropySignature:
        return EntropySignature(irreversible=self.entropy_produced)

    def get_kinematic_state(self) -> KinematicState:
        return KinematicState()

    def absorb_energy(self, amount: float) -> float:
        """Domains that cannot store injected energy absorb nothing"""
        return 0.0

    def produce_entropy(self, amount: float):
        if amount < 0:
            raise PhysicalBoundViolation(
                'entropy_production', amount,
                f"Entropy production cannot be negative in {self.ring_id}: dS={amount}"
            )
        self.entropy_produced += amount

    def get_coupling_to(self, target_id: str) -> Optional[CouplingData]:
        return None

    def receive_coupling_data(self, source_id: str, payload: CouplingData):
        logger.debug("%s ignores coupling data from %s", self.ring_id, source_id)

    @abstractmethod
    def reset(self):
        ...

    @abstractmethod
    def serialize(self) -> Dict[str, float]:
        ...

    # --- helpers --------------------------------------------------------

    def _coupling(self, target_id: str, energy_flux: float, entropy_flux: float = 0.0,
                  field_values: Optional[Dict[str, FieldValue]] = None) -> CouplingData:
        return CouplingData(
            energy_flux=energy_flux,
            entropy_flux=entropy_flux,
            source_ring=self.ring_id,
            target_ring=target_id,
            field_values=field_values,
        )

    def _require_finite(self, label: str, values):
        """Fail fast on NaN/Inf so a blown-up ring cannot keep advancing"""
        if not np.all(np.isfinite(values)):
            message = f"Non-finite {label} in ring '{self.ring_id}'"
            logger.error(message)
            raise NumericalInstability(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(ring_id={self.ring_id!r})"
