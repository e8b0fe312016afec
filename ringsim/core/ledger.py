"""
Conservation ledger

Pure functions computing aggregate energy, momentum, mass and entropy from
a named-scalar state, and diffing two states against tolerances. Drift is
reported as data and never raised: small numerical drift is expected and
must be inspected, not treated as failure.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .config import ConservationTolerances

StateVector = Mapping[str, float]


@dataclass(frozen=True)
class ResolvedState:
    """Ledger inputs looked up once from a state; None marks an absent field"""
    mass: float
    velocity: Optional[float]
    height: Optional[float]
    temperature: Optional[float]
    gravity: float
    heat_capacity: float


@dataclass(frozen=True)
class StateSchema:
    """
    Field names the ledger understands, in lookup priority order

    Required-vs-optional is explicit: velocity, height and temperature are
    optional, while mass, gravity and heat capacity fall back to defaults.
    Only ``y`` and ``height`` count as height; pass a schema with other
    height keys to give a generic ``position`` field gravitational energy.
    """
    mass_keys: Tuple[str, ...] = ('m', 'mass')
    velocity_keys: Tuple[str, ...] = ('v', 'velocity')
    height_keys: Tuple[str, ...] = ('y', 'height')
    temperature_keys: Tuple[str, ...] = ('T', 'temperature')
    gravity_keys: Tuple[str, ...] = ('g',)
    heat_capacity_keys: Tuple[str, ...] = ('c_p', 'cp')
    default_mass: float = 1.0
    default_gravity: float = 9.8
    default_heat_capacity: float = 1000.0

    @staticmethod
    def _lookup(state: StateVector, keys: Tuple[str, ...]) -> Optional[float]:
        for key in keys:
            if key in state:
                return state[key]
        return None

    def resolve(self, state: StateVector) -> ResolvedState:
        gravity = self._lookup(state, self.gravity_keys)
        heat_capacity = self._lookup(state, self.heat_capacity_keys)
        mass = self._lookup(state, self.mass_keys)
        return ResolvedState(
            mass=self.default_mass if mass is None else mass,
            velocity=self._lookup(state, self.velocity_keys),
            height=self._lookup(state, self.height_keys),
            temperature=self._lookup(state, self.temperature_keys),
            gravity=self.default_gravity if gravity is None else gravity,
            heat_capacity=self.default_heat_capacity if heat_capacity is None else heat_capacity,
        )


DEFAULT_SCHEMA = StateSchema()


@dataclass(frozen=True)
class ConservationSnapshot:
    energy: float
    momentum: float
    mass: float
    entropy: float


@dataclass
class ConservationReport:
    valid: bool
    errors: Dict[str, float]
    violations: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def _resolve(state: Union[StateVector, ResolvedState], schema: StateSchema) -> ResolvedState:
    if isinstance(state, ResolvedState):
        return state
    return schema.resolve(state)


def compute_energy(state, schema: StateSchema = DEFAULT_SCHEMA) -> float:
    """kinetic + potential + thermal, each term only when its inputs exist"""
    s = _resolve(state, schema)
    energy = 0.0
    if s.velocity is not None:
        energy += 0.5 * s.mass * s.velocity ** 2
    if s.height is not None:
        energy += s.mass * s.gravity * s.height
    if s.temperature is not None:
        energy += s.mass * s.heat_capacity * s.temperature
    return energy


def compute_momentum(state, schema: StateSchema = DEFAULT_SCHEMA) -> float:
    s = _resolve(state, schema)
    if s.velocity is None:
        return 0.0
    return s.mass * s.velocity


def compute_mass(state, schema: StateSchema = DEFAULT_SCHEMA) -> float:
    s = _resolve(state, schema)
    return s.mass


def compute_entropy(state, schema: StateSchema = DEFAULT_SCHEMA) -> float:
    """m·cp·ln(T) referenced to 1 K; zero without a positive temperature"""
    s = _resolve(state, schema)
    if s.temperature is None or not s.temperature > 0:
        return 0.0
    return s.mass * s.heat_capacity * math.log(s.temperature)


def take_snapshot(state, schema: StateSchema = DEFAULT_SCHEMA) -> ConservationSnapshot:
    s = _resolve(state, schema)
    return ConservationSnapshot(
        energy=compute_energy(s, schema),
        momentum=compute_momentum(s, schema),
        mass=compute_mass(s, schema),
        entropy=compute_entropy(s, schema),
    )


def _relative(initial: float, final: float) -> float:
    return abs(final - initial) / max(abs(initial), abs(final), 1.0)


def check_conservation(initial: StateVector, final: StateVector,
                       tolerances: Optional[Union[ConservationTolerances, Mapping[str, float]]] = None,
                       schema: StateSchema = DEFAULT_SCHEMA) -> ConservationReport:
    """
    Compare two states and report every conservation law they break

    Args:
        initial: State before the update
        final: State after the update
        tolerances: ConservationTolerances or a mapping overriding some of them
        schema: Field naming convention of the states

    Returns:
        ConservationReport with ``errors`` keyed by energy, momentum, mass and
        entropy_change
    """
    if tolerances is None:
        tolerances = ConservationTolerances()
    elif not isinstance(tolerances, ConservationTolerances):
        tolerances = ConservationTolerances.from_dict(dict(tolerances))

    s0 = schema.resolve(initial)
    s1 = schema.resolve(final)
    before = take_snapshot(s0, schema)
    after = take_snapshot(s1, schema)

    errors = {
        'energy': _relative(before.energy, after.energy),
        'momentum': _relative(before.momentum, after.momentum),
        'mass': abs(after.mass - before.mass),
        'entropy_change': after.entropy - before.entropy,
    }

    violations = []
    if not errors['energy'] <= tolerances.energy:
        violations.append(
            f"Energy not conserved: relative error {errors['energy']:.3e} > {tolerances.energy:g}"
        )
    if not errors['momentum'] <= tolerances.momentum:
        violations.append(
            f"Momentum not conserved: relative error {errors['momentum']:.3e} > {tolerances.momentum:g}"
        )
    if not errors['mass'] <= tolerances.mass:
        violations.append(
            f"Mass not conserved: absolute error {errors['mass']:.3e} > {tolerances.mass:g}"
        )
    thermal = s0.temperature is not None or s1.temperature is not None
    if thermal and errors['entropy_change'] < -tolerances.entropy:
        violations.append(
            f"Second law violated: entropy decreased by {-errors['entropy_change']:.3e}"
        )

    return ConservationReport(valid=not violations, errors=errors, violations=violations)
