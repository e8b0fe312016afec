"""
Dimensional analysis over the base dimensions [L, M, T, I, Θ]
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import DimensionMismatch, NumericalInstability

_LABELS = ('L', 'M', 'T', 'I', 'Θ')
_EPS = 1e-10


@dataclass(frozen=True)
class DimensionVector:
    """Powers of length, mass, time, current and temperature"""
    length: float = 0.0
    mass: float = 0.0
    time: float = 0.0
    current: float = 0.0
    temperature: float = 0.0

    @property
    def powers(self) -> Tuple[float, float, float, float, float]:
        return (self.length, self.mass, self.time, self.current, self.temperature)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DimensionVector):
            return NotImplemented
        return all(abs(a - b) < _EPS for a, b in zip(self.powers, other.powers))

    def __hash__(self):
        return hash(tuple(round(p, 9) for p in self.powers))

    def __mul__(self, other: 'DimensionVector') -> 'DimensionVector':
        return DimensionVector(*(a + b for a, b in zip(self.powers, other.powers)))

    def __truediv__(self, other: 'DimensionVector') -> 'DimensionVector':
        return DimensionVector(*(a - b for a, b in zip(self.powers, other.powers)))

    def __pow__(self, exponent: float) -> 'DimensionVector':
        return DimensionVector(*(p * exponent for p in self.powers))

    def is_dimensionless(self) -> bool:
        return all(abs(p) < _EPS for p in self.powers)

    def __str__(self) -> str:
        parts = []
        for label, p in zip(_LABELS, self.powers):
            if abs(p) > _EPS:
                parts.append(label if p == 1 else f"{label}^{p:g}")
        return f"[{' '.join(parts)}]" if parts else '[dimensionless]'


DIMENSIONS = {
    'dimensionless': DimensionVector(),
    'length': DimensionVector(length=1),
    'mass': DimensionVector(mass=1),
    'time': DimensionVector(time=1),
    'current': DimensionVector(current=1),
    'temperature': DimensionVector(temperature=1),
    'velocity': DimensionVector(length=1, time=-1),
    'acceleration': DimensionVector(length=1, time=-2),
    'area': DimensionVector(length=2),
    'volume': DimensionVector(length=3),
    'force': DimensionVector(length=1, mass=1, time=-2),
    'energy': DimensionVector(length=2, mass=1, time=-2),
    'power': DimensionVector(length=2, mass=1, time=-3),
    'pressure': DimensionVector(length=-1, mass=1, time=-2),
    'momentum': DimensionVector(length=1, mass=1, time=-1),
    'density': DimensionVector(length=-3, mass=1),
    'kinematic_viscosity': DimensionVector(length=2, time=-1),
    'dynamic_viscosity': DimensionVector(length=-1, mass=1, time=-1),
    'vorticity': DimensionVector(time=-1),
    'entropy': DimensionVector(length=2, mass=1, time=-2, temperature=-1),
    'specific_heat': DimensionVector(length=2, time=-2, temperature=-1),
    'thermal_diffusivity': DimensionVector(length=2, time=-1),
    'charge': DimensionVector(time=1, current=1),
    'voltage': DimensionVector(length=2, mass=1, time=-3, current=-1),
    'electric_field': DimensionVector(length=1, mass=1, time=-3, current=-1),
    'magnetic_field': DimensionVector(mass=1, time=-2, current=-1),
}


class DimensionalValue:
    """
    A scalar carrying its physical dimension

    Addition and subtraction demand identical dimensions; multiplication,
    division and powers combine them.
    """

    def __init__(self, value: float, dimension: DimensionVector, name: Optional[str] = None):
        if not math.isfinite(value):
            raise NumericalInstability(f"Invalid value {value} for {name or 'quantity'}")
        self.value = float(value)
        self.dimension = dimension
        self.name = name

    def _require_same(self, other: 'DimensionalValue', op: str):
        if self.dimension != other.dimension:
            raise DimensionMismatch(
                f"Dimension mismatch in {op}: {self.dimension} vs {other.dimension} "
                f"({self.name or 'quantity'}, {other.name or 'quantity'})"
            )

    def __add__(self, other: 'DimensionalValue') -> 'DimensionalValue':
        self._require_same(other, 'addition')
        return DimensionalValue(self.value + other.value, self.dimension, self.name)

    def __sub__(self, other: 'DimensionalValue') -> 'DimensionalValue':
        self._require_same(other, 'subtraction')
        return DimensionalValue(self.value - other.value, self.dimension, self.name)

    def __mul__(self, other):
        if isinstance(other, DimensionalValue):
            name = f"{self.name}*{other.name}" if self.name and other.name else None
            return DimensionalValue(self.value * other.value,
                                    self.dimension * other.dimension, name)
        return DimensionalValue(self.value * other, self.dimension, self.name)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, DimensionalValue):
            if abs(other.value) < 1e-100:
                raise NumericalInstability(
                    f"Division by zero: {self.name or 'quantity'} / {other.name or 'quantity'}"
                )
            name = f"{self.name}/{other.name}" if self.name and other.name else None
            return DimensionalValue(self.value / other.value,
                                    self.dimension / other.dimension, name)
        if other == 0:
            raise NumericalInstability(f"Division by zero: {self.name or 'quantity'} / 0")
        return DimensionalValue(self.value / other, self.dimension, self.name)

    def __pow__(self, exponent: float) -> 'DimensionalValue':
        name = f"({self.name})^{exponent:g}" if self.name else None
        return DimensionalValue(self.value ** exponent, self.dimension ** exponent, name)

    def __neg__(self) -> 'DimensionalValue':
        return DimensionalValue(-self.value, self.dimension, self.name)

    def __abs__(self) -> 'DimensionalValue':
        return DimensionalValue(abs(self.value), self.dimension, self.name)

    def __float__(self) -> float:
        return self.value

    def __repr__(self) -> str:
        label = f"{self.name}=" if self.name else ''
        return f"DimensionalValue({label}{self.value:g} {self.dimension})"
