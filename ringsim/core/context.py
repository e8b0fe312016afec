"""
Per-session simulation context: physical bounds table and error log

One context is created per simulation run and passed to the rings taking
part in it, so that bounds and recorded errors never leak between runs.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import KernelConfig
from .dimensions import DimensionalValue
from .errors import DimensionMismatch, PhysicalBoundViolation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundSpec:
    """Legal range of a physical quantity"""
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    strict_min: bool = False
    strict_max: bool = False
    units: str = ''

    def contains(self, value: float) -> bool:
        if not math.isfinite(value):
            return False
        if self.minimum is not None:
            if value < self.minimum or (self.strict_min and value == self.minimum):
                return False
        if self.maximum is not None:
            if value > self.maximum or (self.strict_max and value == self.maximum):
                return False
        return True


def default_bounds() -> Dict[str, BoundSpec]:
    return {
        'temperature': BoundSpec(minimum=0.0, strict_min=True, units='K'),
        'density': BoundSpec(minimum=0.0, strict_min=True, units='kg/m^3'),
        'probability_density': BoundSpec(minimum=0.0, maximum=1.0),
        'mass': BoundSpec(minimum=0.0, units='kg'),
        'concentration': BoundSpec(minimum=0.0, units='mol/m^3'),
    }


class PhysicalBounds:
    """Registry of legal ranges keyed by quantity name"""

    def __init__(self, bounds: Optional[Dict[str, BoundSpec]] = None):
        self._bounds: Dict[str, BoundSpec] = dict(default_bounds() if bounds is None else bounds)

    def register(self, quantity: str, bound: BoundSpec):
        self._bounds[quantity] = bound

    def get(self, quantity: str) -> Optional[BoundSpec]:
        return self._bounds.get(quantity)

    def check(self, quantity: str, value: float) -> bool:
        """Unregistered quantities always pass"""
        bound = self._bounds.get(quantity)
        if bound is None:
            return True
        return bound.contains(value)

    def __contains__(self, quantity: str) -> bool:
        return quantity in self._bounds

    def __len__(self) -> int:
        return len(self._bounds)


class SimulationContext:
    """
    State shared by every ring of one simulation session

    Holds the bounds registry, the accumulated error log and the kernel
    configuration.
    """

    def __init__(self, config: Optional[KernelConfig] = None,
                 bounds: Optional[PhysicalBounds] = None):
        self.config = config or KernelConfig()
        self.bounds = bounds or PhysicalBounds()
        self.errors: List[str] = []
        self._dimension_errors: List[str] = []

    def check(self, quantity: str, value: float) -> bool:
        return self.bounds.check(quantity, value)

    def enforce(self, quantity: str, value: float, source: str = '') -> float:
        """
        Raise PhysicalBoundViolation when value lies outside its bound

        Returns the value unchanged so that calls can be chained.
        """
        if not self.bounds.check(quantity, value):
            where = f" in {source}" if source else ''
            message = f"Physical bound violation{where}: {quantity} = {value}"
            self.errors.append(message)
            logger.error(message)
            raise PhysicalBoundViolation(quantity, value, message)
        return value

    def verify_equation(self, lhs: DimensionalValue, rhs: DimensionalValue, name: str) -> bool:
        """Record a dimensional error instead of raising"""
        if lhs.dimension != rhs.dimension:
            message = f"Dimensional error in {name}: {lhs.dimension} != {rhs.dimension}"
            self.errors.append(message)
            self._dimension_errors.append(message)
            logger.error(message)
            return False
        return True

    def assert_no_errors(self):
        if self._dimension_errors:
            raise DimensionMismatch(
                f"{len(self._dimension_errors)} dimensional errors recorded: "
                f"{self._dimension_errors[0]}"
            )

    def reset(self):
        self.errors.clear()
        self._dimension_errors.clear()
