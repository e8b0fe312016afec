"""
Irreversible entropy production bookkeeping
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List

from .errors import PhysicalBoundViolation


@dataclass(frozen=True)
class EntropyEvent:
    source: str
    entropy: float
    time: float


class EntropyTracker:
    """
    Accumulates entropy produced by dissipative processes

    Every tracker method returns the entropy it recorded (J/K).
    """

    def __init__(self):
        self.irreversible_production = 0.0
        self.history: List[EntropyEvent] = []
        self.time = 0.0

    def _record(self, source: str, d_s: float) -> float:
        self.irreversible_production += d_s
        self.history.append(EntropyEvent(source, d_s, self.time))
        return d_s

    def track_mechanical_dissipation(self, force: float, velocity: float,
                                     temperature: float, dt: float) -> float:
        """Friction power |F·v| dumped as heat at temperature T"""
        return self._record('friction', abs(force * velocity) / temperature * dt)

    def track_reaction_dissipation(self, heat_flux: float, temperature: float, dt: float) -> float:
        return self._record('reaction', abs(heat_flux) / temperature * dt)

    def track_heat_conduction(self, heat_flux: float, t_hot: float, t_cold: float,
                              dt: float) -> float:
        """Heat flowing from t_hot to t_cold; reversed or zero flow produces nothing"""
        if t_hot <= t_cold or heat_flux <= 0:
            return 0.0
        return self._record('conduction', heat_flux * (1.0 / t_cold - 1.0 / t_hot) * dt)

    def track_generic(self, source: str, d_s: float) -> float:
        if d_s < 0:
            raise PhysicalBoundViolation(
                'entropy_production', d_s,
                f"Entropy production cannot be negative: {source} dS={d_s}"
            )
        return self._record(source, d_s)

    def summary(self) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for event in self.history:
            totals[event.source] += event.entropy
        return dict(totals)

    def format_history(self) -> str:
        lines = ['Entropy production history:']
        for source, total in self.summary().items():
            lines.append(f"  {source}: {total:.4e} J/K")
        lines.append(f"  TOTAL: {self.irreversible_production:.4e} J/K")
        return '\n'.join(lines)

    def reset(self):
        self.irreversible_production = 0.0
        self.history = []
        self.time = 0.0
