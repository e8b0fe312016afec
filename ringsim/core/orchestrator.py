"""
Coupling orchestrator

Holds the ring registry and the directed coupling graph. A global step
exchanges coupling payloads along every edge first, then advances every
ring, then re-aggregates the conservation state.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .context import SimulationContext
from .entropy import EntropyTracker
from .errors import ConfigurationError, RingsimError
from .ring import EntropySignature, PhysicalRing

logger = logging.getLogger(__name__)

CouplingEdge = Tuple[str, str]


@dataclass
class StepReport:
    """Outcome of one global step"""
    time: float
    dt: float
    energy_before: float
    energy_after: float
    ring_energy_deltas: Dict[str, float]
    entropy_produced: float
    delivered: List[CouplingEdge] = field(default_factory=list)

    @property
    def energy_drift(self) -> float:
        return self.energy_after - self.energy_before


class CouplingOrchestrator:
    """
    Advances a set of rings under a shared stepping protocol

    Registry and edges are append-only at setup and read-only while
    stepping. Within one step the whole exchange phase completes before any
    ring steps, so every ring only sees pre-step data from its siblings.
    """

    def __init__(self, context: Optional[SimulationContext] = None, strict: Optional[bool] = None):
        """
        Args:
            context: Session context shared with the rings (created if None)
            strict: Reject edges naming unregistered rings at step time.
                Defaults to the context's ``strict_coupling`` setting.
        """
        self.context = context or SimulationContext()
        self.strict = self.context.config.strict_coupling if strict is None else strict
        self.rings: Dict[str, PhysicalRing] = {}
        self.edges: List[CouplingEdge] = []
        self.entropy_tracker = EntropyTracker()
        self.time = 0.0
        self.step_count = 0
        self.initial_energy: Optional[float] = None

    def add_ring(self, ring: PhysicalRing) -> PhysicalRing:
        if ring.ring_id in self.rings:
            raise ConfigurationError(f"Ring with id '{ring.ring_id}' already registered")
        self.rings[ring.ring_id] = ring
        return ring

    def get_ring(self, ring_id: str) -> PhysicalRing:
        try:
            return self.rings[ring_id]
        except KeyError:
            raise ConfigurationError(f"Unknown ring '{ring_id}'") from None

    def couple(self, source_id: str, target_id: str):
        """
        Register a directed coupling edge

        Edges naming rings that are not registered are kept but skipped
        during the exchange; see ``validate``.
        """
        missing = [rid for rid in (source_id, target_id) if rid not in self.rings]
        if missing:
            logger.warning("Coupling %s -> %s references unregistered ring(s): %s",
                           source_id, target_id, ', '.join(missing))
        self.edges.append((source_id, target_id))

    def dangling_edges(self) -> List[CouplingEdge]:
        return [(s, t) for s, t in self.edges if s not in self.rings or t not in self.rings]

    def validate(self):
        dangling = self.dangling_edges()
        if dangling:
            listed = ', '.join(f"{s}->{t}" for s, t in dangling)
            raise ConfigurationError(f"Coupling edges reference unregistered rings: {listed}")

    def _exchange(self) -> List[CouplingEdge]:
        delivered = []
        for source_id, target_id in self.edges:
            source = self.rings.get(source_id)
            target = self.rings.get(target_id)
            if source is None or target is None:
                continue
            payload = source.get_coupling_to(target_id)
            if payload is not None:
                target.receive_coupling_data(source_id, payload)
                delivered.append((source_id, target_id))
        return delivered

    def step(self, dt: float, params: Optional[Dict[str, float]] = None) -> StepReport:
        if dt <= 0:
            raise ConfigurationError(f"Time step must be positive, got {dt}")
        if self.strict:
            self.validate()

        energy_before = self.get_total_energy()
        if self.initial_energy is None:
            self.initial_energy = energy_before
        irreversible_before = {rid: r.get_entropy().irreversible for rid, r in self.rings.items()}

        delivered = self._exchange()

        deltas = {}
        for ring_id, ring in self.rings.items():
            try:
                deltas[ring_id] = ring.step(dt, params)
            except RingsimError:
                logger.error("Ring '%s' failed at t=%g", ring_id, self.time)
                raise

        self.time += dt
        self.step_count += 1
        self.entropy_tracker.time = self.time

        produced = 0.0
        for ring_id, ring in self.rings.items():
            d_s = ring.get_entropy().irreversible - irreversible_before[ring_id]
            if d_s > 0:
                produced += self.entropy_tracker.track_generic(ring_id, d_s)

        report = StepReport(
            time=self.time,
            dt=dt,
            energy_before=energy_before,
            energy_after=self.get_total_energy(),
            ring_energy_deltas=deltas,
            entropy_produced=produced,
            delivered=delivered,
        )
        logger.debug("step %d t=%g E=%.9e dE=%.3e dS=%.3e", self.step_count, self.time,
                     report.energy_after, report.energy_drift, produced)
        return report

    def run(self, dt: float, n_steps: int, params: Optional[Dict[str, float]] = None) -> List[StepReport]:
        return [self.step(dt, params) for _ in range(n_steps)]

    def get_total_energy(self) -> float:
        return sum(ring.get_energy().total for ring in self.rings.values())

    def get_total_entropy(self) -> EntropySignature:
        parts = [ring.get_entropy() for ring in self.rings.values()]
        return EntropySignature(
            thermal=sum(p.thermal for p in parts),
            configurational=sum(p.configurational for p in parts),
            information=sum(p.information for p in parts),
            irreversible=sum(p.irreversible for p in parts),
        )

    def get_state(self) -> Dict[str, object]:
        """Snapshot of every ring's energy, entropy and serialization"""
        return {
            'time': self.time,
            'energy': {rid: r.get_energy().to_dict() for rid, r in self.rings.items()},
            'entropy': {rid: r.get_entropy().to_dict() for rid, r in self.rings.items()},
            'rings': {rid: r.serialize() for rid, r in self.rings.items()},
            'total_energy': self.get_total_energy(),
            'total_entropy': self.get_total_entropy().total,
        }

    def reset(self):
        for ring in self.rings.values():
            ring.reset()
        self.entropy_tracker.reset()
        self.time = 0.0
        self.step_count = 0
        self.initial_energy = None
