import logging

import pytest

from ringsim.core import (
    CouplingOrchestrator,
    EnergyContributions,
    KernelConfig,
    NumericalInstability,
    PhysicalRing,
    SimulationContext,
)
from ringsim.core.errors import ConfigurationError
from ringsim.physics import MomentumRing, ThermalRing


class RecordingRing(PhysicalRing):
    """Records every contract call into a shared event log"""

    def __init__(self, ring_id, events, fail=False):
        super().__init__(ring_id)
        self.events = events
        self.fail = fail
        self.energy = 1.0

    def step(self, dt, params=None):
        self.events.append(('step', self.ring_id))
        if self.fail:
            raise NumericalInstability(f"{self.ring_id} blew up")
        return 0.0

    def get_energy(self):
        return EnergyContributions(thermal=self.energy)

    def get_coupling_to(self, target_id):
        self.events.append(('couple', self.ring_id))
        return self._coupling(target_id, 1.0)

    def receive_coupling_data(self, source_id, payload):
        self.events.append(('receive', self.ring_id))

    def reset(self):
        self.events.clear()

    def serialize(self):
        return {'energy': self.energy}


def test_exchange_completes_before_any_ring_steps():
    events = []
    orchestrator = CouplingOrchestrator()
    for rid in ('a', 'b', 'c'):
        orchestrator.add_ring(RecordingRing(rid, events))
    orchestrator.couple('a', 'b')
    orchestrator.couple('c', 'a')

    report = orchestrator.step(0.1)

    kinds = [kind for kind, _ in events]
    first_step = kinds.index('step')
    assert 'couple' not in kinds[first_step:]
    assert 'receive' not in kinds[first_step:]
    assert kinds.count('step') == 3
    assert report.delivered == [('a', 'b'), ('c', 'a')]


def test_duplicate_ring_id_rejected():
    orchestrator = CouplingOrchestrator()
    orchestrator.add_ring(ThermalRing())
    with pytest.raises(ConfigurationError):
        orchestrator.add_ring(ThermalRing())


def test_dangling_edge_is_skipped_with_warning(caplog):
    events = []
    orchestrator = CouplingOrchestrator()
    orchestrator.add_ring(RecordingRing('a', events))
    with caplog.at_level(logging.WARNING, logger='ringsim.core.orchestrator'):
        orchestrator.couple('a', 'ghost')
    assert 'ghost' in caplog.text
    assert orchestrator.dangling_edges() == [('a', 'ghost')]

    report = orchestrator.step(0.1)
    assert report.delivered == []
    with pytest.raises(ConfigurationError, match="a->ghost"):
        orchestrator.validate()


def test_strict_mode_rejects_dangling_edges():
    orchestrator = CouplingOrchestrator(strict=True)
    orchestrator.add_ring(ThermalRing())
    orchestrator.couple('momentum', 'thermal')
    with pytest.raises(ConfigurationError):
        orchestrator.step(0.1)

    context = SimulationContext(KernelConfig(strict_coupling=True))
    assert CouplingOrchestrator(context).strict


def test_non_positive_dt_rejected():
    orchestrator = CouplingOrchestrator()
    with pytest.raises(ConfigurationError):
        orchestrator.step(0.0)


def test_ring_failure_propagates(caplog):
    events = []
    orchestrator = CouplingOrchestrator()
    orchestrator.add_ring(RecordingRing('bad', events, fail=True))
    with caplog.at_level(logging.ERROR):
        with pytest.raises(NumericalInstability, match="bad blew up"):
            orchestrator.step(0.1)
    assert "Ring 'bad' failed" in caplog.text


def test_friction_heats_coupled_reservoir():
    context = SimulationContext()
    orchestrator = CouplingOrchestrator(context)
    block = orchestrator.add_ring(MomentumRing(velocity=5.0, g=0.0, friction=0.5, context=context))
    reservoir = orchestrator.add_ring(ThermalRing(temperature=300.0, mass=1.0, cp=10.0, context=context))
    orchestrator.couple('momentum', 'thermal')

    reports = orchestrator.run(0.01, 50)

    assert block.velocity < 5.0
    assert reservoir.temperature > 300.0
    assert orchestrator.entropy_tracker.summary()['thermal'] > 0
    assert sum(r.entropy_produced for r in reports) == pytest.approx(
        orchestrator.get_total_entropy().irreversible)
    # heat lags friction by exactly one step
    lagged = block.dissipated
    assert reports[-1].energy_after == pytest.approx(
        reports[0].energy_before - lagged, rel=1e-9)


def test_state_and_reset():
    orchestrator = CouplingOrchestrator()
    orchestrator.add_ring(MomentumRing(position=1.0))
    orchestrator.run(0.1, 3)
    state = orchestrator.get_state()
    assert state['time'] == pytest.approx(0.3)
    assert set(state['rings']) == {'momentum'}
    assert state['total_energy'] == pytest.approx(orchestrator.get_total_energy())

    orchestrator.reset()
    assert orchestrator.time == 0.0
    assert orchestrator.get_ring('momentum').position == 1.0
    with pytest.raises(ConfigurationError):
        orchestrator.get_ring('missing')
