import numpy as np
import pytest

from ringsim.core import CouplingData
from ringsim.core.errors import ConfigurationError
from ringsim.geometry import Grid1D
from ringsim.physics import QuantumSolver1D


@pytest.fixture
def packet():
    solver = QuantumSolver1D(Grid1D(401, 20.0))
    solver.set_gaussian(center=6.0, sigma=0.5, momentum=2.0)
    return solver


def test_initial_packet_is_normalised(packet):
    assert packet.total_probability() == pytest.approx(1.0)
    assert packet.psi[0] == 0 and packet.psi[-1] == 0
    assert packet.expectation_position() == pytest.approx(6.0, abs=1e-6)


def test_probability_conserved(packet):
    for _ in range(100):
        packet.step(0.01)
    assert packet.total_probability() == pytest.approx(1.0, abs=1e-10)


def test_energy_conserved_for_static_potential(packet):
    initial = packet.expectation_energy()
    for _ in range(50):
        packet.step(0.01)
    assert packet.expectation_energy() == pytest.approx(initial, rel=1e-8)


def test_packet_moves_with_its_momentum(packet):
    for _ in range(100):
        packet.step(0.01)
    assert packet.expectation_position() == pytest.approx(8.0, abs=0.2)


def test_propagator_cached_per_dt(packet):
    packet.step(0.01)
    lu = packet._propagator[1]
    packet.step(0.01)
    assert packet._propagator[1] is lu
    packet.step(0.02)
    assert packet._propagator[1] is not lu


def test_delta_state_has_zero_information_entropy():
    solver = QuantumSolver1D(Grid1D(101, 10.0))
    solver.set_delta(5.0)
    assert solver.total_probability() == pytest.approx(1.0)
    assert solver.information_entropy() == pytest.approx(0.0, abs=1e-12)
    solver.step(0.01)
    assert solver.information_entropy() > 0
    with pytest.raises(ConfigurationError):
        solver.set_delta(0.0)


def test_potential_enters_energy():
    solver = QuantumSolver1D(Grid1D(201, 10.0))
    solver.set_gaussian(5.0, 0.5)
    free = solver.expectation_energy()
    solver.set_potential(2.0)
    assert solver.expectation_energy() == pytest.approx(free + 2.0, rel=1e-9)


def test_coupling_modifies_effective_potential():
    solver = QuantumSolver1D(Grid1D(101, 10.0))
    solver.set_potential(1.0)
    solver.receive_coupling_data('em', CouplingData(0.0, 0.0, 'em', 'quantum',
                                                    {'dielectric_factor': 100.0}))
    assert solver.dielectric_factor == 10.0
    solver.receive_coupling_data('em', CouplingData(0.0, 0.0, 'em', 'quantum',
                                                    {'phonon_coupling': float('inf')}))
    assert solver.phonon_offset == 0.0
    solver.receive_coupling_data('em', CouplingData(0.0, 0.0, 'em', 'quantum',
                                                    {'phonon_coupling': 0.5}))
    np.testing.assert_allclose(solver.effective_potential(), 10.5)


def test_reset_restores_packet(packet):
    initial = packet.psi.copy()
    packet.step(0.01)
    packet.reset()
    np.testing.assert_array_equal(packet.psi, initial)
    assert packet.get_energy().quantum == pytest.approx(packet.expectation_energy())
