import numpy as np
import pytest

from ringsim.core import CouplingData
from ringsim.core.errors import ConfigurationError, PhysicalBoundViolation
from ringsim.geometry import Grid1D, Grid2D
from ringsim.physics import HeatSolver1D, HeatSolver2D


@pytest.fixture
def rod():
    solver = HeatSolver1D(Grid1D(101, 1.0), alpha=0.01)
    solver.set_gaussian(100.0, 0.5, 0.05)
    return solver


def test_neumann_conserves_thermal_energy(rod):
    initial = rod.thermal_energy()
    for _ in range(1000):
        rod.step(0.001)
    assert abs(rod.thermal_energy() - initial) / initial < 1e-6


def test_peak_decays_toward_average(rod):
    average = rod.get_average()
    peak = rod.get_max()
    for _ in range(500):
        rod.step(0.001)
        assert rod.get_max() <= peak
        peak = rod.get_max()
    assert peak > average
    assert rod.get_average() == pytest.approx(average, rel=1e-9)


def test_diffusion_produces_entropy():
    solver = HeatSolver1D(Grid1D(51, 1.0), alpha=0.01)
    solver.set_gaussian(50.0, 0.5, 0.1, baseline=300.0)
    for _ in range(50):
        solver.step(0.001)
    assert solver.entropy_produced > 0
    assert solver.get_entropy().irreversible == solver.entropy_produced


def test_stability_helpers(rod):
    assert rod.check_cfl(0.001).ok
    assert rod.check_cfl(0.001).number == pytest.approx(0.1)
    assert not rod.check_cfl(0.01).ok
    assert rod.max_stable_dt() == pytest.approx(0.005)


def test_absorbed_energy_heats_uniformly(rod):
    before = rod.field.copy()
    energy = rod.thermal_energy()
    rod.absorb_energy(5000.0)
    assert rod.thermal_energy() == pytest.approx(energy + 5000.0)
    shift = rod.field - before
    np.testing.assert_allclose(shift, shift[0])


def test_coupling_flux_deposited_on_next_step(rod):
    energy = rod.thermal_energy()
    rod.receive_coupling_data('fluid', CouplingData(200.0, 0.0, 'fluid', 'heat'))
    assert rod.thermal_energy() == energy
    delta = rod.step(0.001)
    assert delta == pytest.approx(0.2, rel=1e-6)
    assert rod.step(0.001) == pytest.approx(0.0, abs=1e-6)


def test_dirichlet_holds_boundary_values():
    solver = HeatSolver1D(Grid1D(21, 1.0), alpha=0.01, bc='dirichlet')
    solver.set_initial_condition(lambda x: 1.0 + x)
    solver.step(0.01)
    assert solver.field[0] == pytest.approx(1.0)
    assert solver.field[-1] == pytest.approx(2.0)


def test_reset_restores_initial_field(rod):
    initial = rod.field.copy()
    rod.step(0.001)
    rod.reset()
    np.testing.assert_array_equal(rod.field, initial)
    assert rod.time == 0.0


def test_plate_conserves_energy():
    solver = HeatSolver2D(Grid2D(21, 21, 1.0, 1.0), alpha=0.01)
    solver.set_gaussian(10.0, (0.3, 0.6), 0.1, baseline=1.0)
    initial = solver.thermal_energy()
    for _ in range(200):
        solver.step(0.01)
    assert solver.thermal_energy() == pytest.approx(initial, rel=1e-9)
    assert solver.get_max() < 11.0


def test_grid_dimension_checked():
    with pytest.raises(ConfigurationError):
        HeatSolver1D(Grid2D(5, 5, 1.0, 1.0), alpha=0.1)
    with pytest.raises(ConfigurationError):
        HeatSolver1D(Grid1D(5, 1.0), alpha=0.0)
    with pytest.raises(ConfigurationError):
        HeatSolver1D(Grid1D(5, 1.0), alpha=0.1, bc='robin')


def test_heat_removal_past_absolute_zero_is_fatal(rod):
    before = rod.field.copy()
    with pytest.raises(PhysicalBoundViolation):
        rod.absorb_energy(-1e9)
    np.testing.assert_array_equal(rod.field, before)


def test_moderate_heat_removal_allowed():
    solver = HeatSolver1D(Grid1D(11, 1.0), alpha=0.01)
    solver.set_field(np.full(11, 300.0))
    solver.absorb_energy(-1000.0)
    np.testing.assert_allclose(solver.field, 300.0 - 1000.0 / solver.total_heat_capacity())


def test_negative_coupling_flux_cannot_cool_below_zero():
    solver = HeatSolver1D(Grid1D(11, 1.0), alpha=0.01)
    solver.set_field(np.full(11, 1.0))
    solver.receive_coupling_data('sink', CouplingData(-1e12, 0.0, 'sink', 'heat'))
    with pytest.raises(PhysicalBoundViolation):
        solver.step(0.001)
    np.testing.assert_array_equal(solver.field, 1.0)
    assert solver.time == 0.0
