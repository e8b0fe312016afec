import logging

import numpy as np
import pytest

from ringsim.core import CouplingData
from ringsim.core.errors import ConfigurationError
from ringsim.geometry import Grid1D
from ringsim.physics import YeeSolver1D
from ringsim.physics.electromagnetic import C, EPS0, MU0


@pytest.fixture
def cavity():
    solver = YeeSolver1D(Grid1D(201, 1.0))
    solver.set_gaussian_pulse(1.0, 0.5, 0.05)
    return solver


def test_staggering(cavity):
    assert cavity.E.shape == (201,)
    assert cavity.H.shape == (200,)


def test_initial_energy_is_electric(cavity):
    expected = 0.5 * EPS0 * np.sum(cavity.E**2) * cavity.grid.dx
    assert cavity.field_energy() == pytest.approx(expected)


def test_energy_never_grows_in_lossless_cavity(cavity):
    dt = 0.5 * cavity.max_stable_dt()
    initial = cavity.field_energy()
    for _ in range(400):
        cavity.step(dt)
        assert cavity.field_energy() <= initial * (1 + 1e-9)
    assert cavity.field_energy() == pytest.approx(initial, rel=1e-9)
    assert cavity.E[0] == 0.0 and cavity.E[-1] == 0.0
    assert cavity.peak_h() > 0


def test_pulse_splits_and_travels(cavity):
    dt = 0.5 * cavity.max_stable_dt()
    steps = 100
    for _ in range(steps):
        cavity.step(dt)
    distance = 1.0 / np.sqrt(EPS0 * MU0) * dt * steps
    right_peak = cavity.grid.x[100 + np.argmax(np.abs(cavity.E[100:]))]
    assert right_peak == pytest.approx(0.5 + distance, abs=2 * cavity.grid.dx)
    assert cavity.peak_e() == pytest.approx(0.5, rel=0.05)


def test_courant_check_and_warning(cavity, caplog):
    dt = 2.0 * cavity.max_stable_dt()
    check = cavity.check_cfl(dt)
    assert not check.ok
    assert check.courant == pytest.approx(2.0)
    with caplog.at_level(logging.WARNING, logger='ringsim.physics.electromagnetic'):
        cavity.step(dt)
    assert 'Courant' in caplog.text


def test_vacuum_speed_close_to_c():
    solver = YeeSolver1D(Grid1D(11, 1.0))
    assert solver.wave_speed()[0] == pytest.approx(C, rel=1e-3)


def test_permittivity_coupling_is_clamped(cavity):
    payload = CouplingData(0.0, 0.0, 'water', 'em', {'relative_permittivity': 0.5})
    cavity.receive_coupling_data('water', payload)
    np.testing.assert_allclose(cavity.eps, EPS0)

    speed = cavity.wave_speed()[0]
    profile = np.full(201, 4.0)
    cavity.receive_coupling_data('water', CouplingData(0.0, 0.0, 'water', 'em',
                                                       {'relative_permittivity': profile}))
    assert cavity.wave_speed()[0] == pytest.approx(speed / 2)


def test_reset(cavity):
    initial = cavity.E.copy()
    cavity.step(0.5 * cavity.max_stable_dt())
    cavity.reset()
    np.testing.assert_array_equal(cavity.E, initial)
    assert np.all(cavity.H == 0)


def test_field_shape_validation():
    solver = YeeSolver1D(Grid1D(11, 1.0))
    with pytest.raises(ConfigurationError):
        solver.set_field(np.zeros(10))
    with pytest.raises(ConfigurationError):
        solver.set_field(np.zeros(11), np.zeros(11))


def test_unusable_permittivity_ignored(cavity):
    eps = cavity.eps.copy()
    cavity.receive_coupling_data('water', CouplingData(0.0, 0.0, 'water', 'em',
                                                       {'relative_permittivity': np.ones(7)}))
    cavity.receive_coupling_data('water', CouplingData(0.0, 0.0, 'water', 'em',
                                                       {'relative_permittivity': float('nan')}))
    np.testing.assert_array_equal(cavity.eps, eps)


def standing_wave(grid):
    dx = grid.dx
    E = np.sin(np.pi * grid.x)
    H = np.sqrt(EPS0 / MU0) * np.cos(np.pi * (grid.x[:-1] + 0.5 * dx))
    return E, H


def test_energy_exact_from_start_with_initial_magnetic_field():
    solver = YeeSolver1D(Grid1D(101, 1.0))
    dt = 0.5 * solver.max_stable_dt()
    solver.set_field(*standing_wave(solver.grid), dt=dt)
    initial = solver.field_energy()
    for _ in range(50):
        solver.step(dt)
        assert solver.field_energy() == pytest.approx(initial, rel=1e-10)


def test_first_step_conserves_energy_with_initial_magnetic_field():
    solver = YeeSolver1D(Grid1D(101, 1.0))
    dt = 0.5 * solver.max_stable_dt()
    solver.set_field(*standing_wave(solver.grid))
    delta = solver.step(dt)
    after_first = solver.field_energy()
    assert abs(delta) < 1e-10 * after_first
    for _ in range(50):
        solver.step(dt)
    assert solver.field_energy() == pytest.approx(after_first, rel=1e-10)
