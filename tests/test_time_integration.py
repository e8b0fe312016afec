import pytest

from ringsim.core.errors import ConfigurationError
from ringsim.geometry import Grid1D, Grid2D
from ringsim.numerics import AdaptiveTimeStep
from ringsim.physics import HeatSolver1D, NavierStokes2D, YeeSolver1D


def test_fraction_of_stability_bound():
    solver = HeatSolver1D(Grid1D(101, 1.0), alpha=0.01)
    stepper = AdaptiveTimeStep(cfl_number=0.5)
    assert stepper.compute_dt(solver) == pytest.approx(0.0025)
    assert solver.check_cfl(stepper.compute_dt(solver)).ok


def test_unbounded_solver_gets_max_dt():
    fluid = NavierStokes2D(Grid2D(8, 8, 1.0, 1.0), nu=0.0, rho=1.0)
    assert AdaptiveTimeStep(max_dt=0.05).compute_dt(fluid) == 0.05


def test_clipped_to_min_dt():
    cavity = YeeSolver1D(Grid1D(101, 1.0))
    stepper = AdaptiveTimeStep(min_dt=1e-6)
    assert stepper.compute_dt(cavity) == 1e-6


def test_invalid_settings():
    with pytest.raises(ConfigurationError):
        AdaptiveTimeStep(cfl_number=1.5)
    with pytest.raises(ConfigurationError):
        AdaptiveTimeStep(min_dt=1.0, max_dt=0.1)
