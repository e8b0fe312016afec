import math

import numpy as np
import pytest

from ringsim.core import CouplingData, NumericalInstability
from ringsim.core.errors import ConfigurationError
from ringsim.physics import MetricTensor4D, SpacetimeRing


def test_minkowski_intervals():
    metric = MetricTensor4D.minkowski()
    assert metric.interval([1, 0, 0, 0]) == -1.0
    assert metric.classify([1, 1, 0, 0]) == 'null'
    assert metric.classify([1, 2, 0, 0]) == 'spacelike'
    assert metric.classify([2, 1, 0, 0]) == 'timelike'
    assert metric.is_lorentzian()
    assert metric.determinant() == pytest.approx(-1.0)


def test_schwarzschild_components():
    metric = MetricTensor4D.schwarzschild(10.0, 1.0)
    assert metric[0, 0] == pytest.approx(-0.8)
    assert metric[1, 1] == pytest.approx(1.25)
    assert metric.determinant() == pytest.approx(-1e4)
    np.testing.assert_allclose(metric.inverse() @ metric.components, np.eye(4), atol=1e-12)
    assert metric.is_lorentzian()


@pytest.mark.parametrize("r", [2.0, 1.0, 0.0])
def test_horizon_rejected(r):
    with pytest.raises(NumericalInstability):
        MetricTensor4D.schwarzschild(r, 1.0)


def test_degenerate_metrics_rejected():
    with pytest.raises(NumericalInstability):
        MetricTensor4D.schwarzschild(10.0, 1.0, theta=0.0)
    with pytest.raises(NumericalInstability):
        MetricTensor4D(np.diag([-1.0, 1.0, np.nan, 1.0]))
    with pytest.raises(NumericalInstability):
        MetricTensor4D(np.diag([-1.0, 1.0, 1.0, 0.0]))
    with pytest.raises(ConfigurationError):
        MetricTensor4D(np.eye(3))


def test_near_horizon_metric_is_valid():
    metric = MetricTensor4D.schwarzschild(2.0 + 1e-9, 1.0)
    assert metric.is_lorentzian()


def test_static_observer_proper_time():
    ring = SpacetimeRing(radius=10.0, mass_parameter=1.0)
    ring.step(1.0)
    ring.step(1.0)
    assert ring.coordinate_time == pytest.approx(2.0)
    assert ring.proper_time == pytest.approx(2.0 * math.sqrt(0.8))
    assert ring.get_energy().total == 0.0


def test_mass_coupling_clamped_outside_horizon():
    ring = SpacetimeRing(radius=10.0, mass_parameter=1.0)
    ring.receive_coupling_data('x', CouplingData(0.0, 0.0, 'x', 'spacetime', {'mass_parameter': 50.0}))
    assert ring.mass_parameter < 5.0
    assert ring.lapse() > 0
    ring.receive_coupling_data('x', CouplingData(0.0, 0.0, 'x', 'spacetime', {'mass_parameter': -3.0}))
    assert ring.mass_parameter == 0.0
    assert ring.lapse() == pytest.approx(1.0)
    ring.reset()
    assert ring.mass_parameter == 1.0
    assert ring.proper_time == 0.0
