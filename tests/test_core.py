import math

import pytest

from ringsim.core import (
    DIMENSIONS,
    BoundSpec,
    DimensionMismatch,
    DimensionalValue,
    DimensionVector,
    EntropyTracker,
    KernelConfig,
    NumericalInstability,
    PhysicalBoundViolation,
    SimulationContext,
    SORConfig,
)
from ringsim.core.errors import ConfigurationError, RingsimError


def test_error_hierarchy():
    assert issubclass(ConfigurationError, ValueError)
    for cls in (DimensionMismatch, PhysicalBoundViolation, NumericalInstability, ConfigurationError):
        assert issubclass(cls, RingsimError)


def test_dimension_algebra():
    mass = DimensionalValue(2.0, DIMENSIONS['mass'], 'm')
    speed = DimensionalValue(3.0, DIMENSIONS['velocity'], 'v')
    energy = 0.5 * mass * speed**2
    assert energy.value == pytest.approx(9.0)
    assert energy.dimension == DIMENSIONS['energy']
    assert (DIMENSIONS['force'] / DIMENSIONS['area']) == DIMENSIONS['pressure']
    assert str(DIMENSIONS['force']) == '[L M T^-2]'
    assert DimensionVector().is_dimensionless()


def test_adding_mismatched_dimensions_raises():
    length = DimensionalValue(1.0, DIMENSIONS['length'])
    duration = DimensionalValue(1.0, DIMENSIONS['time'])
    with pytest.raises(DimensionMismatch):
        length + duration
    with pytest.raises(DimensionMismatch):
        length - duration


def test_non_finite_and_zero_division():
    with pytest.raises(NumericalInstability):
        DimensionalValue(math.inf, DIMENSIONS['length'])
    length = DimensionalValue(1.0, DIMENSIONS['length'])
    with pytest.raises(NumericalInstability):
        length / DimensionalValue(0.0, DIMENSIONS['time'])
    with pytest.raises(NumericalInstability):
        length / 0


def test_default_bounds():
    context = SimulationContext()
    assert not context.check('temperature', 0.0)
    assert context.check('temperature', 1e-3)
    assert context.check('probability_density', 1.0)
    assert not context.check('probability_density', 1.5)
    assert context.check('unregistered', -1e9)


def test_enforce_raises_and_records():
    context = SimulationContext()
    with pytest.raises(PhysicalBoundViolation) as excinfo:
        context.enforce('temperature', -10.0, 'thermal')
    assert excinfo.value.quantity == 'temperature'
    assert len(context.errors) == 1
    context.assert_no_errors()


def test_custom_bound_registration():
    context = SimulationContext()
    context.bounds.register('pressure', BoundSpec(minimum=0.0))
    with pytest.raises(PhysicalBoundViolation):
        context.enforce('pressure', -1.0)


def test_dimension_errors_are_recorded_then_raised():
    context = SimulationContext()
    force = DimensionalValue(1.0, DIMENSIONS['force'])
    energy = DimensionalValue(1.0, DIMENSIONS['energy'])
    assert context.verify_equation(force, force, 'identity')
    assert not context.verify_equation(force, energy, 'work')
    with pytest.raises(DimensionMismatch, match="work"):
        context.assert_no_errors()
    context.reset()
    context.assert_no_errors()
    assert context.errors == []


def test_config_roundtrip_and_extras():
    config = KernelConfig.from_dict({'sor': {'omega': 1.5}, 'gravity': 1.62, 'note': 'moon'})
    assert config.sor == SORConfig(omega=1.5)
    assert config.gravity == 1.62
    assert config.extras == {'note': 'moon'}
    assert KernelConfig.from_dict(config.to_dict()) == config


def test_config_defaults():
    config = KernelConfig()
    assert config.sor.max_iterations == 200
    assert config.stability.diffusive == 0.5
    assert config.reference_temperature == 293.15
    assert not config.strict_coupling


def test_entropy_tracker():
    tracker = EntropyTracker()
    assert tracker.track_heat_conduction(100.0, 300.0, 400.0, 1.0) == 0.0
    produced = tracker.track_heat_conduction(100.0, 400.0, 300.0, 1.0)
    assert produced == pytest.approx(100.0 * (1 / 300 - 1 / 400))
    tracker.track_mechanical_dissipation(2.0, -3.0, 300.0, 0.5)
    summary = tracker.summary()
    assert set(summary) == {'conduction', 'friction'}
    assert summary['friction'] == pytest.approx(0.01)
    assert 'TOTAL' in tracker.format_history()
    with pytest.raises(PhysicalBoundViolation):
        tracker.track_generic('bogus', -1.0)
    tracker.reset()
    assert tracker.irreversible_production == 0.0
