import math

import pytest

from ringsim.core import CouplingData, PhysicalBoundViolation
from ringsim.core.errors import ConfigurationError
from ringsim.physics import MomentumRing, SpeciesRing, ThermalRing


def payload(flux=0.0, **fields):
    return CouplingData(flux, 0.0, 'source', 'target', fields or None)


def test_free_fall_conserves_mechanical_energy():
    ring = MomentumRing(position=10.0, velocity=0.0, mass=1.0)
    initial = ring.get_energy().total
    for _ in range(100):
        ring.step(0.01)
    assert ring.get_energy().total == pytest.approx(initial, rel=1e-10)
    assert ring.velocity == pytest.approx(-9.8 * 1.0)
    assert ring.position == pytest.approx(10.0 - 0.5 * 9.8)


def test_energy_contributions_total():
    ring = MomentumRing(position=2.0, velocity=3.0, mass=2.0, g=10.0)
    energy = ring.get_energy()
    assert energy.kinetic == pytest.approx(9.0)
    assert energy.potential == pytest.approx(40.0)
    assert energy.total == pytest.approx(49.0)


def test_friction_power_offered_to_thermal():
    ring = MomentumRing(position=0.0, velocity=5.0, mass=1.0, g=0.0, friction=0.5)
    assert ring.get_coupling_to('thermal').energy_flux == 0.0
    delta = ring.step(0.1)
    assert delta < 0
    assert ring.dissipated == pytest.approx(-delta)
    coupling = ring.get_coupling_to('thermal')
    assert coupling.energy_flux == pytest.approx(-delta / 0.1)
    assert coupling.source_ring == 'momentum'
    assert ring.get_coupling_to('species') is None


def test_queued_force_applies_once():
    ring = MomentumRing(g=0.0)
    ring.add_force(2.0)
    ring.step(1.0)
    assert ring.velocity == pytest.approx(2.0)
    ring.step(1.0)
    assert ring.velocity == pytest.approx(2.0)


def test_momentum_reset():
    ring = MomentumRing(position=1.0, velocity=2.0)
    ring.step(0.1)
    ring.reset()
    assert (ring.position, ring.velocity) == (1.0, 2.0)


def test_thermal_absorbs_heat():
    ring = ThermalRing(temperature=300.0, mass=1.0, cp=1000.0)
    assert ring.absorb_energy(1000.0) == 1000.0
    assert ring.temperature == pytest.approx(301.0)
    assert ring.entropy_produced == pytest.approx(1000.0 / 300.0)
    assert ring.get_entropy().thermal == pytest.approx(1000.0 * math.log(301.0))


def test_thermal_rejects_non_positive_temperature():
    ring = ThermalRing(temperature=300.0, mass=1.0, cp=1000.0)
    with pytest.raises(PhysicalBoundViolation):
        ring.absorb_energy(-400000.0)
    assert ring.temperature == 300.0
    with pytest.raises(PhysicalBoundViolation):
        ThermalRing(temperature=0.0)


def test_thermal_applies_incoming_flux_on_next_step():
    ring = ThermalRing(temperature=300.0, mass=2.0, cp=500.0)
    ring.receive_coupling_data('momentum', payload(100.0))
    assert ring.temperature == 300.0
    assert ring.step(0.5) == pytest.approx(50.0)
    assert ring.temperature == pytest.approx(300.05)
    assert ring.step(0.5) == 0.0


def test_species_requires_positive_michaelis_constant():
    with pytest.raises(ConfigurationError):
        SpeciesRing(1.0, v_max=0.1, k_m=0.0, delta_h=-1000.0)


def test_species_released_energy_matches_chemical_loss():
    ring = SpeciesRing(1.0, v_max=0.1, k_m=0.5, delta_h=-1000.0)
    before = ring.get_energy().chemical
    delta = ring.step(0.1)
    assert ring.reaction_rate == pytest.approx(0.1 / 1.5)
    assert ring.concentration == pytest.approx(1.0 - 0.1 / 1.5 * 0.1)
    assert ring.energy_released == pytest.approx(-delta)
    assert ring.get_energy().chemical == pytest.approx(before + delta)
    assert ring.get_coupling_to('thermal').energy_flux == pytest.approx(ring.energy_released / 0.1)
    assert ring.entropy_produced > 0


def test_species_concentration_never_negative():
    ring = SpeciesRing(0.01, v_max=10.0, k_m=0.1, delta_h=-1.0)
    ring.step(10.0)
    assert ring.concentration == 0.0
    assert ring.step(1.0) == 0.0
    assert ring.get_coupling_to('thermal') is None
