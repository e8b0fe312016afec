"""
Configuration dataclasses for kernel runs

Every field carries an explicit default so that a run can be created
without supplying values for everything. ``KernelConfig`` groups the
tolerances and solver settings shared by the orchestrator and solvers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict


def _split_known(cls, data: Dict[str, Any]):
    names = {f.name for f in fields(cls)}
    known = {k: v for k, v in data.items() if k in names}
    unknown = {k: v for k, v in data.items() if k not in names}
    return known, unknown


@dataclass
class ConservationTolerances:
    """
    Thresholds used when diffing two conservation snapshots

    Energy and momentum are relative (normalised by ``max(|i|, |f|, 1)``),
    mass is absolute, entropy is the largest tolerated decrease.
    """

    energy: float = 1e-6
    momentum: float = 1e-6
    mass: float = 1e-9
    entropy: float = 1e-9

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConservationTolerances":
        known, _ = _split_known(cls, data)
        return cls(**known)


@dataclass
class SORConfig:
    """Successive over-relaxation settings for the pressure solve"""

    omega: float = 1.8
    tolerance: float = 1e-10
    max_iterations: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SORConfig":
        known, _ = _split_known(cls, data)
        return cls(**known)


@dataclass
class StabilityLimits:
    """
    Upper bounds on the advective and diffusive numbers of explicit steps

    The diffusive limit is the one-dimensional bound; solvers divide it by
    the number of dimensions they integrate.
    """

    advective: float = 1.0
    diffusive: float = 0.5

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StabilityLimits":
        known, _ = _split_known(cls, data)
        return cls(**known)


@dataclass
class KernelConfig:
    """Top level configuration for a simulation session"""

    tolerances: ConservationTolerances = field(default_factory=ConservationTolerances)
    sor: SORConfig = field(default_factory=SORConfig)
    stability: StabilityLimits = field(default_factory=StabilityLimits)

    # Reference temperature (K) for entropy produced by dissipation in
    # domains that carry no temperature of their own
    reference_temperature: float = 293.15
    gravity: float = 9.8

    # Raise on coupling edges that name unregistered rings
    strict_coupling: bool = False

    extras: dict = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KernelConfig":
        known, unknown = _split_known(cls, data)
        nested = {
            'tolerances': ConservationTolerances,
            'sor': SORConfig,
            'stability': StabilityLimits,
        }
        for key, sub_cls in nested.items():
            if isinstance(known.get(key), dict):
                known[key] = sub_cls.from_dict(known[key])
        extras = dict(known.pop('extras', {}) or {})
        extras.update(unknown)
        return cls(extras=extras, **known)
