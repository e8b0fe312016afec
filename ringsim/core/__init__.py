"""Ring contract, conservation ledger and coupling orchestrator"""

from .errors import (
    RingsimError,
    DimensionMismatch,
    PhysicalBoundViolation,
    NumericalInstability,
    ConfigurationError
)
from .config import ConservationTolerances, SORConfig, StabilityLimits, KernelConfig
from .dimensions import DimensionVector, DimensionalValue, DIMENSIONS
from .context import BoundSpec, PhysicalBounds, SimulationContext
from .ring import (
    EnergyContributions,
    EntropySignature,
    KinematicState,
    CouplingData,
    PhysicalRing
)
from .ledger import (
    StateSchema,
    ConservationSnapshot,
    ConservationReport,
    take_snapshot,
    check_conservation
)
from .entropy import EntropyTracker
from .orchestrator import CouplingOrchestrator, StepReport

__all__ = [
    'RingsimError',
    'DimensionMismatch',
    'PhysicalBoundViolation',
    'NumericalInstability',
    'ConfigurationError',
    'ConservationTolerances',
    'SORConfig',
    'StabilityLimits',
    'KernelConfig',
    'DimensionVector',
    'DimensionalValue',
    'DIMENSIONS',
    'BoundSpec',
    'PhysicalBounds',
    'SimulationContext',
    'EnergyContributions',
    'EntropySignature',
    'KinematicState',
    'CouplingData',
    'PhysicalRing',
    'StateSchema',
    'ConservationSnapshot',
    'ConservationReport',
    'take_snapshot',
    'check_conservation',
    'EntropyTracker',
    'CouplingOrchestrator',
    'StepReport'
]
