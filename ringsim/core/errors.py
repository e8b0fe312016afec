"""
Error taxonomy for the simulation kernel

Fatal conditions are raised at the point of detection. Conservation drift is
never raised: it is reported as data by the conservation ledger.
"""


class RingsimError(Exception):
    """Base class for every error raised by the kernel"""


class DimensionMismatch(RingsimError):
    """Incompatible physical dimensions combined in an arithmetic operation"""


class PhysicalBoundViolation(RingsimError):
    """A quantity left its registered legal range (e.g. T <= 0 K)"""

    def __init__(self, quantity: str, value: float, message: str = None):
        self.quantity = quantity
        self.value = value
        super().__init__(message or f"Physical bound violation: {quantity} = {value}")


class NumericalInstability(RingsimError):
    """Singular metric, non-finite field values or similar blow-ups"""


class ConfigurationError(RingsimError, ValueError):
    """Invalid setup: unknown integrator, bad grid, dangling coupling edge"""
