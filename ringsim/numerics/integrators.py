"""
Generic explicit time integrators on named-scalar states

Each integrator advances a ``Dict[str, float]`` state with a user supplied
derivative function and hands the result to the conservation ledger before
returning it. Fields the derivative function does not mention are treated
as constants.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from ..core.config import ConservationTolerances
from ..core.errors import ConfigurationError
from ..core.ledger import ConservationReport, StateSchema, DEFAULT_SCHEMA, check_conservation

State = Dict[str, float]
DerivativeFn = Callable[[Mapping[str, float]], Mapping[str, float]]


@dataclass
class IntegrationResult:
    state: State
    report: ConservationReport


def _axpy(state: Mapping[str, float], deriv: Mapping[str, float], dt: float) -> State:
    """state + dt * deriv, key by key"""
    return {key: value + dt * deriv.get(key, 0.0) for key, value in state.items()}


class Integrator(ABC):
    """
    Base class: subclasses implement ``_advance``

    Args:
        tolerances: Ledger tolerances applied to every step
        schema: Field naming convention used by the ledger
    """

    name = 'integrator'

    def __init__(self, tolerances: Optional[ConservationTolerances] = None,
                 schema: StateSchema = DEFAULT_SCHEMA):
        self.tolerances = tolerances or ConservationTolerances()
        self.schema = schema

    @abstractmethod
    def _advance(self, state: Mapping[str, float], derivative_fn: DerivativeFn,
                 dt: float) -> State:
        """The new state after one step of size dt"""

    def step(self, state: Mapping[str, float], derivative_fn: DerivativeFn,
             dt: float) -> IntegrationResult:
        new_state = self._advance(state, derivative_fn, dt)
        report = check_conservation(state, new_state, self.tolerances, self.schema)
        return IntegrationResult(new_state, report)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ForwardEuler(Integrator):
    """One derivative evaluation: y + dt f(y)"""

    name = 'euler'

    def _advance(self, state, derivative_fn, dt):
        return _axpy(state, derivative_fn(state), dt)


class Midpoint(Integrator):
    """Derivative evaluated at the Euler-predicted half step"""

    name = 'midpoint'

    def _advance(self, state, derivative_fn, dt):
        k1 = derivative_fn(state)
        half = _axpy(state, k1, 0.5 * dt)
        return _axpy(state, derivative_fn(half), dt)


class RungeKutta4(Integrator):
    """Classical RK4 with stage weights (1, 2, 2, 1) / 6"""

    name = 'rk4'

    def _advance(self, state, derivative_fn, dt):
        k1 = derivative_fn(state)
        k2 = derivative_fn(_axpy(state, k1, 0.5 * dt))
        k3 = derivative_fn(_axpy(state, k2, 0.5 * dt))
        k4 = derivative_fn(_axpy(state, k3, dt))
        return {
            key: value + dt / 6.0 * (k1.get(key, 0.0) + 2.0 * k2.get(key, 0.0)
                                     + 2.0 * k3.get(key, 0.0) + k4.get(key, 0.0))
            for key, value in state.items()
        }


class _Symplectic(Integrator):
    """
    Shared checks for the position/velocity splitting schemes

    The derivative function reports d(position)/dt under 'position' and the
    acceleration under 'velocity'.
    """

    def _require_phase_space(self, state):
        missing = [key for key in ('position', 'velocity') if key not in state]
        if missing:
            raise ConfigurationError(
                f"{self.name} integrator needs 'position' and 'velocity' fields; "
                f"missing: {', '.join(missing)}"
            )

    @staticmethod
    def _others(state, deriv, dt) -> State:
        return {key: value + dt * deriv.get(key, 0.0)
                for key, value in state.items() if key not in ('position', 'velocity')}


class SymplecticEuler(_Symplectic):
    """Kick then drift: the position update uses the updated velocity"""

    name = 'symplectic_euler'

    def _advance(self, state, derivative_fn, dt):
        self._require_phase_space(state)
        deriv = derivative_fn(state)
        new_state = self._others(state, deriv, dt)
        velocity = state['velocity'] + dt * deriv.get('velocity', 0.0)
        new_state['velocity'] = velocity
        new_state['position'] = state['position'] + dt * velocity
        return new_state


class VelocityVerlet(_Symplectic):
    """
    Half kick, full drift, re-evaluate the acceleration, half kick
    """

    name = 'velocity_verlet'

    def _advance(self, state, derivative_fn, dt):
        self._require_phase_space(state)
        deriv = derivative_fn(state)
        new_state = self._others(state, deriv, dt)

        v_half = state['velocity'] + 0.5 * dt * deriv.get('velocity', 0.0)
        position = state['position'] + dt * v_half

        drifted = dict(state)
        drifted['position'] = position
        drifted['velocity'] = v_half
        a_new = derivative_fn(drifted).get('velocity', 0.0)

        new_state['position'] = position
        new_state['velocity'] = v_half + 0.5 * dt * a_new
        return new_state


INTEGRATORS = {
    'euler': ForwardEuler,
    'midpoint': Midpoint,
    'rk4': RungeKutta4,
    'symplectic_euler': SymplecticEuler,
    'velocity_verlet': VelocityVerlet,
    'verlet': VelocityVerlet,
}


def available_integrators():
    return list(INTEGRATORS)


def get_integrator(name: str, **kwargs) -> Integrator:
    """
    Look up an integrator by name

    Raises:
        ConfigurationError: naming the requested identifier and listing
            every valid name
    """
    try:
        cls = INTEGRATORS[name]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Unknown integrator '{name}'. Valid integrators: {', '.join(INTEGRATORS)}"
        ) from None
    return cls(**kwargs)
