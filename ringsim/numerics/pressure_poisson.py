"""
Successive over-relaxation solver for the pressure Poisson equation

The discrete Laplacian is assembled as the central divergence of the
central gradient, with the gradient masked to interior points (the only
points a projection corrects). Solving with this operator means that
subtracting ``grad p`` from a provisional velocity cancels its interior
divergence once the iteration has converged, rather than only up to the
mismatch between a compact Laplacian and the divergence operator.

Points two cells apart are coupled along each axis, so the sweep is
ordered by the parity of ``sum(i_k // 2)``: points of one colour never
couple to each other and each colour is updated in a single vectorized
pass.

The wide stencil splits the grid into 2^d sub-grids of equal index
parity. When every axis has an odd point count, the all-odd sub-grid never
reaches a boundary point, so the operator is singular there: the pressure
is fixed only up to a constant and the equation is solvable only when the
right-hand side sums to zero over that sub-grid. The solver removes that
mean before iterating and pins the pressure mean to zero afterwards. The
removed part is the net boundary flux through the sub-grid, which no
interior correction can cancel.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import SORConfig
from ..core.errors import ConfigurationError, NumericalInstability

logger = logging.getLogger(__name__)


@dataclass
class SORResult:
    pressure: np.ndarray
    iterations: int
    converged: bool
    max_update: float


def _shift_mask(mask: np.ndarray, axis: int, offset: int) -> np.ndarray:
    """out[i] = mask[i + offset] along axis, False where that falls off the grid"""
    out = np.zeros_like(mask)
    n = mask.shape[axis]
    src = [slice(None)] * mask.ndim
    dst = [slice(None)] * mask.ndim
    if offset > 0:
        src[axis] = slice(offset, n)
        dst[axis] = slice(0, n - offset)
    else:
        src[axis] = slice(0, n + offset)
        dst[axis] = slice(-offset, n)
    out[tuple(dst)] = mask[tuple(src)]
    return out


class SORPoissonSolver:
    """
    Red-black ordered SOR on a uniform grid

    Pressure on boundary points is held at its initial value (zero for a
    cold start).
    """

    def __init__(self, shape: Tuple[int, ...], spacings: Sequence[float],
                 config: Optional[SORConfig] = None):
        """
        Args:
            shape: Grid shape
            spacings: Grid spacing along each axis
            config: Relaxation factor, tolerance and iteration cap
        """
        if len(shape) != len(spacings):
            raise ConfigurationError("shape and spacings must have the same length")
        self.config = config or SORConfig()
        if not 0.0 < self.config.omega < 2.0:
            raise ConfigurationError(
                f"SOR relaxation factor must lie in (0, 2), got {self.config.omega}"
            )
        self.shape = tuple(shape)
        self.spacings = tuple(spacings)

        interior = np.zeros(self.shape, dtype=bool)
        interior[tuple(slice(1, -1) for _ in self.shape)] = True

        # Neighbour weights: plus[a] is set where the gradient at i + e_a is
        # corrected, minus[a] where the gradient at i - e_a is
        self.plus = []
        self.minus = []
        self.diag = np.zeros(self.shape)
        for axis, h in enumerate(self.spacings):
            c = 1.0 / (4.0 * h * h)
            plus = c * _shift_mask(interior, axis, 1)
            minus = c * _shift_mask(interior, axis, -1)
            self.plus.append(plus)
            self.minus.append(minus)
            self.diag -= plus + minus

        active = interior & (self.diag != 0.0)
        parity = sum(idx // 2 for idx in np.indices(self.shape)) % 2
        self.colours = [active & (parity == 0), active & (parity == 1)]
        self.active = active
        self.null_masks = self._floating_subgrids()

    def _floating_subgrids(self) -> List[np.ndarray]:
        """Parity sub-grids on which a constant pressure is annihilated"""
        index_parity = np.indices(self.shape) % 2
        threshold = 1e-12 * float(np.max(np.abs(self.diag), initial=0.0))
        masks = []
        for pattern in itertools.product((0, 1), repeat=len(self.shape)):
            mask = self.active.copy()
            for axis, bit in enumerate(pattern):
                mask &= index_parity[axis] == bit
            if mask.any() and np.max(np.abs(self.apply(mask.astype(float)))) <= threshold:
                masks.append(mask)
        return masks

    def compatible_rhs(self, rhs: np.ndarray) -> np.ndarray:
        """Copy of rhs with its mean removed on every floating sub-grid"""
        rhs = np.array(rhs, dtype=float)
        for mask in self.null_masks:
            rhs[mask] -= rhs[mask].mean()
        return rhs

    def apply(self, p: np.ndarray) -> np.ndarray:
        """The discrete Laplacian of p at interior points (zero elsewhere)"""
        out = self.diag * p
        for axis in range(len(self.shape)):
            out += self.plus[axis] * np.roll(p, -2, axis=axis)
            out += self.minus[axis] * np.roll(p, 2, axis=axis)
        out[~self.active] = 0.0
        return out

    def _off_diagonal(self, p: np.ndarray) -> np.ndarray:
        # np.roll wraps around, but wrapped entries only meet zero weights
        total = np.zeros_like(p)
        for axis in range(len(self.shape)):
            total += self.plus[axis] * np.roll(p, -2, axis=axis)
            total += self.minus[axis] * np.roll(p, 2, axis=axis)
        return total

    def solve(self, rhs: np.ndarray, initial: Optional[np.ndarray] = None) -> SORResult:
        """
        Iterate until the largest pointwise update drops below the tolerance
        or the iteration cap is reached

        Non-convergence is not fatal: the best available pressure is
        returned with ``converged=False``. The right-hand side is made
        compatible first (see ``compatible_rhs``).
        """
        if rhs.shape != self.shape:
            raise ConfigurationError(f"rhs shape {rhs.shape} does not match grid {self.shape}")
        rhs = self.compatible_rhs(rhs)
        p = np.zeros(self.shape) if initial is None else np.array(initial, dtype=float)
        omega = self.config.omega
        safe_diag = np.where(self.active, self.diag, 1.0)

        max_update = 0.0
        iterations = 0
        converged = not self.active.any()
        while not converged and iterations < self.config.max_iterations:
            max_update = 0.0
            for colour in self.colours:
                gauss_seidel = (rhs - self._off_diagonal(p)) / safe_diag
                update = omega * (gauss_seidel - p)
                p[colour] += update[colour]
                if colour.any():
                    max_update = max(max_update, float(np.max(np.abs(update[colour]))))
            iterations += 1
            if not np.isfinite(max_update):
                raise NumericalInstability("SOR pressure iteration diverged")
            converged = max_update < self.config.tolerance

        for mask in self.null_masks:
            p[mask] -= p[mask].mean()

        if not converged:
            logger.debug("SOR stopped after %d iterations, last update %.3e",
                         iterations, max_update)
        return SORResult(p, iterations, converged, max_update)
