"""
Finite-difference operators on uniform grids

Central differences in the interior. Boundaries follow one of two
policies:

- ``dirichlet``: values are held fixed, first derivatives are one-sided and
  the Laplacian is zero on boundary points;
- ``neumann``: zero flux through a ghost point reflected across the
  boundary (f[-1] = f[1]). The trapezoid-weighted sum of a field advanced
  with this Laplacian is conserved exactly.
"""

from typing import Sequence, Tuple

import numpy as np

from ..core.errors import ConfigurationError

BOUNDARY_CONDITIONS = ('dirichlet', 'neumann')


def check_boundary(bc: str) -> str:
    if bc not in BOUNDARY_CONDITIONS:
        raise ConfigurationError(
            f"Unknown boundary condition '{bc}'. Valid: {', '.join(BOUNDARY_CONDITIONS)}"
        )
    return bc


def _axis_slice(ndim: int, axis: int, sl) -> Tuple:
    index = [slice(None)] * ndim
    index[axis] = sl
    return tuple(index)


def derivative(field: np.ndarray, spacing: float, axis: int = 0) -> np.ndarray:
    """
    First derivative along one axis

    Central differences at interior points, first-order one-sided
    differences at the two boundary points.
    """
    grad = np.zeros_like(field, dtype=np.result_type(field, float))
    n = field.shape[axis]
    if n < 2:
        return grad
    nd = field.ndim

    if n > 2:
        grad[_axis_slice(nd, axis, slice(1, -1))] = (
            field[_axis_slice(nd, axis, slice(2, None))] -
            field[_axis_slice(nd, axis, slice(None, -2))]
        ) / (2 * spacing)
    grad[_axis_slice(nd, axis, 0)] = (
        field[_axis_slice(nd, axis, 1)] - field[_axis_slice(nd, axis, 0)]
    ) / spacing
    grad[_axis_slice(nd, axis, -1)] = (
        field[_axis_slice(nd, axis, -1)] - field[_axis_slice(nd, axis, -2)]
    ) / spacing
    return grad


def laplacian(field: np.ndarray, spacings: Sequence[float], bc: str = 'dirichlet') -> np.ndarray:
    """
    Second-order Laplacian

    Args:
        field: Array with one axis per grid dimension
        spacings: Grid spacing along each axis
        bc: 'dirichlet' or 'neumann'
    """
    check_boundary(bc)
    if len(spacings) != field.ndim:
        raise ConfigurationError(
            f"Field has {field.ndim} axes but {len(spacings)} spacings were given"
        )

    if bc == 'neumann':
        # reflect mode mirrors about the edge point, giving f[-1] = f[1]
        padded = np.pad(field, 1, mode='reflect')
        lap = np.zeros_like(field, dtype=np.result_type(field, float))
        centre = tuple(slice(1, -1) for _ in range(field.ndim))
        for axis, h in enumerate(spacings):
            plus = list(centre)
            minus = list(centre)
            plus[axis] = slice(2, None)
            minus[axis] = slice(None, -2)
            lap += (padded[tuple(plus)] - 2 * field + padded[tuple(minus)]) / (h * h)
        return lap

    lap = np.zeros_like(field, dtype=np.result_type(field, float))
    interior = tuple(slice(1, -1) for _ in range(field.ndim))
    for axis, h in enumerate(spacings):
        plus = list(interior)
        minus = list(interior)
        plus[axis] = slice(2, None)
        minus[axis] = slice(None, -2)
        lap[interior] += (field[tuple(plus)] - 2 * field[interior] + field[tuple(minus)]) / (h * h)
    return lap


def gradient(field: np.ndarray, spacings: Sequence[float]) -> Tuple[np.ndarray, ...]:
    return tuple(derivative(field, h, axis) for axis, h in enumerate(spacings))


def divergence(components: Sequence[np.ndarray], spacings: Sequence[float]) -> np.ndarray:
    """Sum of the first derivative of each component along its own axis"""
    div = np.zeros_like(components[0], dtype=float)
    for axis, (comp, h) in enumerate(zip(components, spacings)):
        div += derivative(comp, h, axis)
    return div


def curl_2d(u: np.ndarray, v: np.ndarray, spacings: Sequence[float]) -> np.ndarray:
    """Scalar vorticity dv/dx - du/dy"""
    dx, dy = spacings
    return derivative(v, dx, 0) - derivative(u, dy, 1)


def curl_3d(u: np.ndarray, v: np.ndarray, w: np.ndarray,
            spacings: Sequence[float]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    dx, dy, dz = spacings
    omega_x = derivative(w, dy, 1) - derivative(v, dz, 2)
    omega_y = derivative(u, dz, 2) - derivative(w, dx, 0)
    omega_z = derivative(v, dx, 0) - derivative(u, dy, 1)
    return omega_x, omega_y, omega_z
