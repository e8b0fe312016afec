"""
Uniform 1D/2D/3D mesh descriptors

Grids are immutable and shared by every operator and solver bound to them.
Point i sits at ``i * spacing`` with ``spacing = L / (N - 1)``, so both ends
of the domain are grid points.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..core.errors import ConfigurationError


def _check_axis(label: str, n: int, length: float):
    if n < 2:
        raise ConfigurationError(f"Grid needs at least 2 points along {label}, got {n}")
    if not length > 0:
        raise ConfigurationError(f"Grid extent along {label} must be positive, got {length}")


def _trapezoid(n: int, spacing: float) -> np.ndarray:
    w = np.full(n, spacing)
    w[0] = w[-1] = 0.5 * spacing
    return w


class _GridMixin:

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return int(np.prod(self.shape))

    @property
    def min_spacing(self) -> float:
        return min(self.spacings)

    @property
    def cell_volume(self) -> float:
        return float(np.prod(self.spacings))

    @property
    def interior(self) -> Tuple[slice, ...]:
        return tuple(slice(1, -1) for _ in self.shape)

    @property
    def has_interior(self) -> bool:
        return all(n > 2 for n in self.shape)

    def zeros(self) -> np.ndarray:
        return np.zeros(self.shape)

    def index(self, *idx: int) -> int:
        """Row-major flattening index of a grid point"""
        return int(np.ravel_multi_index(idx, self.shape))

    def unravel(self, flat: int) -> Tuple[int, ...]:
        return tuple(int(i) for i in np.unravel_index(flat, self.shape))

    def integration_weights(self) -> np.ndarray:
        """Tensor-product trapezoid weights (half weight on boundary points)"""
        weights = np.ones(self.shape)
        for axis, (n, h) in enumerate(zip(self.shape, self.spacings)):
            shape = [1] * len(self.shape)
            shape[axis] = n
            weights = weights * _trapezoid(n, h).reshape(shape)
        return weights

    def integrate(self, field: np.ndarray) -> float:
        return float(np.sum(field * self.integration_weights()))


@dataclass(frozen=True)
class Grid1D(_GridMixin):
    n: int
    length: float

    def __post_init__(self):
        _check_axis('x', self.n, self.length)

    @property
    def dx(self) -> float:
        return self.length / (self.n - 1)

    @property
    def shape(self) -> Tuple[int]:
        return (self.n,)

    @property
    def spacings(self) -> Tuple[float]:
        return (self.dx,)

    @property
    def x(self) -> np.ndarray:
        return np.arange(self.n) * self.dx

    def coordinates(self) -> Tuple[np.ndarray]:
        return (self.x,)


@dataclass(frozen=True)
class Grid2D(_GridMixin):
    nx: int
    ny: int
    lx: float
    ly: float

    def __post_init__(self):
        _check_axis('x', self.nx, self.lx)
        _check_axis('y', self.ny, self.ly)

    @property
    def dx(self) -> float:
        return self.lx / (self.nx - 1)

    @property
    def dy(self) -> float:
        return self.ly / (self.ny - 1)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.nx, self.ny)

    @property
    def spacings(self) -> Tuple[float, float]:
        return (self.dx, self.dy)

    @property
    def x(self) -> np.ndarray:
        return np.arange(self.nx) * self.dx

    @property
    def y(self) -> np.ndarray:
        return np.arange(self.ny) * self.dy

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """Coordinate arrays of shape (nx, ny), 'ij' indexing"""
        return tuple(np.meshgrid(self.x, self.y, indexing='ij'))


@dataclass(frozen=True)
class Grid3D(_GridMixin):
    nx: int
    ny: int
    nz: int
    lx: float
    ly: float
    lz: float

    def __post_init__(self):
        _check_axis('x', self.nx, self.lx)
        _check_axis('y', self.ny, self.ly)
        _check_axis('z', self.nz, self.lz)

    @classmethod
    def cube(cls, n: int, length: float) -> 'Grid3D':
        return cls(n, n, n, length, length, length)

    @property
    def dx(self) -> float:
        return self.lx / (self.nx - 1)

    @property
    def dy(self) -> float:
        return self.ly / (self.ny - 1)

    @property
    def dz(self) -> float:
        return self.lz / (self.nz - 1)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.nx, self.ny, self.nz)

    @property
    def spacings(self) -> Tuple[float, float, float]:
        return (self.dx, self.dy, self.dz)

    @property
    def x(self) -> np.ndarray:
        return np.arange(self.nx) * self.dx

    @property
    def y(self) -> np.ndarray:
        return np.arange(self.ny) * self.dy

    @property
    def z(self) -> np.ndarray:
        return np.arange(self.nz) * self.dz

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return tuple(np.meshgrid(self.x, self.y, self.z, indexing='ij'))
