"""Grids and finite-difference operators"""

from .grid import Grid1D, Grid2D, Grid3D
from .derivatives import (
    derivative,
    laplacian,
    gradient,
    divergence,
    curl_2d,
    curl_3d
)

__all__ = [
    'Grid1D',
    'Grid2D',
    'Grid3D',
    'derivative',
    'laplacian',
    'gradient',
    'divergence',
    'curl_2d',
    'curl_3d'
]
