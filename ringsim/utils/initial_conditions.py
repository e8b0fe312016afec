"""
Initial conditions for the grid-backed solvers
"""

import numpy as np
from typing import Optional, Tuple

from ..geometry.grid import Grid1D, Grid2D, Grid3D


def gaussian_pulse_1d(grid: Grid1D,
                      amplitude: float,
                      center: float,
                      sigma: float,
                      baseline: float = 0.0) -> np.ndarray:
    """
    Gaussian bump on a 1D grid

    Args:
        grid: 1D grid
        amplitude: Peak height above the baseline
        center: Peak position
        sigma: Standard deviation of the pulse
        baseline: Constant offset added everywhere

    Returns:
        Field of shape (n,)
    """
    x = grid.x
    return baseline + amplitude * np.exp(-(x - center)**2 / (2 * sigma**2))


def gaussian_pulse_2d(grid: Grid2D,
                      amplitude: float,
                      center: Tuple[float, float],
                      sigma: float,
                      baseline: float = 0.0) -> np.ndarray:
    """Isotropic Gaussian bump on a 2D grid"""
    x, y = grid.coordinates()
    x0, y0 = center
    r_squared = (x - x0)**2 + (y - y0)**2
    return baseline + amplitude * np.exp(-r_squared / (2 * sigma**2))


def gaussian_wavepacket(grid: Grid1D,
                        center: float,
                        sigma: float,
                        wavenumber: float = 0.0) -> np.ndarray:
    """
    Normalised complex Gaussian wave packet

    The ends of the grid are zeroed so the packet respects hard walls.

    Returns:
        Complex array with sum(|psi|^2) * dx == 1
    """
    x = grid.x
    psi = np.exp(-(x - center)**2 / (4 * sigma**2) + 1j * wavenumber * x)
    psi[0] = psi[-1] = 0.0
    norm = np.sqrt(np.sum(np.abs(psi)**2) * grid.dx)
    return psi / norm


def taylor_green_2d(grid: Grid2D,
                    amplitude: float = 1.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Taylor-Green vortex with one period across the domain

        u =  A cos(kx x) sin(ky y)
        v = -A sin(kx x) cos(ky y)
    """
    x, y = grid.coordinates()
    kx = 2 * np.pi / grid.lx
    ky = 2 * np.pi / grid.ly
    u = amplitude * np.cos(kx * x) * np.sin(ky * y)
    v = -amplitude * np.sin(kx * x) * np.cos(ky * y)
    return u, v


def taylor_green_3d(grid: Grid3D,
                    amplitude: float = 1.0) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Classical 3D Taylor-Green vortex (divergence free, w = 0 initially)
    """
    x, y, z = grid.coordinates()
    kx = 2 * np.pi / grid.lx
    ky = 2 * np.pi / grid.ly
    kz = 2 * np.pi / grid.lz
    u = amplitude * np.sin(kx * x) * np.cos(ky * y) * np.cos(kz * z)
    v = -amplitude * np.cos(kx * x) * np.sin(ky * y) * np.cos(kz * z)
    w = np.zeros_like(u)
    return u, v, w


def shear_flow(grid: Grid2D,
               shear_rate: float = 1.0,
               perturbation: float = 0.0,
               seed: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sinusoidal shear layer u = A sin(2 pi y / Ly) with optional noise

    Args:
        grid: 2D grid
        shear_rate: Amplitude of the base flow
        perturbation: Standard deviation of the random perturbation
        seed: Seed for the perturbation generator

    Returns:
        (u, v) velocity components
    """
    _, y = grid.coordinates()
    u = shear_rate * np.sin(2 * np.pi * y / grid.ly)
    v = np.zeros_like(u)
    if perturbation > 0:
        rng = np.random.default_rng(seed)
        u = u + perturbation * rng.standard_normal(u.shape)
        v = v + perturbation * rng.standard_normal(v.shape)
    return u, v


def vortex_pair(grid: Grid2D,
                separation: float,
                strength: float = 1.0,
                core: float = 0.05) -> Tuple[np.ndarray, np.ndarray]:
    """
    Counter-rotating pair of regularised point vortices centred in the domain
    """
    x, y = grid.coordinates()
    xc, yc = 0.5 * grid.lx, 0.5 * grid.ly
    u = np.zeros_like(x)
    v = np.zeros_like(x)
    for sign, x0 in ((1, xc - separation / 2), (-1, xc + separation / 2)):
        dx = x - x0
        dy = y - yc
        r_squared = dx**2 + dy**2 + core**2
        u += sign * strength * dy / r_squared
        v -= sign * strength * dx / r_squared
    return u, v
