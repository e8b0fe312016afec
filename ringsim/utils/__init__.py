"""Initial conditions for the grid-backed solvers"""

from .initial_conditions import (
    gaussian_pulse_1d,
    gaussian_pulse_2d,
    gaussian_wavepacket,
    taylor_green_2d,
    taylor_green_3d,
    shear_flow,
    vortex_pair
)

__all__ = [
    'gaussian_pulse_1d',
    'gaussian_pulse_2d',
    'gaussian_wavepacket',
    'taylor_green_2d',
    'taylor_green_3d',
    'shear_flow',
    'vortex_pair'
]
