import numpy as np
import pytest

from ringsim.core.errors import ConfigurationError
from ringsim.geometry import (
    Grid1D,
    Grid2D,
    Grid3D,
    curl_2d,
    derivative,
    divergence,
    laplacian,
)


def test_grid1d_spacing_includes_both_ends():
    grid = Grid1D(11, 1.0)
    assert grid.dx == pytest.approx(0.1)
    assert grid.shape == (11,)
    assert grid.x[0] == 0.0
    assert grid.x[-1] == pytest.approx(1.0)


@pytest.mark.parametrize("factory", [
    lambda: Grid1D(1, 1.0),
    lambda: Grid2D(4, 4, 0.0, 1.0),
    lambda: Grid3D(4, 4, 4, 1.0, 1.0, -1.0),
])
def test_grid_rejects_degenerate_axes(factory):
    with pytest.raises(ConfigurationError):
        factory()


def test_grid_is_immutable():
    grid = Grid2D(5, 5, 1.0, 1.0)
    with pytest.raises(AttributeError):
        grid.nx = 10


def test_trapezoid_weights_integrate_constants_exactly():
    grid = Grid2D(5, 9, 2.0, 3.0)
    assert grid.integrate(np.ones(grid.shape)) == pytest.approx(6.0)
    cube = Grid3D.cube(6, 2.0)
    assert cube.integrate(np.ones(cube.shape)) == pytest.approx(8.0)


def test_index_roundtrip():
    grid = Grid3D(4, 5, 6, 1.0, 1.0, 1.0)
    flat = grid.index(2, 3, 4)
    assert flat == 2 * 30 + 3 * 6 + 4
    assert grid.unravel(flat) == (2, 3, 4)


def test_grid_properties():
    grid = Grid2D(11, 21, 1.0, 1.0)
    assert grid.min_spacing == pytest.approx(0.05)
    assert grid.cell_volume == pytest.approx(0.1 * 0.05)
    assert grid.has_interior
    assert not Grid2D(2, 5, 1.0, 1.0).has_interior


def test_derivative_exact_for_linear_fields():
    grid = Grid1D(21, 2.0)
    d = derivative(3.0 * grid.x + 1.0, grid.dx)
    np.testing.assert_allclose(d, 3.0)


def test_dirichlet_laplacian_of_quadratic():
    grid = Grid1D(21, 1.0)
    lap = laplacian(grid.x**2, grid.spacings, 'dirichlet')
    np.testing.assert_allclose(lap[1:-1], 2.0)
    assert lap[0] == 0.0 and lap[-1] == 0.0


def test_neumann_laplacian_has_zero_weighted_sum():
    rng = np.random.default_rng(1)
    grid = Grid2D(17, 13, 1.0, 0.5)
    field = rng.uniform(0.5, 1.5, grid.shape)
    lap = laplacian(field, grid.spacings, 'neumann')
    assert grid.integrate(lap) == pytest.approx(0.0, abs=1e-8)


def test_unknown_boundary_condition():
    with pytest.raises(ConfigurationError, match="periodic"):
        laplacian(np.zeros(5), (0.1,), 'periodic')


def test_divergence_and_curl_of_linear_fields():
    grid = Grid2D(9, 9, 1.0, 1.0)
    x, y = grid.coordinates()
    np.testing.assert_allclose(divergence([x, y], grid.spacings), 2.0)
    np.testing.assert_allclose(curl_2d(-y, x, grid.spacings), 2.0)
