"""
Unit tests for mesh generation and element matrices.

Tests verify:
- Element/node counts sized to the smallest wavelength
- Node layout and element connectivity for linear and quadratic elements
- Nearest-node resolution of physical positions
- Exact Galerkin element coefficients
"""

import numpy as np
import pytest

from tube_fem.elements import element_matrices
from tube_fem.mesh import element_count, generate_mesh, nearest_nodes

# =============================================================================
# Mesh Generator
# =============================================================================


class TestGenerateMesh:
    """Tests for generate_mesh."""

    def test_counts_linear(self, linear_mesh):
        """ceil(6 * 1 / 0.34) = 18 elements, 19 nodes."""
        assert linear_mesh.n_elements == 18
        assert linear_mesh.n_nodes == 19
        assert linear_mesh.h == pytest.approx(1.0 / 18)

    def test_counts_quadratic(self, quadratic_mesh):
        """Quadratic elements add one midpoint node per element."""
        assert quadratic_mesh.n_elements == 18
        assert quadratic_mesh.n_nodes == 37
        assert quadratic_mesh.nodes_per_element == 3

    def test_resolves_smallest_wavelength(self):
        """At least Ne_per_lamda_min elements per smallest wavelength."""
        for L, lamda_min, per in [(1.0, 0.34, 6), (2.5, 0.17, 6), (0.7, 0.06, 10)]:
            mesh = generate_mesh(L, lamda_min, shape_type=1, Ne_per_lamda_min=per)
            assert mesh.n_elements * lamda_min / L >= per
            assert (mesh.n_elements - 1) * lamda_min / L < per

    def test_element_count_formula(self):
        assert element_count(1.0, 0.34, 6) == 18
        assert element_count(1.0, 0.5, 6) == 12

    def test_node_coordinates(self, quadratic_mesh):
        """Nodes run from 0 to L at spacing h / shape_type."""
        x = quadratic_mesh.x
        assert x[0] == 0.0
        assert x[-1] == 1.0
        assert np.all(np.diff(x) > 0)
        np.testing.assert_allclose(np.diff(x), quadratic_mesh.h / 2)

    def test_connectivity_partition(self, quadratic_mesh, linear_mesh):
        """Elements cover all nodes and share only their end nodes."""
        for mesh in (quadratic_mesh, linear_mesh):
            el = mesh.elements
            assert el.shape == (mesh.n_elements, mesh.shape_type + 1)
            np.testing.assert_array_equal(np.unique(el), np.arange(mesh.n_nodes))
            np.testing.assert_array_equal(el[:-1, -1], el[1:, 0])
            np.testing.assert_array_equal(np.diff(el, axis=1), 1)

    def test_quadratic_midpoint(self, quadratic_mesh):
        x = quadratic_mesh.x
        el = quadratic_mesh.elements
        np.testing.assert_allclose(x[el[:, 1]], 0.5 * (x[el[:, 0]] + x[el[:, 2]]))

    def test_invalid_parameters(self):
        """Configuration errors are rejected."""
        with pytest.raises(ValueError, match="length"):
            generate_mesh(0.0, 0.34)
        with pytest.raises(ValueError, match="lamda_min"):
            generate_mesh(1.0, -1.0)
        with pytest.raises(ValueError, match="shape_type"):
            generate_mesh(1.0, 0.34, shape_type=3)
        with pytest.raises(ValueError, match="Ne_per_lamda_min"):
            generate_mesh(1.0, 0.34, Ne_per_lamda_min=0)


class TestNearestNodes:
    """Tests for nearest_nodes."""

    def test_end_points(self, quadratic_mesh):
        nodes = nearest_nodes(quadratic_mesh.x, [0.0, 1.0])
        np.testing.assert_array_equal(nodes, [0, quadratic_mesh.n_nodes - 1])

    def test_off_grid_position(self):
        """Positions between nodes resolve by minimum distance."""
        mesh = generate_mesh(1.0, 3.0, shape_type=1)  # nodes at 0, 0.5, 1
        np.testing.assert_array_equal(mesh.x, [0.0, 0.5, 1.0])
        assert nearest_nodes(mesh.x, 0.3)[0] == 1
        assert nearest_nodes(mesh.x, 0.2)[0] == 0
        assert nearest_nodes(mesh.x, 0.9)[0] == 2

    def test_tie_takes_lower_index(self):
        mesh = generate_mesh(1.0, 3.0, shape_type=1)
        assert nearest_nodes(mesh.x, 0.25)[0] == 0

    def test_scalar_input(self, linear_mesh):
        nodes = nearest_nodes(linear_mesh.x, 0.5)
        assert nodes.shape == (1,)


# =============================================================================
# Element Matrix Library
# =============================================================================


class TestElementMatrices:
    """Tests for element_matrices."""

    def test_linear_coefficients(self):
        h, c0 = 0.1, 340.0
        Ke, Me = element_matrices(1, h, c0)
        np.testing.assert_allclose(Ke, np.array([[1, -1], [-1, 1]]) / h)
        np.testing.assert_allclose(Me, np.array([[2, 1], [1, 2]]) * h / 6 / c0**2)

    def test_quadratic_coefficients(self):
        h, c0 = 0.1, 340.0
        Ke, Me = element_matrices(2, h, c0)
        np.testing.assert_allclose(Ke, np.array([[7, -8, 1], [-8, 16, -8], [1, -8, 7]]) / (3 * h))
        np.testing.assert_allclose(Me, np.array([[4, 2, -1], [2, 16, 2], [-1, 2, 4]]) * h / 30 / c0**2)

    @pytest.mark.parametrize("shape_type", [1, 2])
    def test_galerkin_properties(self, shape_type):
        """K annihilates constants; M integrates 1 to h / c0^2; both symmetric."""
        h, c0 = 0.05, 340.0
        Ke, Me = element_matrices(shape_type, h, c0)
        np.testing.assert_allclose(Ke.sum(axis=1), 0.0, atol=1e-12)
        assert Me.sum() == pytest.approx(h / c0**2)
        np.testing.assert_array_equal(Ke, Ke.T)
        np.testing.assert_array_equal(Me, Me.T)

    def test_unsupported_order(self):
        with pytest.raises(ValueError, match="shape_type"):
            element_matrices(3, 0.1, 340.0)
