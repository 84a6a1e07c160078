import jax.numpy as jnp
import numpy as np
import pytest

from jaxabl.domain.helper_functions import (
    get_subdomain_ids, reassemble_buffer, split_buffer_with_halos,
    split_cell_centers_xi)
from jaxabl.domain.mesh_database import MeshDatabase
from jaxabl.input.read_domain import read_domain_setup

from conftest import DOMAIN_SETUP


def test_subdomain_ids():
    np.testing.assert_array_equal(
        get_subdomain_ids((2, 2, 1)),
        [[0, 0, 0], [0, 1, 0], [1, 0, 0], [1, 1, 0]])

def test_split_buffer_with_halos():
    buffer = jnp.arange(8 * 8 * 10, dtype=float).reshape(1, 8, 8, 10)
    split = split_buffer_with_halos(buffer, (2, 2, 1))
    assert split.shape == (4, 1, 6, 6, 12)

    # interior of subdomain (1, 0, 0)
    np.testing.assert_array_equal(split[2,:,1:5,1:5,1:11], buffer[:,4:8,0:4,:])
    # halo towards the neighbor (0, 0, 0)
    np.testing.assert_array_equal(split[2,:,0,1:5,1:11], buffer[:,3,0:4,:])
    # halo towards the neighbor (1, 1, 0)
    np.testing.assert_array_equal(split[2,:,1:5,5,1:11], buffer[:,4:8,4,:])
    # domain boundary halos repeat the outermost values
    np.testing.assert_array_equal(split[2,:,5,1:5,1:11], buffer[:,7,0:4,:])
    np.testing.assert_array_equal(split[2,:,1:5,0,1:11], buffer[:,4:8,0,:])
    np.testing.assert_array_equal(split[2,:,1:5,1:5,0], buffer[:,4:8,0:4,0])

    np.testing.assert_array_equal(reassemble_buffer(split, (2, 2, 1)), buffer)

def test_split_cell_centers():
    cell_centers = np.linspace(5.0, 75.0, 8)
    split = split_cell_centers_xi(cell_centers, (2, 2, 1), axis=0)
    assert split.shape == (4, 6)
    np.testing.assert_allclose(split[0], [-5.0, 5.0, 15.0, 25.0, 35.0, 45.0])
    np.testing.assert_allclose(split[2], [35.0, 45.0, 55.0, 65.0, 75.0, 85.0])

    cell_centers_z = np.linspace(5.0, 95.0, 10)
    split = split_cell_centers_xi(cell_centers_z, (2, 2, 1), axis=2)
    assert split.shape == (4, 12)
    np.testing.assert_allclose(split[3], np.linspace(-5.0, 105.0, 12))

def test_mesh_database():
    mesh_database = MeshDatabase.from_domain_setup(read_domain_setup(DOMAIN_SETUP))
    assert mesh_database.no_subdomains == 4

    block = mesh_database.get_block("fluid")
    boxes = block.get_subdomain_bounding_boxes()
    np.testing.assert_allclose(boxes[2], [[40.0, 80.0], [0.0, 40.0], [0.0, 100.0]])

    mesh_database.register_field("fluid", "velocity", 3)
    mesh_database.register_field("plane", "velocity", 3)
    mesh_database.register_field("missing", "velocity", 3)
    mesh_database.declare_part("plane", is_auxiliary=True)
    mesh_database.declare_part("mast", coordinates=[[1.0, 2.0, 3.0]])
    with pytest.raises(AssertionError):
        mesh_database.register_field("fluid", "velocity", 1)
    with pytest.raises(AssertionError):
        mesh_database.set_field("fluid", "velocity", jnp.ones((3, 8, 8, 10)))

    mesh_database.commit()
    assert mesh_database.is_committed
    assert mesh_database.get_part("plane").fields == {"velocity": 3}
    assert mesh_database.get_part("mast").number_of_nodes == 1
    assert mesh_database.get_auxiliary_parts() == frozenset({"plane"})
    np.testing.assert_array_equal(block.get_field("velocity"), jnp.zeros((3, 8, 8, 10)))

    velocity = jnp.ones((3, 8, 8, 10))
    mesh_database.set_field("fluid", "velocity", velocity)
    np.testing.assert_array_equal(block.get_field("velocity"), velocity)
    assert block.get_local_field("velocity").shape == (4, 3, 6, 6, 12)

    with pytest.raises(AssertionError):
        mesh_database.set_field("fluid", "temperature", jnp.ones((8, 8, 10)))
    with pytest.raises(AssertionError):
        mesh_database.set_field("fluid", "velocity", jnp.ones((3, 8, 8, 9)))
    with pytest.raises(AssertionError):
        mesh_database.declare_part("late")
    with pytest.raises(AssertionError):
        mesh_database.get_part("missing")

def test_z_decomposition_not_supported():
    with pytest.raises(AssertionError):
        MeshDatabase((1, 1, 2))
