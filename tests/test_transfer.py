import jax.numpy as jnp
import numpy as np
import pytest

from jaxabl.data_types.case_setup import TransferSetup
from jaxabl.domain.mesh_database import MeshDatabase
from jaxabl.input.read_domain import read_domain_setup
from jaxabl.math.interpolation.linear import locate_donor_cells
from jaxabl.transfer.field_transfer import FieldTransferEngine
from jaxabl.transfer.search import coarse_search

from conftest import DOMAIN_SETUP, cell_centers

BOXES = np.array([[
    [[0.0, 40.0], [0.0, 80.0], [0.0, 100.0]],
    [[40.0, 80.0], [0.0, 80.0], [0.0, 100.0]],
]])


def linear_field(x, y, z):
    return 1.0 + 0.1 * x - 0.2 * y + 0.3 * z

def make_mesh(split_factors, coordinates):
    domain_setup = dict(DOMAIN_SETUP, split_factors=list(split_factors))
    mesh_database = MeshDatabase.from_domain_setup(read_domain_setup(domain_setup))
    mesh_database.register_field("fluid", "phi", 1)
    mesh_database.register_field("fluid", "velocity", 3)
    mesh_database.declare_part("mast", coordinates=coordinates)
    mesh_database.commit()

    X, Y, Z = cell_centers()
    mesh_database.set_field("fluid", "phi", linear_field(X, Y, Z))
    mesh_database.set_field("fluid", "velocity", np.stack([X, Y, Z]))
    return mesh_database

def make_engine(mesh_database, search_method="BISECTION", max_search_expansions=5):
    transfer_setup = TransferSetup(search_method, 1e-4, 1.5, max_search_expansions)
    return FieldTransferEngine(mesh_database, ["fluid"], transfer_setup)


def test_coarse_search_ownership():
    nodes = np.array([[10.0, 5.0, 5.0], [40.0, 5.0, 5.0], [60.0, 5.0, 5.0]])
    result = coarse_search(nodes, BOXES, 1e-4, 1.5, 5)
    np.testing.assert_array_equal(result.block_id, [0, 0, 0])
    # node on the shared face belongs to the first subdomain
    np.testing.assert_array_equal(result.subdomain_id, [0, 0, 1])
    assert result.no_expansions == 0

def test_coarse_search_first_block_wins():
    boxes = np.concatenate([BOXES, BOXES], axis=0)
    nodes = np.array([[60.0, 5.0, 5.0]])
    result = coarse_search(nodes, boxes, 1e-4, 1.5, 5)
    assert result.block_id[0] == 0
    assert result.subdomain_id[0] == 1

def test_coarse_search_expansion():
    nodes = np.array([[80.005, 5.0, 5.0]])
    result = coarse_search(nodes, BOXES, 1e-4, 10.0, 5)
    assert result.no_expansions == 2
    assert result.subdomain_id[0] == 1
    assert result.tolerance == pytest.approx(1e-2)

def test_coarse_search_failure():
    nodes = np.array([[10.0, 5.0, 5.0], [80.005, 5.0, 5.0]])
    with pytest.raises(RuntimeError, match="no donor"):
        coarse_search(nodes, BOXES, 1e-4, 10.0, 1)

def test_donor_cell_methods_agree():
    rng = np.random.default_rng(1)
    positions = jnp.asarray(rng.uniform([0.0, 0.0, 0.0], [80.0, 80.0, 100.0], size=(200, 3)))
    faces = [jnp.linspace(0.0, 80.0, 9), jnp.linspace(0.0, 80.0, 9), jnp.linspace(0.0, 100.0, 11)]
    centers = [0.5 * (f[1:] + f[:-1]) for f in faces]
    bisection = locate_donor_cells(positions, faces, centers, "BISECTION")
    nearest = locate_donor_cells(positions, faces, centers, "NEAREST_CELL")
    np.testing.assert_array_equal(bisection, nearest)
    np.testing.assert_array_equal(bisection[:,0], np.floor(positions[:,0] / 10.0).astype(int))

@pytest.mark.parametrize("split_factors", [(1, 1, 1), (2, 2, 1), (4, 2, 1)])
@pytest.mark.parametrize("search_method", ["BISECTION", "NEAREST_CELL"])
def test_linear_field_is_exact(split_factors, search_method):
    rng = np.random.default_rng(2)
    nodes = rng.uniform([5.0, 5.0, 5.0], [75.0, 75.0, 95.0], size=(100, 3))
    # nodes between the cell centers adjacent to a subdomain seam
    seam_nodes = np.array([[38.0, 41.0, 50.0], [42.0, 39.0, 12.0], [40.0, 40.0, 5.0]])
    nodes = np.concatenate([nodes, seam_nodes])

    mesh_database = make_mesh(split_factors, nodes)
    engine = make_engine(mesh_database, search_method)
    plane_buffers = engine.transfer(mesh_database.get_part("mast"), {"phi": 1, "velocity": 3})

    no_subdomains = int(np.prod(split_factors))
    assert plane_buffers.values.shape == (no_subdomains, nodes.shape[0], 4)
    assert plane_buffers.weights.shape == (no_subdomains, nodes.shape[0])

    # every node is owned by exactly one subdomain
    np.testing.assert_array_equal(np.sum(plane_buffers.weights, axis=0), 1.0)
    assert set(np.unique(plane_buffers.weights)) <= {0.0, 1.0}

    values = np.sum(plane_buffers.values, axis=0)
    np.testing.assert_allclose(values[:,0], linear_field(*nodes.T), rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(values[:,1:], nodes, rtol=1e-12, atol=1e-12)

    part = mesh_database.get_part("mast")
    assert set(part.field_buffers) == {"phi", "velocity"}
    np.testing.assert_array_equal(part.field_buffers["velocity"].values, plane_buffers.values[...,1:])

def test_nearest_value_beyond_outermost_cell_centers():
    nodes = np.array([[78.0, 25.0, 50.0], [80.0, 25.0, 50.0], [2.0, 25.0, 99.0]])
    mesh_database = make_mesh((2, 2, 1), nodes)
    engine = make_engine(mesh_database)
    plane_buffers = engine.transfer(mesh_database.get_part("mast"), {"phi": 1})
    values = np.sum(plane_buffers.values, axis=0)[:,0]
    np.testing.assert_allclose(values[0], linear_field(75.0, 25.0, 50.0), rtol=1e-12)
    np.testing.assert_allclose(values[1], linear_field(75.0, 25.0, 50.0), rtol=1e-12)
    np.testing.assert_allclose(values[2], linear_field(5.0, 25.0, 95.0), rtol=1e-12)

def test_transfer_failure():
    nodes = np.array([[10.0, 10.0, 10.0], [10.0, 10.0, 150.0]])
    mesh_database = make_mesh((2, 2, 1), nodes)
    engine = make_engine(mesh_database, max_search_expansions=3)
    with pytest.raises(RuntimeError):
        engine.transfer(mesh_database.get_part("mast"), {"phi": 1})
