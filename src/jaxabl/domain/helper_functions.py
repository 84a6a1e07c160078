from typing import Tuple

import jax.numpy as jnp
from jax import Array
import numpy as np


def get_subdomain_ids(split_factors: Tuple[int, int, int]) -> np.ndarray:
    """Returns the (i, j, k) position of every
    subdomain. The subdomain index is the
    flattened row-major position.

    :param split_factors: Domain decomposition
    :type split_factors: Tuple[int, int, int]
    :return: Array of shape (no_subdomains, 3)
    :rtype: np.ndarray
    """
    ids = np.stack(np.meshgrid(
        *[np.arange(split_xi) for split_xi in split_factors],
        indexing="ij"), axis=-1)
    return ids.reshape(-1, 3)

def pad_cell_centers_xi(cell_centers_xi: np.ndarray, nh: int) -> np.ndarray:
    """Pads cell centers with nh halo cells on
    each side by linear extrapolation."""
    if cell_centers_xi.size > 1:
        dxi = cell_centers_xi[1] - cell_centers_xi[0]
        dxi_end = cell_centers_xi[-1] - cell_centers_xi[-2]
    else:
        dxi = dxi_end = 1.0
    left = cell_centers_xi[0] - dxi * np.arange(nh, 0, -1)
    right = cell_centers_xi[-1] + dxi_end * np.arange(1, nh+1)
    return np.concatenate([left, cell_centers_xi, right])

def split_cell_centers_xi(
        cell_centers_xi: np.ndarray,
        split_factors: Tuple[int, int, int],
        axis: int,
        nh: int = 1
        ) -> np.ndarray:
    """Splits the cell centers of one axis
    according to the domain decomposition.
    Every subdomain receives its cell centers
    including nh halo cells on each side.

    :param cell_centers_xi: Global cell centers (nxi,)
    :type cell_centers_xi: np.ndarray
    :param split_factors: Domain decomposition
    :type split_factors: Tuple[int, int, int]
    :param axis: Spatial axis
    :type axis: int
    :return: Array of shape (no_subdomains, nxi/split_xi + 2*nh)
    :rtype: np.ndarray
    """
    nxi_local = cell_centers_xi.size // split_factors[axis]
    padded = pad_cell_centers_xi(cell_centers_xi, nh)
    subdomain_ids = get_subdomain_ids(split_factors)
    cell_centers_xi = np.stack([
        padded[i*nxi_local:(i+1)*nxi_local + 2*nh]
        for i in subdomain_ids[:,axis]], axis=0)
    return cell_centers_xi

def split_cell_faces_xi(
        cell_faces_xi: np.ndarray,
        split_factors: Tuple[int, int, int],
        axis: int
        ) -> np.ndarray:
    """Splits the cell faces of one axis
    according to the domain decomposition.

    :return: Array of shape (no_subdomains, nxi/split_xi + 1)
    :rtype: np.ndarray
    """
    nxi_local = (cell_faces_xi.size - 1) // split_factors[axis]
    subdomain_ids = get_subdomain_ids(split_factors)
    cell_faces_xi = np.stack([
        cell_faces_xi[i*nxi_local:(i+1)*nxi_local + 1]
        for i in subdomain_ids[:,axis]], axis=0)
    return cell_faces_xi

def split_buffer_with_halos(
        buffer: Array,
        split_factors: Tuple[int, int, int],
        nh: int = 1
        ) -> Array:
    """Splits a buffer of shape (...,Nx,Ny,Nz)
    according to the domain decomposition specified by
    the split factors. Every subdomain receives nh halo
    cells on each side, filled with the neighboring
    subdomain values or, at the domain boundary, with
    the outermost values. The subdomain
    dimensions are flattened.

    :param buffer: Global buffer
    :type buffer: Array
    :param split_factors: Domain decomposition
    :type split_factors: Tuple[int, int, int]
    :param nh: Number of halo cells, defaults to 1
    :type nh: int, optional
    :return: Buffer of shape (no_subdomains,...,Nx/sx+2*nh,Ny/sy+2*nh,Nz/sz+2*nh)
    :rtype: Array
    """
    spatial_shape = buffer.shape[-3:]
    for i in range(3):
        assert_string = (
            f"Buffer shape {buffer.shape} is not divisible "
            f"by split factors {split_factors}.")
        assert spatial_shape[i] % split_factors[i] == 0, assert_string

    local_shape = [nxi // split_xi for nxi, split_xi in zip(spatial_shape, split_factors)]
    pad_width = [(0, 0)] * (buffer.ndim - 3) + [(nh, nh)] * 3
    padded = jnp.pad(buffer, pad_width, mode="edge")

    subdomain_buffers = []
    for ids in get_subdomain_ids(split_factors):
        s_ = (...,) + tuple(
            jnp.s_[ids[i]*local_shape[i]:(ids[i]+1)*local_shape[i] + 2*nh]
            for i in range(3))
        subdomain_buffers.append(padded[s_])
    return jnp.stack(subdomain_buffers, axis=0)

def reassemble_buffer(
        buffer: Array,
        split_factors: Tuple[int, int, int],
        nh: int = 1
        ) -> Array:
    """Reassembles a decomposed buffer of shape
    (Ni,...,Nx/sx+2*nh,Ny/sy+2*nh,Nz/sz+2*nh).
    Halo cells are removed.

    :return: Buffer of shape (...,Nx,Ny,Nz)
    :rtype: Array
    """
    buffer = buffer[..., nh:-nh, nh:-nh, nh:-nh]
    shape = buffer.shape
    buffer = buffer.reshape(tuple(split_factors) + shape[1:])
    buffer = jnp.concatenate(buffer, axis=-3)
    buffer = jnp.concatenate(buffer, axis=-2)
    buffer = jnp.concatenate(buffer, axis=-1)
    return buffer
