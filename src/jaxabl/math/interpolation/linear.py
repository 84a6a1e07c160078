from typing import Tuple

import jax
import jax.numpy as jnp

from jaxabl.config import precision

Array = jax.Array


def locate_donor_cells(
        interpolation_position: Array,
        cell_faces: Tuple[Array],
        cell_centers: Tuple[Array],
        method: str = "BISECTION",
        ) -> Array:
    """Locates the donor cell of every interpolation
    position inside a subdomain. BISECTION performs
    a binary search on the cell faces, NEAREST_CELL
    scans all cell centers for the nearest one.
    Positions outside the subdomain are assigned to
    the outermost cell.

    :param interpolation_position: Positions of shape (N,3)
    :type interpolation_position: Array
    :param cell_faces: Cell faces per axis, each of shape (nxi+1,)
    :type cell_faces: Tuple[Array]
    :param cell_centers: Cell centers per axis without halos, each of shape (nxi,)
    :type cell_centers: Tuple[Array]
    :param method: BISECTION or NEAREST_CELL, defaults to "BISECTION"
    :type method: str, optional
    :return: Donor cell indices of shape (N,3)
    :rtype: Array
    """
    donor_cell_id = []
    for axis_index in range(3):
        position_xi = interpolation_position[:,axis_index]
        nxi = cell_centers[axis_index].shape[0]
        if method == "BISECTION":
            cell_id_xi = jnp.searchsorted(cell_faces[axis_index], position_xi, side="right") - 1
        elif method == "NEAREST_CELL":
            distance = jnp.abs(cell_centers[axis_index][:,None] - position_xi[None,:])
            cell_id_xi = jnp.argmin(distance, axis=0)
        else:
            raise NotImplementedError
        donor_cell_id.append(jnp.clip(cell_id_xi, 0, nxi - 1))
    return jnp.stack(donor_cell_id, axis=-1)

def trilinear_interpolation(
        interpolation_position: Array,
        donor_cell_id: Array,
        field_buffer: Array,
        cell_centers: Tuple[Array],
        nh: int = 1
        ) -> Array:
    """Interpolates a field buffer at scattered
    interpolation positions. The field buffer must have
    the shape (C,Nx+2*Nh,Ny+2*Nh,Nz+2*Nh) and the
    cell centers must include the halo cells.
    Between the outermost cell center and the halo cell
    center the weights are limited to [0,1], i.e.,
    positions beyond the stencil take the nearest value.

    :param interpolation_position: Positions of shape (N,3)
    :type interpolation_position: Array
    :param donor_cell_id: Donor cells of shape (N,3) without halo offset
    :type donor_cell_id: Array
    :param field_buffer: Field buffer including halos
    :type field_buffer: Array
    :param cell_centers: Cell centers per axis including halos
    :type cell_centers: Tuple[Array]
    :return: Interpolated values of shape (N,C)
    :rtype: Array
    """

    eps = precision.get_interpolation_eps()

    # LEFT CELL OF THE STENCIL, RIGHT CELL IS LEFT + 1
    cell_id_minus = []
    weights_plus = []
    for i in range(3):
        cell_centers_xi = cell_centers[i]
        position_xi = interpolation_position[:,i]
        donor_xi = donor_cell_id[:,i] + nh
        donor_center_xi = cell_centers_xi[donor_xi]
        cell_id_minus_xi = jnp.where(position_xi < donor_center_xi, donor_xi - 1, donor_xi)
        x_minus = cell_centers_xi[cell_id_minus_xi]
        x_plus = cell_centers_xi[cell_id_minus_xi + 1]
        weights_plus_xi = (position_xi - x_minus) / (x_plus - x_minus + eps)
        weights_plus_xi = jnp.clip(weights_plus_xi, 0.0, 1.0)
        cell_id_minus.append(cell_id_minus_xi)
        weights_plus.append(weights_plus_xi)

    interpolated_values = 0.0
    for position in ("LLL", "RLL", "LRL", "RRL",
                     "LLR", "RLR", "LRR", "RRR"):
        weights = 1.0
        indices = []
        for i, side in enumerate(position):
            if side == "L":
                weights = weights * (1.0 - weights_plus[i])
                indices.append(cell_id_minus[i])
            else:
                weights = weights * weights_plus[i]
                indices.append(cell_id_minus[i] + 1)
        values = field_buffer[:,indices[0],indices[1],indices[2]]
        interpolated_values += jnp.transpose(values) * weights[:,None]

    return interpolated_values

def linear_interpolation_profile(
        query_height: Array,
        heights: Array,
        values: Array
        ) -> Array:
    """Linear interpolation of a vertical profile.
    Heights must be sorted in ascending order, values
    have shape (H,...). Queries outside the profile
    are clamped to the outermost values. At the
    given heights the stored values are returned
    exactly.

    :param query_height: Scalar or array of heights
    :type query_height: Array
    :param heights: Sorted heights of shape (H,)
    :type heights: Array
    :param values: Profile values of shape (H,...)
    :type values: Array
    :return: Interpolated values of shape query_height.shape + values.shape[1:]
    :rtype: Array
    """
    query_height = jnp.asarray(query_height, dtype=heights.dtype)
    no_heights = heights.shape[0]
    if no_heights == 1:
        return jnp.broadcast_to(values[0], query_height.shape + values.shape[1:])

    query_height = jnp.clip(query_height, heights[0], heights[-1])
    index = jnp.searchsorted(heights, query_height, side="right") - 1
    index = jnp.clip(index, 0, no_heights - 2)
    height_minus = heights[index]
    height_plus = heights[index + 1]
    weight = (query_height - height_minus) / (height_plus - height_minus)
    weight = weight.reshape(weight.shape + (1,) * (values.ndim - 1))

    values_minus = values[index]
    values_plus = values[index + 1]
    interpolated_values = jnp.where(
        weight >= 1.0, values_plus,
        (1.0 - weight) * values_minus + weight * values_plus)
    return interpolated_values
