from typing import Dict, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from jaxabl.data_types.case_setup.domain import BlockSetup
from jaxabl.domain.helper_functions import (
    get_subdomain_ids, reassemble_buffer, split_buffer_with_halos,
    split_cell_centers_xi, split_cell_faces_xi)
from jaxabl.domain.mesh_creation.homogeneous import homogeneous

Array = jax.Array


class VolumeBlock:
    """Structured Cartesian volume block decomposed
    into equally sized subdomains. Every subdomain
    represents one compute process. Field buffers
    are stored split per subdomain including
    nh halo cells on each side.
    """

    def __init__(
            self,
            block_setup: BlockSetup,
            split_factors: Tuple[int, int, int],
            nh: int = 1
            ) -> None:

        self.name = block_setup.name
        self.split_factors = tuple(split_factors)
        self.nh = nh
        self.no_subdomains = int(np.prod(self.split_factors))
        self.subdomain_ids = get_subdomain_ids(self.split_factors)

        axes_setup = (block_setup.x, block_setup.y, block_setup.z)
        self.number_of_cells = tuple(axis.cells for axis in axes_setup)
        self.domain_size = tuple(axis.range for axis in axes_setup)
        self.number_of_cells_local = tuple(
            nxi // split_xi for nxi, split_xi in zip(self.number_of_cells, self.split_factors))

        self.cell_centers = []
        self.cell_faces = []
        self.cell_sizes = []
        for axis_setup in axes_setup:
            cell_centers_xi, cell_faces_xi, cell_sizes_xi = homogeneous(
                axis_setup.cells, axis_setup.range)
            self.cell_centers.append(cell_centers_xi)
            self.cell_faces.append(cell_faces_xi)
            self.cell_sizes.append(cell_sizes_xi)

        self.local_cell_centers_with_halos = tuple(
            split_cell_centers_xi(self.cell_centers[i], self.split_factors, i, nh)
            for i in range(3))
        self.local_cell_faces = tuple(
            split_cell_faces_xi(self.cell_faces[i], self.split_factors, i)
            for i in range(3))

        self.fields: Dict[str, Array] = {}

    def get_subdomain_bounding_boxes(self) -> np.ndarray:
        """Bounding boxes of the subdomains given
        by their outermost cell faces.

        :return: Array of shape (no_subdomains, 3, 2)
        :rtype: np.ndarray
        """
        lower = np.stack([faces[:,0] for faces in self.local_cell_faces], axis=-1)
        upper = np.stack([faces[:,-1] for faces in self.local_cell_faces], axis=-1)
        return np.stack([lower, upper], axis=-1)

    def allocate_field(self, field_name: str, components: int) -> None:
        shape = (components,) + self.number_of_cells
        self.set_field(field_name, jnp.zeros(shape))

    def set_field(self, field_name: str, buffer: Array) -> None:
        """Sets a field from a global buffer of shape
        (components, Nx, Ny, Nz). The buffer is
        split into the subdomains.

        :param field_name: Name of the field
        :type field_name: str
        :param buffer: Global field buffer
        :type buffer: Array
        """
        buffer = jnp.asarray(buffer)
        if buffer.ndim == 3:
            buffer = buffer[jnp.newaxis]
        assert_string = (
            f"Field {field_name} on block {self.name} must have shape "
            f"(components, {', '.join(str(n) for n in self.number_of_cells)}), "
            f"but has shape {buffer.shape}.")
        assert buffer.shape[-3:] == self.number_of_cells, assert_string
        self.fields[field_name] = split_buffer_with_halos(
            buffer, self.split_factors, self.nh)

    def get_field(self, field_name: str) -> Array:
        """Reassembled global field buffer."""
        return reassemble_buffer(self.fields[field_name], self.split_factors, self.nh)

    def get_local_field(self, field_name: str) -> Array:
        """Split field buffer of shape
        (no_subdomains, components, nx+2*nh, ny+2*nh, nz+2*nh)."""
        return self.fields[field_name]
