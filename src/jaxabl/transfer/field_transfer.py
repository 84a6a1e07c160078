from functools import partial
from typing import Dict, List

import jax
import jax.numpy as jnp
import numpy as np

from jaxabl.data_types.buffers import PlaneFieldBuffers
from jaxabl.data_types.case_setup.abl_statistics import TransferSetup
from jaxabl.domain.mesh_database import MeshDatabase, Part
from jaxabl.math.interpolation.linear import locate_donor_cells, trilinear_interpolation
from jaxabl.parallel.helper_functions import partition_map
from jaxabl.transfer.search import CoarseSearchResult, coarse_search

Array = jax.Array


class FieldTransferEngine:
    """Transfers fields from the source volume blocks
    onto the nodes of a plane part. Every node is owned
    by exactly one subdomain, which interpolates the
    field values with its local buffer including halos.
    The result per plane is a buffer of shape
    (no_subdomains, N, C) and an ownership weight of
    shape (no_subdomains, N).
    """

    def __init__(
            self,
            mesh_database: MeshDatabase,
            from_target_part: List[str],
            transfer_setup: TransferSetup,
            is_parallel: bool = False,
            ) -> None:

        self.mesh_database = mesh_database
        self.blocks = mesh_database.get_blocks(from_target_part)
        self.transfer_setup = transfer_setup
        self.no_subdomains = mesh_database.no_subdomains

        self.bounding_boxes = np.stack([
            block.get_subdomain_bounding_boxes() for block in self.blocks], axis=0)

        self.interpolate_subdomain = partition_map(
            partial(_interpolate_subdomain, method=transfer_setup.search_method),
            self.no_subdomains, is_parallel)

    def search(self, part: Part) -> CoarseSearchResult:
        transfer_setup = self.transfer_setup
        return coarse_search(
            part.coordinates, self.bounding_boxes,
            transfer_setup.search_tolerance,
            transfer_setup.search_expansion_factor,
            transfer_setup.max_search_expansions)

    def transfer(
            self,
            part: Part,
            field_components: Dict[str, int],
            ) -> PlaneFieldBuffers:
        """Transfers the given fields onto the nodes
        of the part. Values are concatenated along the
        last axis in the order of field_components.
        The transferred buffers are also attached to
        the part.

        :param part: Target part with node coordinates
        :type part: Part
        :param field_components: Field names and number of components
        :type field_components: Dict[str, int]
        :raises RuntimeError: If a node has no donor
        :return: Transferred values and ownership weights
        :rtype: PlaneFieldBuffers
        """
        search_result = self.search(part)

        nodes = jnp.asarray(part.coordinates)
        nodes = jnp.broadcast_to(nodes, (self.no_subdomains,) + nodes.shape)
        subdomain_range = np.arange(self.no_subdomains)[:,None]

        values = 0.0
        weights = 0.0
        for block_id, block in enumerate(self.blocks):
            field_buffer = jnp.concatenate([
                block.get_local_field(field_name)
                for field_name in field_components], axis=1)
            values_block = self.interpolate_subdomain(
                nodes, field_buffer,
                block.local_cell_faces, block.local_cell_centers_with_halos)
            mask = (search_result.block_id[None,:] == block_id) \
                & (search_result.subdomain_id[None,:] == subdomain_range)
            mask = jnp.asarray(mask)
            values += jnp.where(mask[...,None], values_block, 0.0)
            weights += mask.astype(values_block.dtype)

        plane_buffers = PlaneFieldBuffers(values, weights)
        self._attach_to_part(part, field_components, plane_buffers)
        return plane_buffers

    def _attach_to_part(
            self,
            part: Part,
            field_components: Dict[str, int],
            plane_buffers: PlaneFieldBuffers
            ) -> None:
        start = 0
        for field_name, components in field_components.items():
            part.field_buffers[field_name] = PlaneFieldBuffers(
                plane_buffers.values[...,start:start+components],
                plane_buffers.weights)
            start += components


def _interpolate_subdomain(
        nodes: Array,
        field_buffer: Array,
        cell_faces: List[Array],
        cell_centers: List[Array],
        method: str
        ) -> Array:
    nh = (cell_centers[0].shape[0] - cell_faces[0].shape[0] + 1) // 2
    cell_centers_no_halos = [xi[nh:-nh] for xi in cell_centers]
    donor_cell_id = locate_donor_cells(
        nodes, cell_faces, cell_centers_no_halos, method)
    return trilinear_interpolation(
        nodes, donor_cell_id, field_buffer, cell_centers, nh)
