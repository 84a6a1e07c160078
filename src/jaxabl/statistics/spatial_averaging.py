from functools import partial
from typing import Callable, Dict, Tuple

import jax
import jax.numpy as jnp

from jaxabl.data_types.buffers import PlaneFieldBuffers
from jaxabl.data_types.statistics import PlaneAverages
from jaxabl.parallel.helper_functions import parallel_sum, partition_map

Array = jax.Array


class SpatialAveragingAlgorithm:
    """Computes weighted planar averages of transferred
    field values over all subdomains. Means and central
    moments are computed in two passes, every pass
    reduces the local partial sums with a collective
    sum over the subdomains.

    The most recent averages are kept per plane and
    can be read by the host simulation. The algorithm
    may be shared between the host and the ABL
    statistics, in that case only the owner finalizes it.
    """

    def __init__(self, is_parallel: bool = False) -> None:
        self.is_parallel = is_parallel
        self.plane_averages: Dict[str, PlaneAverages] = {}
        self.is_finalized = False
        self._reduction_functions: Dict[Tuple, Callable] = {}

    def compute_plane_averages(
            self,
            part_name: str,
            plane_buffers: PlaneFieldBuffers,
            product_indices: Dict[str, Tuple[int, ...]] = None,
            ) -> PlaneAverages:
        """Computes the weighted means of all components
        and the weighted mean products of the fluctuations
        specified by product_indices, e.g., {"u_w": (0, 2),
        "w_w_w": (2, 2, 2)}.

        :param part_name: Name of the plane
        :type part_name: str
        :param plane_buffers: Values (P,N,C) and weights (P,N)
        :type plane_buffers: PlaneFieldBuffers
        :param product_indices: Component indices per product, defaults to None
        :type product_indices: Dict[str, Tuple[int, ...]], optional
        :raises RuntimeError: If the total weight of the plane is zero
        :return: Planar averages
        :rtype: PlaneAverages
        """
        assert not self.is_finalized, "Spatial averaging algorithm is already finalized."

        product_indices = {} if product_indices is None else product_indices
        keys = tuple(product_indices.keys())
        indices = tuple(tuple(index) for index in product_indices.values())
        reduction_function = self._get_reduction_function(
            indices, plane_buffers.values.shape[0])

        total_weight, means, covariances = reduction_function(
            plane_buffers.values, plane_buffers.weights)
        total_weight = float(total_weight[0])
        if not total_weight > 0.0:
            error_string = (
                f"Spatial averaging failed: total weight on plane {part_name} "
                "is zero, no node was transferred.")
            raise RuntimeError(error_string)

        plane_averages = PlaneAverages(
            total_weight=total_weight,
            means=means[0],
            covariances={key: covariances[0,i] for i, key in enumerate(keys)})

        self.plane_averages[part_name] = plane_averages
        return plane_averages

    def _get_reduction_function(
            self,
            indices: Tuple[Tuple[int, ...], ...],
            no_subdomains: int
            ) -> Callable:
        key = (indices, no_subdomains)
        if key not in self._reduction_functions:
            self._reduction_functions[key] = partition_map(
                partial(compute_weighted_moments, product_indices=indices),
                no_subdomains, self.is_parallel)
        return self._reduction_functions[key]

    def get_plane_average(self, part_name: str) -> PlaneAverages:
        assert_string = f"No planar averages available for part {part_name}."
        assert part_name in self.plane_averages, assert_string
        return self.plane_averages[part_name]

    def finalize(self) -> None:
        self.plane_averages = {}
        self._reduction_functions = {}
        self.is_finalized = True


class SpatialAveragingReference:
    """Reference of the ABL statistics to a spatial
    averaging algorithm. Either the algorithm is owned,
    i.e., created and finalized by the ABL statistics,
    or it is shared with the host simulation."""

    def __init__(
            self,
            algorithm: SpatialAveragingAlgorithm,
            is_owned: bool
            ) -> None:
        self.algorithm = algorithm
        self.is_owned = is_owned

    def release(self) -> None:
        if self.is_owned:
            self.algorithm.finalize()


def compute_weighted_moments(
        values: Array,
        weights: Array,
        product_indices: Tuple[Tuple[int, ...], ...]
        ) -> Tuple[Array, Array, Array]:
    """Weighted means and mean products of fluctuations
    on a single subdomain. Must be called inside a mapped
    function, see partition_map.

    :param values: Node values of shape (N,C)
    :type values: Array
    :param weights: Node weights of shape (N,)
    :type weights: Array
    :return: Total weight, means (C,) and mean products (K,)
    :rtype: Tuple[Array, Array, Array]
    """
    total_weight = parallel_sum(weights)
    safe_total_weight = jnp.where(total_weight > 0.0, total_weight, 1.0)

    means = parallel_sum(weights[:,None] * values, axis=0) / safe_total_weight

    fluctuations = values - means
    if product_indices:
        products = jnp.stack([
            jnp.prod(fluctuations[:,list(index)], axis=-1)
            for index in product_indices], axis=-1)
    else:
        products = jnp.zeros(values.shape[:1] + (0,), dtype=values.dtype)
    covariances = parallel_sum(weights[:,None] * products, axis=0) / safe_total_weight

    return total_weight, means, covariances
