import logging
from typing import NamedTuple

import numpy as np

logger = logging.getLogger("jaxabl")


class CoarseSearchResult(NamedTuple):
    """Owning block and subdomain of every node and
    the tolerance at which the last node was found."""
    block_id: np.ndarray
    subdomain_id: np.ndarray
    tolerance: float
    no_expansions: int


def coarse_search(
        nodes: np.ndarray,
        bounding_boxes: np.ndarray,
        search_tolerance: float,
        search_expansion_factor: float,
        max_search_expansions: int,
        ) -> CoarseSearchResult:
    """Assigns every node to the first (block, subdomain)
    pair whose bounding box, enlarged by the search tolerance,
    contains the node. Nodes without a donor are searched
    again with the tolerance multiplied by the expansion
    factor, at most max_search_expansions times.

    :param nodes: Node coordinates of shape (N,3)
    :type nodes: np.ndarray
    :param bounding_boxes: Bounding boxes of shape (B,P,3,2)
    :type bounding_boxes: np.ndarray
    :param search_tolerance: Initial absolute tolerance
    :type search_tolerance: float
    :param search_expansion_factor: Factor applied to the tolerance per retry
    :type search_expansion_factor: float
    :param max_search_expansions: Maximum number of retries
    :type max_search_expansions: int
    :raises RuntimeError: If a node has no donor after all retries
    :return: Owner of every node
    :rtype: CoarseSearchResult
    """
    no_blocks, no_subdomains = bounding_boxes.shape[:2]
    boxes = bounding_boxes.reshape(-1, 3, 2)
    owner = np.full(nodes.shape[0], -1, dtype=int)

    tolerance = search_tolerance
    no_expansions = 0
    while True:
        unresolved = np.flatnonzero(owner < 0)
        points = nodes[unresolved]
        lower = boxes[None,:,:,0] - tolerance
        upper = boxes[None,:,:,1] + tolerance
        is_inside = np.all(
            (points[:,None,:] >= lower) & (points[:,None,:] <= upper), axis=-1)
        is_found = np.any(is_inside, axis=-1)
        owner[unresolved[is_found]] = np.argmax(is_inside[is_found], axis=-1)

        if np.all(owner >= 0) or no_expansions == max_search_expansions:
            break
        tolerance *= search_expansion_factor
        no_expansions += 1

    if no_expansions > 0:
        logger.debug(
            f"Coarse search required {no_expansions:d} expansions, "
            f"final tolerance {tolerance:.4e}.")

    no_unresolved = int(np.sum(owner < 0))
    if no_unresolved > 0:
        first_node = nodes[np.argmax(owner < 0)]
        error_string = (
            f"Field transfer failed: {no_unresolved:d} node(s) have no donor "
            f"after {max_search_expansions:d} search expansions "
            f"(final tolerance {tolerance:.4e}), first node at {first_node}.")
        raise RuntimeError(error_string)

    block_id, subdomain_id = np.divmod(owner, no_subdomains)
    return CoarseSearchResult(block_id, subdomain_id, tolerance, no_expansions)
