from typing import Tuple

import numpy as np


def homogeneous(
        nxi: int,
        domain_range_xi: Tuple[float, float],
        ) -> Tuple[np.ndarray, np.ndarray, float]:
    """Creates a homogeneous mesh along one axis.

    :param nxi: Number of cells
    :type nxi: int
    :param domain_range_xi: Lower and upper bound of the axis
    :type domain_range_xi: Tuple[float, float]
    :return: Cell centers (nxi,), cell faces (nxi+1,) and cell size
    :rtype: Tuple[np.ndarray, np.ndarray, float]
    """
    cell_sizes_xi = (domain_range_xi[1] - domain_range_xi[0]) / nxi
    cell_centers_xi = np.linspace(domain_range_xi[0] + cell_sizes_xi/2, domain_range_xi[1] - cell_sizes_xi/2, nxi)
    cell_faces_xi = np.linspace(domain_range_xi[0], domain_range_xi[1], nxi+1)
    return cell_centers_xi, cell_faces_xi, cell_sizes_xi
