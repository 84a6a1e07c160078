"""
JAX-ABL

Planar statistics of the atmospheric boundary layer for
distributed flow simulations. Computes horizontally averaged
mean velocity, temperature, sub-filter stress and resolved
moments at user-specified heights and serves them through
a height-indexed query to source term code.

Examples
--------

The examples folder includes a synthetic ABL case.

For example in examples/abl_planes

    >>> python run_abl_planes.py

Available subpackages
---------------------
domain
    Mesh database, volume blocks and sampling planes
forcing
    Source terms which consume the planar statistics
io_utils
    Tools for logging and writing output
statistics
    Spatial averaging, friction velocity and ABL statistics
transfer
    Search and interpolation of fields onto sampling planes

"""

from jaxabl.realm import Realm
from jaxabl.statistics.abl_statistics_controller import ABLStatisticsController
from jaxabl.statistics.spatial_averaging import SpatialAveragingAlgorithm

__version__ = "0.1.0"
__author__ = "JAX-ABL developers"


__all__ = (
    "ABLStatisticsController",
    "Realm",
    "SpatialAveragingAlgorithm",
)
