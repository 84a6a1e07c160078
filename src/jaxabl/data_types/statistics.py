from typing import Dict, NamedTuple, Tuple

import jax

Array = jax.Array

# ORDER OF THE PLANAR VARIANCE VECTOR, CONSUMERS AND OUTPUT FILES DEPEND ON IT
# <u'u'>, <v'v'>, <w'w'>, <u'v'>, <u'w'>, <v'w'>, <w'w'w'>, <T'T'>, <w'T'>
VARIANCE_KEYS = (
    "u_u", "v_v", "w_w",
    "u_v", "u_w", "v_w",
    "w_w_w", "T_T", "w_T"
)

# ORDER OF THE SYMMETRIC SUB-FILTER STRESS TENSOR
SFS_STRESS_KEYS = ("xx", "xy", "xz", "yy", "yz", "zz")


class PlaneAverages(NamedTuple):
    """Result of a planar reduction. means has
    shape (components,), covariances maps product keys,
    e.g., "u_w" or "w_w_w", to scalars."""
    total_weight: float
    means: Array
    covariances: Dict[str, Array]


class VelocityStatistics(NamedTuple):
    mean: Array                 # (num_heights, 3)
    sfs_stress_mean: Array      # (num_heights, 6)
    variances: Array            # (num_heights, 9)


class TemperatureStatistics(NamedTuple):
    mean: Array                 # (num_temperature_heights,)


class ABLStatisticsInformation(NamedTuple):
    heights: Tuple[float, ...]
    temperature_heights: Tuple[float, ...]
    velocity: VelocityStatistics
    temperature: TemperatureStatistics
    friction_velocity: float
    simulation_step: int = -1
    physical_simulation_time: float = 0.0
