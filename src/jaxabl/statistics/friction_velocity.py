from typing import Sequence, Tuple

import numpy as np

from jaxabl.data_types.case_setup.abl_statistics import FrictionVelocitySetup
from jaxabl.data_types.statistics import (
    SFS_STRESS_KEYS, VARIANCE_KEYS, PlaneAverages, VelocityStatistics)


class FrictionVelocityEstimator:
    """Derives the friction velocity either from the
    planar statistics at the lowest velocity height or
    from the wall parts of the mesh.

    STRESS: total shear stress, i.e., resolved covariance
    plus mean sub-filter stress,
        u_tau = ((<u'w'> + tau_xz)^2 + (<v'w'> + tau_yz)^2)^(1/4)
    LOG_LAW: logarithmic law of the wall for rough walls,
        u_tau = kappa |U_h| / ln(z / z0)
    WALL: node-weighted average of the wall friction
    velocity field over all wall parts.
    """

    def __init__(
            self,
            friction_velocity_setup: FrictionVelocitySetup,
            heights: Tuple[float, ...]
            ) -> None:
        self.method = friction_velocity_setup.method
        self.kappa = friction_velocity_setup.kappa
        self.roughness_height = friction_velocity_setup.roughness_height
        self.wall_parts = friction_velocity_setup.wall_parts
        self.index_lowest = int(np.argmin(heights))
        self.height_lowest = float(heights[self.index_lowest])

        self.index_uw = VARIANCE_KEYS.index("u_w")
        self.index_vw = VARIANCE_KEYS.index("v_w")
        self.index_xz = SFS_STRESS_KEYS.index("xz")
        self.index_yz = SFS_STRESS_KEYS.index("yz")

    @property
    def is_wall(self) -> bool:
        return self.method == "WALL"

    def compute_friction_velocity(
            self,
            velocity_statistics: VelocityStatistics,
            wall_averages: Sequence[PlaneAverages] = None
            ) -> float:
        """Computes the friction velocity.

        :param velocity_statistics: Statistics of the velocity planes
        :type velocity_statistics: VelocityStatistics
        :param wall_averages: Averages of the wall friction velocity
            on every wall part, required for method WALL, defaults to None
        :type wall_averages: Sequence[PlaneAverages], optional
        :return: Friction velocity
        :rtype: float
        """
        i = self.index_lowest
        if self.method == "STRESS":
            variances = velocity_statistics.variances[i]
            sfs_stress = velocity_statistics.sfs_stress_mean[i]
            tau_xz = variances[self.index_uw] + sfs_stress[self.index_xz]
            tau_yz = variances[self.index_vw] + sfs_stress[self.index_yz]
            friction_velocity = (tau_xz**2 + tau_yz**2)**0.25
        elif self.method == "LOG_LAW":
            velocity_mean = velocity_statistics.mean[i]
            velocity_horizontal = (velocity_mean[0]**2 + velocity_mean[1]**2)**0.5
            friction_velocity = self.kappa * velocity_horizontal \
                / np.log(self.height_lowest / self.roughness_height)
        elif self.method == "WALL":
            assert wall_averages is not None and len(wall_averages) == len(self.wall_parts), \
                f"Friction velocity method WALL requires the averages of the wall parts {self.wall_parts}."
            total_weight = sum(averages.total_weight for averages in wall_averages)
            friction_velocity = sum(
                averages.total_weight * float(averages.means[0])
                for averages in wall_averages) / total_weight
        else:
            raise NotImplementedError
        return float(friction_velocity)
