from typing import Dict, Sequence

import jax
import jax.numpy as jnp
import numpy as np

from jaxabl.math.interpolation.linear import linear_interpolation_profile
from jaxabl.statistics.abl_statistics_controller import ABLStatisticsController

Array = jax.Array


class ABLMeanProfileForcing:
    """Relaxes the planar mean velocity and temperature
    towards target profiles,
        S_u = (U_target(z) - <U>(z)) / tau,
        S_T = (T_target(z) - <T>(z)) / tau.
    Only the horizontal velocity components are forced.
    The planar means are read from the ABL statistics.
    """

    def __init__(
            self,
            abl_statistics: ABLStatisticsController,
            target_heights: Sequence[float],
            target_velocity: Sequence[Sequence[float]],
            target_temperature: Sequence[float] = None,
            relaxation_time: float = 1.0,
            ) -> None:

        assert_string = "Relaxation time of the ABL forcing must be > 0.0."
        assert relaxation_time > 0.0, assert_string

        sort_indices = np.argsort(target_heights)
        self.target_heights = jnp.asarray(np.array(target_heights, dtype=float)[sort_indices])

        target_velocity = np.array(target_velocity, dtype=float)
        assert_string = (
            "Target velocity of the ABL forcing must have shape "
            f"({len(target_heights):d}, 3), but has shape {target_velocity.shape}.")
        assert target_velocity.shape == (len(target_heights), 3), assert_string
        self.target_velocity = jnp.asarray(target_velocity[sort_indices])

        if target_temperature is not None:
            target_temperature = np.array(target_temperature, dtype=float)
            assert target_temperature.shape == (len(target_heights),)
            self.target_temperature = jnp.asarray(target_temperature[sort_indices])
        else:
            self.target_temperature = None

        self.abl_statistics = abl_statistics
        self.relaxation_time = relaxation_time
        self.velocity_mask = jnp.array([1.0, 1.0, 0.0])

    def compute_forcing(self, heights: Array) -> Dict[str, Array]:
        """Computes the source terms at the given heights,
        e.g., the cell centers in z direction.

        :param heights: Heights of shape (Nz,)
        :type heights: Array
        :return: Velocity source (Nz,3) and, if a target temperature
            is given, temperature source (Nz,)
        :rtype: Dict[str, Array]
        """
        heights = jnp.asarray(heights)
        forcing = {}

        velocity_target = linear_interpolation_profile(
            heights, self.target_heights, self.target_velocity)
        velocity_mean = self.abl_statistics.eval_vel_mean(heights)
        forcing["velocity"] = (velocity_target - velocity_mean) \
            * self.velocity_mask / self.relaxation_time

        if self.target_temperature is not None:
            temperature_target = linear_interpolation_profile(
                heights, self.target_heights, self.target_temperature)
            temperature_mean = self.abl_statistics.eval_temp_mean(heights)
            forcing["temperature"] = (temperature_target - temperature_mean) \
                / self.relaxation_time

        return forcing
