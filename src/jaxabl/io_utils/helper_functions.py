from typing import List

import numpy as np

from jaxabl.data_types.statistics import ABLStatisticsInformation


def prepare_abl_statistics_for_logging(
        abl_statistics: ABLStatisticsInformation,
        ) -> List[str]:
    """Summary lines of the current ABL statistics,
    one line per velocity height followed by one line
    per temperature height."""

    velocity_mean = np.asarray(abl_statistics.velocity.mean)
    variances = np.asarray(abl_statistics.velocity.variances)
    temperature_mean = np.asarray(abl_statistics.temperature.mean)

    log_list = [
        "ABL STATISTICS",
        f"STEP                       = {abl_statistics.simulation_step:d}",
        f"FRICTION VELOCITY          = {abl_statistics.friction_velocity:4.4e}",
        f"{'HEIGHT':>10} {'U':>11} {'V':>11} {'W':>11} {'TKE':>11}",
    ]
    for i, height in enumerate(abl_statistics.heights):
        u, v, w = velocity_mean[i]
        tke = 0.5 * np.sum(variances[i, :3])
        log_list.append(f"{height:10.3f} {u:11.4e} {v:11.4e} {w:11.4e} {tke:11.4e}")

    log_list.append(f"{'HEIGHT':>10} {'T':>11}")
    for i, height in enumerate(abl_statistics.temperature_heights):
        log_list.append(f"{height:10.3f} {temperature_mean[i]:11.4e}")

    return log_list
