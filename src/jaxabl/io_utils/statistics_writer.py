import os
from typing import Dict, Tuple

import h5py
import numpy as np

from jaxabl.data_types.statistics import ABLStatisticsInformation

OUTPUT_FIELDS = ("Ux", "Uy", "Uz", "T", "sfs", "var")


class ABLStatisticsWriter:
    """Appends the planar ABL statistics to one file
    per output field. The file name is obtained
    from the output format, e.g., abl_stats_%s.dat
    yields abl_stats_Ux.dat. A .h5 suffix selects
    HDF5 output, every other suffix plain text.
    """

    def __init__(
            self,
            output_format: str,
            is_double: bool = True,
            ) -> None:

        self.output_format = output_format
        self.is_double = is_double
        self.save_path_statistics = "."
        self.is_h5 = output_format.endswith(".h5")
        self.num_digits_output = 10

    def set_save_path_statistics(self, save_path_statistics: str) -> None:
        os.makedirs(save_path_statistics, exist_ok=True)
        self.save_path_statistics = save_path_statistics

    def get_filename(self, field: str) -> str:
        return os.path.join(self.save_path_statistics, self.output_format % field)

    def write_statistics(
            self,
            abl_statistics: ABLStatisticsInformation,
            ) -> None:
        """Writes one record per output field.

        :param abl_statistics: Current statistics
        :type abl_statistics: ABLStatisticsInformation
        """
        field_data = self.prepare_field_data(abl_statistics)
        for field in OUTPUT_FIELDS:
            heights, values = field_data[field]
            filename = self.get_filename(field)
            if self.is_h5:
                self._write_h5(filename, abl_statistics, heights, values)
            else:
                self._write_dat(filename, abl_statistics, heights, values)

    def prepare_field_data(
            self,
            abl_statistics: ABLStatisticsInformation
            ) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
        heights = np.array(abl_statistics.heights)
        temperature_heights = np.array(abl_statistics.temperature_heights)
        velocity_mean = np.asarray(abl_statistics.velocity.mean)
        field_data = {
            "Ux": (heights, velocity_mean[:,0:1]),
            "Uy": (heights, velocity_mean[:,1:2]),
            "Uz": (heights, velocity_mean[:,2:3]),
            "T": (temperature_heights, np.asarray(abl_statistics.temperature.mean).reshape(-1,1)),
            "sfs": (heights, np.asarray(abl_statistics.velocity.sfs_stress_mean)),
            "var": (heights, np.asarray(abl_statistics.velocity.variances)),
        }
        return field_data

    def _write_dat(
            self,
            filename: str,
            abl_statistics: ABLStatisticsInformation,
            heights: np.ndarray,
            values: np.ndarray
            ) -> None:
        digits = self.num_digits_output
        step = abl_statistics.simulation_step
        time = abl_statistics.physical_simulation_time
        utau = abl_statistics.friction_velocity
        with open(filename, "a") as file:
            file.write(f"# step {step:d} time {time:.{digits}e} utau {utau:.{digits}e}\n")
            for height, row in zip(heights, values):
                line = " ".join(f"{value:.{digits}e}" for value in row)
                file.write(f"{height:.{digits}e} {line}\n")

    def _write_h5(
            self,
            filename: str,
            abl_statistics: ABLStatisticsInformation,
            heights: np.ndarray,
            values: np.ndarray
            ) -> None:
        dtype = "f8" if self.is_double else "f4"
        group_name = f"step_{abl_statistics.simulation_step:d}"
        with h5py.File(filename, "a") as h5file:
            if group_name in h5file:
                del h5file[group_name]
            grp = h5file.create_group(name=group_name)
            grp.create_dataset(name="heights", data=heights, dtype=dtype)
            grp.create_dataset(name="values", data=values, dtype=dtype)
            grp.attrs["time"] = abl_statistics.physical_simulation_time
            grp.attrs["utau"] = abl_statistics.friction_velocity
