import os
from typing import Dict, FrozenSet, Union
import warnings

import jax
from jax import Array

from jaxabl.config import precision
from jaxabl.data_types.buffers import TimeControlVariables
from jaxabl.domain.mesh_database import MeshDatabase
from jaxabl.input.input_manager import read_setup_file
from jaxabl.input.read_domain import read_domain_setup
from jaxabl.input.setup_reader import get_path_to_key, get_setup_value
from jaxabl.io_utils.logger import Logger
from jaxabl.statistics.abl_statistics_controller import ABLStatisticsController
from jaxabl.statistics.spatial_averaging import SpatialAveragingAlgorithm

SETUP_KEYS = ("general", "domain", "abl_postprocessing")
GENERAL_KEYS = ("is_double_precision", "is_parallel", "output_directory",
                "logging_level")


class Realm:
    """Host simulation of the ABL statistics. Owns the
    mesh database, the time control variables and
    optionally a spatial averaging algorithm which is
    shared with the ABL statistics. Drives the ABL
    statistics through load, setup, mesh commit,
    initialize and execute.

    The setup contains the sections general, domain
    and abl_postprocessing.
    """

    def __init__(
            self,
            setup: Union[str, Dict],
            spatial_averaging: SpatialAveragingAlgorithm = None,
            ) -> None:

        setup_dict = read_setup_file(setup, "Realm setup")
        for key in setup_dict:
            if key not in SETUP_KEYS:
                warning_string = (
                    "While reading the realm setup, "
                    f"the following unknown key was encountered: {key}. "
                    "This key will be ignored. ")
                warnings.warn(warning_string, RuntimeWarning)

        self.read_general_setup(setup_dict.get("general", {}))
        if self.is_double_precision:
            precision.enable_double_precision()
        else:
            precision.enable_single_precision()

        os.makedirs(self.output_directory, exist_ok=True)
        self.logger = Logger("jaxabl", self.logging_level, jax.default_backend())
        self.logger.configure_logger(self.output_directory)

        assert_string = "Consistency error in realm setup. Section domain is missing."
        assert "domain" in setup_dict, assert_string
        self.domain_setup = read_domain_setup(setup_dict["domain"])
        self.mesh_database = MeshDatabase.from_domain_setup(self.domain_setup)

        self.time_control_variables = TimeControlVariables()
        self.spatial_averaging = spatial_averaging

        self.abl_statistics = None
        if "abl_postprocessing" in setup_dict:
            self.abl_statistics = ABLStatisticsController(
                self, setup_dict["abl_postprocessing"], spatial_averaging)

    def read_general_setup(self, general_dict: Dict) -> None:
        basepath = "general"
        for key in general_dict:
            if key not in GENERAL_KEYS:
                warning_string = (
                    "While reading the general setup, "
                    f"the following unknown key was encountered: {key}. "
                    "This key will be ignored. ")
                warnings.warn(warning_string, RuntimeWarning)

        path = get_path_to_key(basepath, "is_double_precision")
        self.is_double_precision = get_setup_value(
            basepath, general_dict, "is_double_precision", path, bool,
            is_optional=True, default_value=True)

        path = get_path_to_key(basepath, "is_parallel")
        self.is_parallel = get_setup_value(
            basepath, general_dict, "is_parallel", path, bool,
            is_optional=True, default_value=False)

        path = get_path_to_key(basepath, "output_directory")
        self.output_directory = get_setup_value(
            basepath, general_dict, "output_directory", path, str,
            is_optional=True, default_value="./results")

        path = get_path_to_key(basepath, "logging_level")
        self.logging_level = get_setup_value(
            basepath, general_dict, "logging_level", path, str,
            is_optional=True, default_value="INFO",
            possible_string_values=("DEBUG", "INFO", "WARNING", "ERROR", "NONE",
                                    "DEBUG_TO_FILE", "INFO_TO_FILE"))

    def initialize(self) -> None:
        """Sets up the ABL statistics, commits the
        mesh and initializes the ABL statistics."""
        self.logger.log_sim_start()
        if self.abl_statistics is not None:
            self.abl_statistics.setup()
        self.mesh_database.commit()
        if self.abl_statistics is not None:
            self.abl_statistics.initialize()

    def set_field(self, block_name: str, field_name: str, buffer: Array) -> None:
        self.mesh_database.set_field(block_name, field_name, buffer)

    def advance(
            self,
            physical_timestep_size: float,
            fields: Dict[str, Dict[str, Array]] = None
            ) -> None:
        """Advances the realm by one step. The given
        fields, {block_name: {field_name: buffer}}, are
        set before the ABL statistics are executed.

        :param physical_timestep_size: Time step size
        :type physical_timestep_size: float
        :param fields: Field buffers per block, defaults to None
        :type fields: Dict[str, Dict[str, Array]], optional
        """
        if fields is not None:
            for block_name, block_fields in fields.items():
                for field_name, buffer in block_fields.items():
                    self.set_field(block_name, field_name, buffer)

        time_control_variables = self.time_control_variables
        self.time_control_variables = TimeControlVariables(
            physical_simulation_time=time_control_variables.physical_simulation_time + physical_timestep_size,
            simulation_step=time_control_variables.simulation_step + 1,
            physical_timestep_size=physical_timestep_size)

        if self.abl_statistics is not None:
            self.abl_statistics.execute()

    @property
    def inactive_selector(self) -> FrozenSet[str]:
        if self.abl_statistics is None:
            return frozenset()
        return self.abl_statistics.inactive_selector

    @property
    def active_parts(self) -> FrozenSet[str]:
        """Parts of the primary solve, i.e., all node
        parts which are not auxiliary sampling geometry."""
        return frozenset(self.mesh_database.parts) - self.inactive_selector

    def finalize(self) -> None:
        if self.abl_statistics is not None:
            self.abl_statistics.destroy()
        if self.spatial_averaging is not None:
            self.spatial_averaging.finalize()
        self.logger.log_sim_finish(self.time_control_variables.physical_simulation_time)
