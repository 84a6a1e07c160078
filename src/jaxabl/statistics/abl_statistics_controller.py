from __future__ import annotations
from typing import Dict, List, Tuple, TYPE_CHECKING

import jax
import jax.numpy as jnp
import numpy as np

from jaxabl.config import precision
from jaxabl.data_types.case_setup.abl_statistics import ABLStatisticsSetup, PlaneSetup
from jaxabl.data_types.statistics import (
    ABLStatisticsInformation, PlaneAverages, TemperatureStatistics, VelocityStatistics,
    SFS_STRESS_KEYS, VARIANCE_KEYS)
from jaxabl.domain.mesh_database import InactiveSelector, Part
from jaxabl.domain.plane_generator import PlaneGenerator
from jaxabl.input.read_abl_statistics import read_abl_statistics_setup
from jaxabl.io_utils.helper_functions import prepare_abl_statistics_for_logging
from jaxabl.io_utils.statistics_writer import ABLStatisticsWriter
from jaxabl.math.interpolation.linear import linear_interpolation_profile
from jaxabl.statistics import LIFECYCLE_STATES
from jaxabl.statistics.friction_velocity import FrictionVelocityEstimator
from jaxabl.statistics.spatial_averaging import (
    SpatialAveragingAlgorithm, SpatialAveragingReference)
from jaxabl.transfer import (
    TRANSFER_FIELDS_TEMPERATURE_PLANES, TRANSFER_FIELDS_VELOCITY_PLANES,
    TRANSFER_FIELDS_WALL_PARTS)
from jaxabl.transfer.field_transfer import FieldTransferEngine

if TYPE_CHECKING:
    from jaxabl.io_utils.logger import Logger
    from jaxabl.realm import Realm

Array = jax.Array

# COMPONENT LAYOUT OF THE VELOCITY PLANES: u, v, w, T, SFS STRESS
VELOCITY_SLICE = np.s_[0:3]
TEMPERATURE_INDEX = 3
SFS_STRESS_SLICE = np.s_[4:4+len(SFS_STRESS_KEYS)]

PRODUCT_INDICES_VELOCITY_PLANES = {
    "u_u": (0, 0), "v_v": (1, 1), "w_w": (2, 2),
    "u_v": (0, 1), "u_w": (0, 2), "v_w": (1, 2),
    "w_w_w": (2, 2, 2), "T_T": (3, 3), "w_T": (2, 3),
}


class ABLStatisticsController:
    """Computes planar statistics of the atmospheric
    boundary layer at the configured heights, i.e.,
    mean velocity, mean temperature, mean sub-filter
    stress and resolved second and third moments, and
    derives the friction velocity.

    The host calls load, setup, initialize once and
    execute every simulation step. Source term code
    reads the statistics via eval_vel_mean and
    eval_temp_mean at arbitrary heights.
    """

    def __init__(
            self,
            realm: Realm,
            setup_dict: Dict = None,
            spatial_averaging: SpatialAveragingAlgorithm = None,
            logger: Logger = None,
            ) -> None:

        self.realm = realm
        self.logger = logger if logger is not None else realm.logger
        self.state = "UNCONFIGURED"

        self.averaging_reference = None
        if spatial_averaging is not None:
            self.averaging_reference = SpatialAveragingReference(
                spatial_averaging, is_owned=False)

        self.abl_statistics_setup: ABLStatisticsSetup = None
        self.transfer_engine: FieldTransferEngine = None
        self.friction_velocity_estimator: FrictionVelocityEstimator = None
        self.statistics_writer: ABLStatisticsWriter = None
        self._inactive_selector: InactiveSelector = frozenset()

        self.velocity_statistics: VelocityStatistics = None
        self.temperature_statistics: TemperatureStatistics = None
        self.friction_velocity = 0.0
        self.last_step = -1
        self.last_time = 0.0

        if setup_dict is not None:
            self.load(setup_dict)

    def _assert_state(self, operation: str, *states: str) -> None:
        assert_string = (
            f"ABL statistics operation '{operation}' requires state "
            f"{' or '.join(states)}, but current state is {self.state}.")
        assert self.state in states, assert_string

    def _set_state(self, state: str) -> None:
        assert state in LIFECYCLE_STATES
        self.state = state

    def load(self, setup_dict: Dict) -> None:
        """Parses and validates the abl_postprocessing
        setup. Does not access the mesh.

        :param setup_dict: abl_postprocessing section
        :type setup_dict: Dict
        """
        self._assert_state("load", "UNCONFIGURED")
        self.abl_statistics_setup = read_abl_statistics_setup(setup_dict)
        self._set_state("LOADED")

    def setup(self) -> None:
        """Declares the sampling planes and registers
        the transferred fields on the planes and source
        blocks. Must be called before the mesh
        is committed.
        """
        self._assert_state("setup", "LOADED")
        abl_setup = self.abl_statistics_setup
        mesh_database = self.realm.mesh_database

        for block_name in abl_setup.from_target_part:
            assert_string = (
                "Consistency error in abl_postprocessing setup. "
                f"Source part {block_name} is not a volume block of the mesh.")
            assert block_name in mesh_database.blocks, assert_string
            for field_name, components in TRANSFER_FIELDS_VELOCITY_PLANES.items():
                mesh_database.register_field(block_name, field_name, components)

        for planes, transfer_fields in (
                (abl_setup.velocity_planes, TRANSFER_FIELDS_VELOCITY_PLANES),
                (abl_setup.temperature_planes, TRANSFER_FIELDS_TEMPERATURE_PLANES)):
            for plane in planes:
                if plane.is_generated:
                    mesh_database.declare_part(plane.part_name, is_auxiliary=True)
                for field_name, components in transfer_fields.items():
                    mesh_database.register_field(plane.part_name, field_name, components)

        # WALL FRICTION VELOCITY IS TRANSFERRED FROM THE SOURCE BLOCKS
        wall_parts = abl_setup.friction_velocity.wall_parts
        if wall_parts:
            for part_name in abl_setup.from_target_part + wall_parts:
                for field_name, components in TRANSFER_FIELDS_WALL_PARTS.items():
                    mesh_database.register_field(part_name, field_name, components)

        self._set_state("SETUP")

    def initialize(self) -> None:
        """Resolves the sampling planes on the committed
        mesh, builds the transfer engine and allocates
        the statistics storage.
        """
        self._assert_state("initialize", "SETUP")
        abl_setup = self.abl_statistics_setup
        mesh_database = self.realm.mesh_database
        assert mesh_database.is_committed, \
            "ABL statistics can only be initialized on a committed mesh."

        for plane in abl_setup.velocity_planes + abl_setup.temperature_planes:
            self._resolve_plane(plane)
        for part_name in abl_setup.friction_velocity.wall_parts:
            self._resolve_wall_part(part_name)

        self._inactive_selector = frozenset(
            plane.part_name for plane in abl_setup.velocity_planes + abl_setup.temperature_planes
            if mesh_database.get_part(plane.part_name).is_auxiliary)

        self.transfer_engine = FieldTransferEngine(
            mesh_database, abl_setup.from_target_part,
            abl_setup.transfer, self.realm.is_parallel)

        if self.averaging_reference is None:
            self.averaging_reference = SpatialAveragingReference(
                SpatialAveragingAlgorithm(self.realm.is_parallel), is_owned=True)

        self.friction_velocity_estimator = FrictionVelocityEstimator(
            abl_setup.friction_velocity, abl_setup.heights)

        self.statistics_writer = ABLStatisticsWriter(
            abl_setup.output.output_format, precision.is_double_precision())
        self.statistics_writer.set_save_path_statistics(self.realm.output_directory)

        no_heights = len(abl_setup.heights)
        no_temperature_heights = len(abl_setup.temperature_heights)
        self.velocity_statistics = VelocityStatistics(
            mean=jnp.zeros((no_heights, 3)),
            sfs_stress_mean=jnp.zeros((no_heights, len(SFS_STRESS_KEYS))),
            variances=jnp.zeros((no_heights, len(VARIANCE_KEYS))))
        self.temperature_statistics = TemperatureStatistics(
            mean=jnp.zeros(no_temperature_heights))
        self.friction_velocity = 0.0

        self._velocity_sort = np.argsort(abl_setup.heights)
        self._temperature_sort = np.argsort(abl_setup.temperature_heights)
        self._sorted_heights = jnp.asarray(np.array(abl_setup.heights)[self._velocity_sort])
        self._sorted_temperature_heights = jnp.asarray(
            np.array(abl_setup.temperature_heights)[self._temperature_sort])

        self.logger.log_setup({
            "velocity heights": abl_setup.heights,
            "temperature heights": abl_setup.temperature_heights,
            "source parts": abl_setup.from_target_part,
            "search method": abl_setup.transfer.search_method,
            "friction velocity method": abl_setup.friction_velocity.method,
            "wall parts": abl_setup.friction_velocity.wall_parts,
            "inactive parts": sorted(self._inactive_selector),
        }, "ABL STATISTICS")

        self._set_state("INITIALIZED")

    def _resolve_plane(self, plane: PlaneSetup) -> Part:
        mesh_database = self.realm.mesh_database
        if plane.is_generated:
            part = mesh_database.get_part(plane.part_name)
            elevation = self.abl_statistics_setup.reference_height + plane.height
            part.set_coordinates(PlaneGenerator(plane.geometry, elevation).generate())
        else:
            assert_string = (
                "Consistency error in abl_postprocessing setup. "
                f"Target part {plane.part_name} for height {plane.height} "
                "does not exist in the mesh database.")
            assert plane.part_name in mesh_database.parts, assert_string
            part = mesh_database.get_part(plane.part_name)
            assert_string = (
                "Consistency error in abl_postprocessing setup. "
                f"Target part {plane.part_name} has no nodes.")
            assert part.number_of_nodes > 0, assert_string
        return part

    def _resolve_wall_part(self, part_name: str) -> Part:
        mesh_database = self.realm.mesh_database
        assert_string = (
            "Consistency error in abl_postprocessing setup. "
            f"Wall part {part_name} does not exist in the mesh database.")
        assert part_name in mesh_database.parts, assert_string
        part = mesh_database.get_part(part_name)
        assert_string = (
            "Consistency error in abl_postprocessing setup. "
            f"Wall part {part_name} has no nodes.")
        assert part.number_of_nodes > 0, assert_string
        return part

    def execute(self) -> None:
        """Transfers the fields onto the planes, computes
        the planar averages and the friction velocity and
        writes the statistics if the current step is
        a multiple of the output frequency. The stored
        statistics are only replaced if all planes
        succeed.
        """
        self._assert_state("execute", "INITIALIZED", "RUNNING")
        abl_setup = self.abl_statistics_setup
        time_control_variables = self.realm.time_control_variables
        simulation_step = time_control_variables.simulation_step

        velocity_statistics, plane_means = self.compute_velocity_statistics()
        temperature_statistics = self.compute_temperature_statistics(plane_means)
        wall_averages = self.compute_wall_averages() \
            if self.friction_velocity_estimator.is_wall else None
        friction_velocity = self.friction_velocity_estimator.compute_friction_velocity(
            velocity_statistics, wall_averages)

        self.velocity_statistics = velocity_statistics
        self.temperature_statistics = temperature_statistics
        self.friction_velocity = friction_velocity
        self.last_step = simulation_step
        self.last_time = time_control_variables.physical_simulation_time
        self._set_state("RUNNING")

        if simulation_step % abl_setup.output.output_frequency == 0:
            self.statistics_writer.write_statistics(self.get_statistics())

        if simulation_step % abl_setup.output.logging_frequency == 0:
            self.logger.log_list(prepare_abl_statistics_for_logging(self.get_statistics()))

    def compute_velocity_statistics(self) -> Tuple[VelocityStatistics, Dict[str, Array]]:
        mesh_database = self.realm.mesh_database
        algorithm = self.averaging_reference.algorithm

        mean, sfs_stress_mean, variances = [], [], []
        plane_means = {}
        for plane in self.abl_statistics_setup.velocity_planes:
            part = mesh_database.get_part(plane.part_name)
            plane_buffers = self.transfer_engine.transfer(
                part, TRANSFER_FIELDS_VELOCITY_PLANES)
            plane_averages = algorithm.compute_plane_averages(
                plane.part_name, plane_buffers, PRODUCT_INDICES_VELOCITY_PLANES)
            means = plane_averages.means
            plane_means[plane.part_name] = means
            mean.append(means[VELOCITY_SLICE])
            sfs_stress_mean.append(means[SFS_STRESS_SLICE])
            variances.append(jnp.stack([
                plane_averages.covariances[key] for key in VARIANCE_KEYS]))

        velocity_statistics = VelocityStatistics(
            mean=jnp.stack(mean),
            sfs_stress_mean=jnp.stack(sfs_stress_mean),
            variances=jnp.stack(variances))
        return velocity_statistics, plane_means

    def compute_temperature_statistics(
            self,
            plane_means: Dict[str, Array]
            ) -> TemperatureStatistics:
        mesh_database = self.realm.mesh_database
        algorithm = self.averaging_reference.algorithm

        mean = []
        for plane in self.abl_statistics_setup.temperature_planes:
            if plane.part_name in plane_means:
                mean.append(plane_means[plane.part_name][TEMPERATURE_INDEX])
                continue
            part = mesh_database.get_part(plane.part_name)
            plane_buffers = self.transfer_engine.transfer(
                part, TRANSFER_FIELDS_TEMPERATURE_PLANES)
            plane_averages = algorithm.compute_plane_averages(
                plane.part_name, plane_buffers)
            mean.append(plane_averages.means[0])

        return TemperatureStatistics(mean=jnp.stack(mean))

    def eval_vel_mean(self, height: float | Array) -> Array:
        """Mean velocity at arbitrary heights, linearly
        interpolated between the bracketing configured
        heights and clamped outside.

        :param height: Scalar or array of heights
        :type height: float | Array
        :return: Mean velocity of shape height.shape + (3,)
        :rtype: Array
        """
        self._assert_state("eval_vel_mean", "INITIALIZED", "RUNNING")
        return linear_interpolation_profile(
            height, self._sorted_heights,
            self.velocity_statistics.mean[self._velocity_sort])

    def eval_temp_mean(self, height: float | Array) -> Array:
        """Mean temperature at arbitrary heights,
        see eval_vel_mean."""
        self._assert_state("eval_temp_mean", "INITIALIZED", "RUNNING")
        return linear_interpolation_profile(
            height, self._sorted_temperature_heights,
            self.temperature_statistics.mean[self._temperature_sort])

    @property
    def inactive_selector(self) -> InactiveSelector:
        return self._inactive_selector

    def get_statistics(self) -> ABLStatisticsInformation:
        self._assert_state("get_statistics", "INITIALIZED", "RUNNING")
        abl_setup = self.abl_statistics_setup
        return ABLStatisticsInformation(
            heights=abl_setup.heights,
            temperature_heights=abl_setup.temperature_heights,
            velocity=self.velocity_statistics,
            temperature=self.temperature_statistics,
            friction_velocity=self.friction_velocity,
            simulation_step=self.last_step,
            physical_simulation_time=self.last_time)

    def destroy(self) -> None:
        if self.state == "DESTROYED":
            return
        if self.averaging_reference is not None:
            self.averaging_reference.release()
        self.transfer_engine = None
        self._set_state("DESTROYED")

    def compute_wall_averages(self) -> List[PlaneAverages]:
        """Averages the wall friction velocity over
        every wall part."""
        mesh_database = self.realm.mesh_database
        algorithm = self.averaging_reference.algorithm

        wall_averages = []
        for part_name in self.abl_statistics_setup.friction_velocity.wall_parts:
            part = mesh_database.get_part(part_name)
            plane_buffers = self.transfer_engine.transfer(
                part, TRANSFER_FIELDS_WALL_PARTS)
            wall_averages.append(algorithm.compute_plane_averages(
                part_name, plane_buffers))
        return wall_averages
