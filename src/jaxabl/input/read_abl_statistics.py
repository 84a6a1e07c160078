from typing import Dict, Tuple
import warnings

from jaxabl.data_types.case_setup.abl_statistics import (
    ABLOutputSetup, ABLStatisticsSetup, FrictionVelocitySetup,
    PlaneGeometrySetup, PlaneSetup, TransferSetup)
from jaxabl.domain.plane_generator import determine_planes
from jaxabl.input.setup_reader import get_path_to_key, get_setup_list, \
    get_setup_value as _get_setup_value
from jaxabl.statistics import TUPLE_FRICTION_VELOCITY_METHODS
from jaxabl.transfer import TUPLE_SEARCH_METHODS

SETUP = "abl_postprocessing"

ABL_KEYS = (
    "search_method", "search_tolerance", "search_expansion_factor",
    "max_search_expansions", "from_target_part", "target_part_format",
    "heights", "target_parts", "temperature_heights",
    "temperature_target_parts", "generate_parts", "domain_vertices",
    "domain_num_pts", "reference_height", "output_frequency",
    "output_format", "logging_frequency", "friction_velocity",
    "abl_wall_parts"
)

DEFAULT_PART_FORMAT = "zplane_%.1f"
DEFAULT_OUTPUT_FORMAT = "abl_stats_%s.dat"


def get_setup_value(*args, **kwargs):
    return _get_setup_value(SETUP, *args, **kwargs)

def read_abl_statistics_setup(abl_dict: Dict) -> ABLStatisticsSetup:
    """Reads the abl_postprocessing section and creates
    the corresponding containers. Performs all consistency
    checks which do not require the mesh.

    :param abl_dict: abl_postprocessing section of the setup
    :type abl_dict: Dict
    :return: ABL statistics setup
    :rtype: ABLStatisticsSetup
    """

    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Setup must be of type dict, but is of type {type(abl_dict)}.")
    assert isinstance(abl_dict, dict), assert_string

    basepath = SETUP
    for key in abl_dict:
        if key not in ABL_KEYS:
            path = get_path_to_key(basepath, key)
            warning_string = (
                "While reading the abl_postprocessing setup, "
                f"the following unknown key was encountered: {path}. "
                "This key will be ignored. ")
            warnings.warn(warning_string, RuntimeWarning)

    from_target_part = get_setup_list(
        SETUP, abl_dict, "from_target_part",
        get_path_to_key(basepath, "from_target_part"),
        str, is_optional=False, is_unique=True)

    heights = read_heights(abl_dict, "heights", is_optional=False)
    temperature_heights = read_heights(abl_dict, "temperature_heights", is_optional=True)
    if temperature_heights is None:
        temperature_heights = heights

    path = get_path_to_key(basepath, "reference_height")
    reference_height = get_setup_value(
        abl_dict, "reference_height", path, (int, float),
        is_optional=True, default_value=0.0)

    velocity_planes, temperature_planes = read_planes(
        abl_dict, heights, temperature_heights)

    transfer_setup = read_transfer_setup(abl_dict)
    friction_velocity_setup = read_friction_velocity_setup(
        abl_dict, heights, velocity_planes + temperature_planes)
    output_setup = read_output_setup(abl_dict)

    abl_statistics_setup = ABLStatisticsSetup(
        from_target_part=from_target_part,
        heights=heights,
        temperature_heights=temperature_heights,
        velocity_planes=velocity_planes,
        temperature_planes=temperature_planes,
        reference_height=float(reference_height),
        transfer=transfer_setup,
        friction_velocity=friction_velocity_setup,
        output=output_setup)

    return abl_statistics_setup

def read_heights(
        abl_dict: Dict,
        key: str,
        is_optional: bool
        ) -> Tuple[float, ...]:
    path = get_path_to_key(SETUP, key)
    heights = get_setup_list(
        SETUP, abl_dict, key, path, (int, float),
        is_optional=is_optional, is_unique=True)
    if heights is None:
        return None
    return tuple(float(height) for height in heights)

def read_planes(
        abl_dict: Dict,
        heights: Tuple[float, ...],
        temperature_heights: Tuple[float, ...]
        ) -> Tuple:
    basepath = SETUP

    path = get_path_to_key(basepath, "generate_parts")
    generate_parts = get_setup_value(
        abl_dict, "generate_parts", path, bool,
        is_optional=True, default_value=False)

    geometry = read_plane_geometry(abl_dict) if generate_parts else None

    target_parts = get_setup_list(
        SETUP, abl_dict, "target_parts",
        get_path_to_key(basepath, "target_parts"), str,
        is_optional=True, is_unique=True)
    temperature_target_parts = get_setup_list(
        SETUP, abl_dict, "temperature_target_parts",
        get_path_to_key(basepath, "temperature_target_parts"), str,
        is_optional=True, is_unique=True)

    is_explicit = target_parts is not None or temperature_target_parts is not None
    path = get_path_to_key(basepath, "target_part_format")
    part_format = get_setup_value(
        abl_dict, "target_part_format", path, str,
        is_optional=generate_parts or is_explicit,
        default_value=DEFAULT_PART_FORMAT if generate_parts else None)

    if temperature_target_parts is None and target_parts is not None \
        and temperature_heights == heights:
        temperature_target_parts = target_parts

    velocity_planes = determine_planes(
        heights, target_parts, part_format, geometry)
    temperature_planes = determine_planes(
        temperature_heights, temperature_target_parts, part_format, geometry)

    velocity_plane_heights = {plane.part_name: plane.height for plane in velocity_planes}
    for plane in temperature_planes:
        height = velocity_plane_heights.get(plane.part_name, plane.height)
        assert_string = (
            f"Consistency error in {SETUP:s} setup. "
            f"Target part name {plane.part_name} is not unique, it is used "
            f"for velocity height {height} and temperature height {plane.height}.")
        assert height == plane.height, assert_string

    return velocity_planes, temperature_planes

def read_plane_geometry(abl_dict: Dict) -> PlaneGeometrySetup:
    basepath = SETUP

    path = get_path_to_key(basepath, "domain_vertices")
    vertices = get_setup_list(
        SETUP, abl_dict, "domain_vertices", path, (list, tuple),
        is_optional=False, length=4)
    for vertex in vertices:
        assert_string = (
            f"Consistency error in {SETUP:s} setup. "
            f"Vertices in {path:s} must be pairs of numbers [x, y], "
            f"but vertex {vertex} is not.")
        assert len(vertex) == 2 and all(
            isinstance(xi, (int, float)) and not isinstance(xi, bool)
            for xi in vertex), assert_string
    vertices = tuple((float(vertex[0]), float(vertex[1])) for vertex in vertices)

    path = get_path_to_key(basepath, "domain_num_pts")
    num_points = get_setup_list(
        SETUP, abl_dict, "domain_num_pts", path, int,
        is_optional=False, length=2)
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Values of {path:s} must be >= 1.")
    assert all(n >= 1 for n in num_points), assert_string

    return PlaneGeometrySetup(vertices, tuple(num_points))

def read_transfer_setup(abl_dict: Dict) -> TransferSetup:
    basepath = SETUP

    path = get_path_to_key(basepath, "search_method")
    search_method = get_setup_value(
        abl_dict, "search_method", path, str,
        is_optional=True, default_value="BISECTION",
        possible_string_values=TUPLE_SEARCH_METHODS)

    path = get_path_to_key(basepath, "search_tolerance")
    search_tolerance = get_setup_value(
        abl_dict, "search_tolerance", path, (int, float),
        is_optional=True, default_value=1e-4,
        numerical_value_condition=(">", 0.0))

    path = get_path_to_key(basepath, "search_expansion_factor")
    search_expansion_factor = get_setup_value(
        abl_dict, "search_expansion_factor", path, (int, float),
        is_optional=True, default_value=1.5,
        numerical_value_condition=(">", 1.0))

    path = get_path_to_key(basepath, "max_search_expansions")
    max_search_expansions = get_setup_value(
        abl_dict, "max_search_expansions", path, int,
        is_optional=True, default_value=5,
        numerical_value_condition=(">=", 0))

    transfer_setup = TransferSetup(
        search_method=search_method,
        search_tolerance=float(search_tolerance),
        search_expansion_factor=float(search_expansion_factor),
        max_search_expansions=max_search_expansions)

    return transfer_setup

def read_friction_velocity_setup(
        abl_dict: Dict,
        heights: Tuple[float, ...],
        planes: Tuple[PlaneSetup, ...] = ()
        ) -> FrictionVelocitySetup:
    path = get_path_to_key(SETUP, "abl_wall_parts")
    wall_parts = get_setup_list(
        SETUP, abl_dict, "abl_wall_parts", path, str,
        is_optional=True, is_unique=True)
    wall_parts = () if wall_parts is None else tuple(wall_parts)

    plane_names = set(plane.part_name for plane in planes)
    for wall_part in wall_parts:
        assert_string = (
            f"Consistency error in {SETUP:s} setup. "
            f"Wall part {wall_part} in {path:s} is also a sampling plane.")
        assert wall_part not in plane_names, assert_string

    basepath = get_path_to_key(SETUP, "friction_velocity")
    friction_velocity_dict = get_setup_value(
        abl_dict, "friction_velocity", basepath, dict,
        is_optional=True, default_value={})

    path = get_path_to_key(basepath, "method")
    method = get_setup_value(
        friction_velocity_dict, "method", path, str,
        is_optional=True, default_value="WALL" if wall_parts else "STRESS",
        possible_string_values=TUPLE_FRICTION_VELOCITY_METHODS)

    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Friction velocity method WALL requires abl_wall_parts and "
        f"abl_wall_parts require method WALL, but method is {method} "
        f"and wall parts are {wall_parts}.")
    assert (method == "WALL") == bool(wall_parts), assert_string

    path = get_path_to_key(basepath, "kappa")
    kappa = get_setup_value(
        friction_velocity_dict, "kappa", path, (int, float),
        is_optional=True, default_value=0.41,
        numerical_value_condition=(">", 0.0))

    is_log_law = method == "LOG_LAW"
    path = get_path_to_key(basepath, "roughness_height")
    roughness_height = get_setup_value(
        friction_velocity_dict, "roughness_height", path, (int, float),
        is_optional=not is_log_law, default_value=0.0,
        numerical_value_condition=(">", 0.0))

    if is_log_law:
        assert_string = (
            f"Consistency error in {SETUP:s} setup. "
            f"Value of {path:s} must be smaller than the "
            f"lowest height {min(heights)}.")
        assert roughness_height < min(heights), assert_string

    return FrictionVelocitySetup(
        method, float(kappa), float(roughness_height), wall_parts)

def read_output_setup(abl_dict: Dict) -> ABLOutputSetup:
    basepath = SETUP

    path = get_path_to_key(basepath, "output_frequency")
    output_frequency = get_setup_value(
        abl_dict, "output_frequency", path, int,
        is_optional=True, default_value=10,
        numerical_value_condition=(">", 0))

    path = get_path_to_key(basepath, "output_format")
    output_format = get_setup_value(
        abl_dict, "output_format", path, str,
        is_optional=True, default_value=DEFAULT_OUTPUT_FORMAT)
    stripped = output_format.replace("%%", "")
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Value of {path:s} must contain exactly one '%s' "
        f"specifier, but is '{output_format}'.")
    assert stripped.count("%") == 1 and "%s" in stripped, assert_string

    path = get_path_to_key(basepath, "logging_frequency")
    logging_frequency = get_setup_value(
        abl_dict, "logging_frequency", path, int,
        is_optional=True, default_value=output_frequency,
        numerical_value_condition=(">", 0))

    return ABLOutputSetup(output_frequency, output_format, logging_frequency)
