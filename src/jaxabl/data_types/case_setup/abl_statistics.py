from typing import NamedTuple, Tuple, Union


class PlaneGeometrySetup(NamedTuple):
    vertices: Tuple[Tuple[float, float], ...]
    num_points: Tuple[int, int]


class NamedPlane(NamedTuple):
    """Sampling plane which refers to a part that
    already exists in the mesh database."""
    height: float
    part_name: str

    @property
    def is_generated(self) -> bool:
        return False


class GeneratedPlane(NamedTuple):
    """Sampling plane whose nodes are generated
    on a quadrilateral at the given height. The part
    is auxiliary, i.e., excluded from the primary solve."""
    height: float
    part_name: str
    geometry: PlaneGeometrySetup

    @property
    def is_generated(self) -> bool:
        return True


PlaneSetup = Union[NamedPlane, GeneratedPlane]


class TransferSetup(NamedTuple):
    search_method: str
    search_tolerance: float
    search_expansion_factor: float
    max_search_expansions: int


class FrictionVelocitySetup(NamedTuple):
    method: str
    kappa: float
    roughness_height: float
    wall_parts: Tuple[str, ...] = ()


class ABLOutputSetup(NamedTuple):
    output_frequency: int
    output_format: str
    logging_frequency: int


class ABLStatisticsSetup(NamedTuple):
    from_target_part: Tuple[str, ...]
    heights: Tuple[float, ...]
    temperature_heights: Tuple[float, ...]
    velocity_planes: Tuple[PlaneSetup, ...]
    temperature_planes: Tuple[PlaneSetup, ...]
    reference_height: float
    transfer: TransferSetup
    friction_velocity: FrictionVelocitySetup
    output: ABLOutputSetup
