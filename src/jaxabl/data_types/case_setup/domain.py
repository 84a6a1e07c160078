from typing import NamedTuple, Tuple


class AxisSetup(NamedTuple):
    cells: int
    range: Tuple[float, float]


class BlockSetup(NamedTuple):
    name: str
    x: AxisSetup
    y: AxisSetup
    z: AxisSetup


class PartSetup(NamedTuple):
    name: str
    coordinates: Tuple[Tuple[float, float, float], ...]


class DomainSetup(NamedTuple):
    blocks: Tuple[BlockSetup, ...]
    parts: Tuple[PartSetup, ...]
    split_factors: Tuple[int, int, int]
