import re
from typing import Sequence, Tuple

import numpy as np

from jaxabl.data_types.case_setup.abl_statistics import (
    GeneratedPlane, NamedPlane, PlaneGeometrySetup, PlaneSetup)

# printf-style conversion of a single numeric value, e.g., %.1f, %g, %05d
PART_FORMAT_CONVERSION = re.compile(r"%[-+ #0]*\d*(?:\.\d+)?[diueEfFgG]")


def check_part_format(part_format: str) -> None:
    """Asserts that the part name template contains exactly
    one numeric conversion specifier. Literal percent signs
    must be escaped as %%.

    :param part_format: Template, e.g., "zplane_%.1f"
    :type part_format: str
    """
    stripped = part_format.replace("%%", "")
    conversions = PART_FORMAT_CONVERSION.findall(stripped)
    remainder = PART_FORMAT_CONVERSION.sub("", stripped)
    assert_string = (
        "Consistency error in abl_postprocessing setup. "
        f"Part name template '{part_format}' must contain exactly one "
        "numeric conversion specifier, e.g., 'zplane_%.1f'.")
    assert len(conversions) == 1 and "%" not in remainder, assert_string

def get_part_name(height: float, part_format: str) -> str:
    """Maps a height to the name of its target part."""
    return part_format % height

def determine_planes(
        heights: Sequence[float],
        part_names: Sequence[str] = None,
        part_format: str = None,
        geometry: PlaneGeometrySetup = None,
        ) -> Tuple[PlaneSetup, ...]:
    """Resolves the target part of every height. Parts are
    either given explicitly by name, named by a template,
    or generated (template required) if a plane geometry
    is provided.

    :param heights: Heights of the planes
    :type heights: Sequence[float]
    :param part_names: Explicit part names, one per height, defaults to None
    :type part_names: Sequence[str], optional
    :param part_format: Part name template, defaults to None
    :type part_format: str, optional
    :param geometry: Plane geometry for generated parts, defaults to None
    :type geometry: PlaneGeometrySetup, optional
    :return: Tuple of NamedPlane or GeneratedPlane
    :rtype: Tuple[PlaneSetup, ...]
    """

    if geometry is not None:
        assert_string = (
            "Consistency error in abl_postprocessing setup. "
            "Generated parts require a part name template and "
            "can not be combined with explicit part names.")
        assert part_format is not None and part_names is None, assert_string

    if part_format is not None:
        check_part_format(part_format)

    if part_names is None:
        assert_string = (
            "Consistency error in abl_postprocessing setup. "
            "Either explicit target part names or a part name "
            "template has to be provided.")
        assert part_format is not None, assert_string
        part_names = tuple(get_part_name(height, part_format) for height in heights)
    else:
        assert_string = (
            "Consistency error in abl_postprocessing setup. "
            f"Number of target parts ({len(part_names):d}) does not "
            f"match number of heights ({len(heights):d}).")
        assert len(part_names) == len(heights), assert_string

    assert_string = (
        "Consistency error in abl_postprocessing setup. "
        f"Target part names {part_names} are not unique for "
        f"heights {tuple(heights)}.")
    assert len(set(part_names)) == len(part_names), assert_string

    if geometry is None:
        planes = tuple(NamedPlane(float(height), name)
                       for height, name in zip(heights, part_names))
    else:
        planes = tuple(GeneratedPlane(float(height), name, geometry)
                       for height, name in zip(heights, part_names))

    return planes


class PlaneGenerator:
    """Generates the nodes of a horizontal sampling plane.
    The nodes form a regular (nx, ny) grid on the bilinear
    image of the unit square on the quadrilateral spanned
    by four counter-clockwise vertices.
    """

    def __init__(
            self,
            geometry: PlaneGeometrySetup,
            elevation: float
            ) -> None:
        self.vertices = np.array(geometry.vertices, dtype=float)
        self.nx, self.ny = geometry.num_points
        self.elevation = elevation

    def generate(self) -> np.ndarray:
        """Generates the node coordinates.

        :return: Node coordinates of shape (nx * ny, 3)
        :rtype: np.ndarray
        """
        s = np.linspace(0.0, 1.0, self.nx) if self.nx > 1 else np.array([0.5])
        t = np.linspace(0.0, 1.0, self.ny) if self.ny > 1 else np.array([0.5])
        S, T = np.meshgrid(s, t, indexing="ij")
        S = S.reshape(-1, 1)
        T = T.reshape(-1, 1)

        v0, v1, v2, v3 = self.vertices
        xy = (1.0 - S) * (1.0 - T) * v0 + S * (1.0 - T) * v1 \
            + S * T * v2 + (1.0 - S) * T * v3
        z = np.full((xy.shape[0], 1), self.elevation)
        return np.concatenate([xy, z], axis=-1)
