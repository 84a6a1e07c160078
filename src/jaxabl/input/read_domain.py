from typing import Dict
import warnings

from jaxabl.data_types.case_setup.domain import (
    AxisSetup, BlockSetup, DomainSetup, PartSetup)
from jaxabl.input.setup_reader import get_path_to_key, get_setup_list, \
    get_setup_value

SETUP = "domain"

DOMAIN_KEYS = ("blocks", "parts", "split_factors")
AXES = ("x", "y", "z")


def read_domain_setup(domain_dict: Dict) -> DomainSetup:
    """Reads the domain section, i.e., the
    structured volume blocks, the node parts
    and the domain decomposition.

    :param domain_dict: domain section of the setup
    :type domain_dict: Dict
    :return: Domain setup
    :rtype: DomainSetup
    """
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Setup must be of type dict, but is of type {type(domain_dict)}.")
    assert isinstance(domain_dict, dict), assert_string

    for key in domain_dict:
        if key not in DOMAIN_KEYS:
            warning_string = (
                "While reading the domain setup, "
                f"the following unknown key was encountered: {key}. "
                "This key will be ignored. ")
            warnings.warn(warning_string, RuntimeWarning)

    basepath = SETUP
    path = get_path_to_key(basepath, "blocks")
    blocks_list = get_setup_list(
        SETUP, domain_dict, "blocks", path, dict, is_optional=False)
    blocks = tuple(read_block(block_dict, i)
                   for i, block_dict in enumerate(blocks_list))

    block_names = [block.name for block in blocks]
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Block names {block_names} must be unique.")
    assert len(set(block_names)) == len(block_names), assert_string

    path = get_path_to_key(basepath, "parts")
    parts_list = get_setup_list(
        SETUP, domain_dict, "parts", path, dict,
        is_optional=True, default_value=())
    parts = tuple(read_part(part_dict, i)
                  for i, part_dict in enumerate(parts_list))

    part_names = block_names + [part.name for part in parts]
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Part names {part_names} must be unique.")
    assert len(set(part_names)) == len(part_names), assert_string

    path = get_path_to_key(basepath, "split_factors")
    split_factors = get_setup_list(
        SETUP, domain_dict, "split_factors", path, int,
        is_optional=True, default_value=(1, 1, 1), length=3)
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        f"Values of {path:s} must be >= 1.")
    assert all(split >= 1 for split in split_factors), assert_string
    assert_string = (
        f"Consistency error in {SETUP:s} setup. "
        "Domain decomposition in z direction is not supported, "
        f"but {path:s} is {split_factors}.")
    assert split_factors[2] == 1, assert_string

    for block in blocks:
        for axis_name, axis_setup, split in zip(AXES, block[1:], split_factors):
            assert_string = (
                f"Consistency error in {SETUP:s} setup. "
                f"Number of cells in {axis_name} of block {block.name} "
                f"({axis_setup.cells:d}) is not divisible by split factor {split:d}.")
            assert axis_setup.cells % split == 0, assert_string

    domain_setup = DomainSetup(
        blocks=blocks,
        parts=parts,
        split_factors=tuple(split_factors))

    return domain_setup

def read_block(block_dict: Dict, index: int) -> BlockSetup:
    basepath = get_path_to_key(SETUP, "blocks", str(index))

    path = get_path_to_key(basepath, "name")
    name = get_setup_value(
        SETUP, block_dict, "name", path, str, is_optional=False)

    axes_setup = []
    for axis_name in AXES:
        axis_path = get_path_to_key(basepath, axis_name)
        axis_dict = get_setup_value(
            SETUP, block_dict, axis_name, axis_path, dict, is_optional=False)

        path = get_path_to_key(axis_path, "cells")
        cells = get_setup_value(
            SETUP, axis_dict, "cells", path, int, is_optional=False,
            numerical_value_condition=(">", 0))

        path = get_path_to_key(axis_path, "range")
        domain_range = get_setup_list(
            SETUP, axis_dict, "range", path, (int, float),
            is_optional=False, length=2)
        assert_string = (
            f"Consistency error in {SETUP:s} setup. "
            f"Lower bound of {path:s} must be smaller than upper bound.")
        assert domain_range[0] < domain_range[1], assert_string

        axes_setup.append(AxisSetup(cells, tuple(float(xi) for xi in domain_range)))

    return BlockSetup(name, *axes_setup)

def read_part(part_dict: Dict, index: int) -> PartSetup:
    basepath = get_path_to_key(SETUP, "parts", str(index))

    path = get_path_to_key(basepath, "name")
    name = get_setup_value(
        SETUP, part_dict, "name", path, str, is_optional=False)

    path = get_path_to_key(basepath, "coordinates")
    coordinates = get_setup_list(
        SETUP, part_dict, "coordinates", path, (list, tuple), is_optional=False)
    for point in coordinates:
        assert_string = (
            f"Consistency error in {SETUP:s} setup. "
            f"Coordinates in {path:s} must be triplets [x, y, z], "
            f"but point {point} is not.")
        assert len(point) == 3 and all(
            isinstance(xi, (int, float)) and not isinstance(xi, bool)
            for xi in point), assert_string

    coordinates = tuple(tuple(float(xi) for xi in point) for point in coordinates)
    return PartSetup(name, coordinates)
