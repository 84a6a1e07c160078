from typing import Dict, FrozenSet, Iterable, List, Tuple

import jax
import numpy as np

from jaxabl.data_types.buffers import PlaneFieldBuffers
from jaxabl.data_types.case_setup.domain import BlockSetup, DomainSetup
from jaxabl.domain.volume_block import VolumeBlock

Array = jax.Array

InactiveSelector = FrozenSet[str]


class Part:
    """Node part of the mesh database, e.g., a
    horizontal sampling plane. Auxiliary parts
    are sampling geometry and not part of the
    primary flow solve."""

    def __init__(
            self,
            name: str,
            is_auxiliary: bool = False,
            coordinates: np.ndarray = None
            ) -> None:
        self.name = name
        self.is_auxiliary = is_auxiliary
        self.coordinates = None
        self.fields: Dict[str, int] = {}
        self.field_buffers: Dict[str, PlaneFieldBuffers] = {}
        if coordinates is not None:
            self.set_coordinates(coordinates)

    def set_coordinates(self, coordinates: np.ndarray) -> None:
        coordinates = np.asarray(coordinates, dtype=float)
        assert_string = (
            f"Coordinates of part {self.name} must have shape (N,3), "
            f"but have shape {coordinates.shape}.")
        assert coordinates.ndim == 2 and coordinates.shape[-1] == 3 \
            and coordinates.shape[0] > 0, assert_string
        self.coordinates = coordinates

    @property
    def number_of_nodes(self) -> int:
        return 0 if self.coordinates is None else self.coordinates.shape[0]


class MeshDatabase:
    """Holds the volume blocks and node parts of the
    mesh. Parts are declared and fields are registered
    before the mesh is committed, after commit the
    topology is fixed.
    """

    def __init__(self, split_factors: Tuple[int, int, int] = (1, 1, 1)) -> None:
        assert_string = (
            "Consistency error in domain setup. "
            "Domain decomposition in z direction is not supported, "
            f"but split factors are {tuple(split_factors)}.")
        assert split_factors[2] == 1, assert_string

        self.split_factors = tuple(split_factors)
        self.no_subdomains = int(np.prod(self.split_factors))
        self.blocks: Dict[str, VolumeBlock] = {}
        self.parts: Dict[str, Part] = {}
        self.field_registrations: Dict[str, Dict[str, int]] = {}
        self.is_committed = False

    @classmethod
    def from_domain_setup(cls, domain_setup: DomainSetup) -> "MeshDatabase":
        mesh_database = cls(domain_setup.split_factors)
        for block_setup in domain_setup.blocks:
            mesh_database.declare_block(block_setup)
        for part_setup in domain_setup.parts:
            mesh_database.declare_part(part_setup.name, coordinates=part_setup.coordinates)
        return mesh_database

    def _check_not_committed(self) -> None:
        assert not self.is_committed, \
            "Mesh database is already committed, topology can not be modified."

    def declare_block(self, block_setup: BlockSetup) -> VolumeBlock:
        self._check_not_committed()
        assert_string = f"Part {block_setup.name} is already declared."
        assert not self.has_part(block_setup.name), assert_string
        block = VolumeBlock(block_setup, self.split_factors)
        self.blocks[block.name] = block
        return block

    def declare_part(
            self,
            part_name: str,
            is_auxiliary: bool = False,
            coordinates: np.ndarray = None
            ) -> Part:
        """Declares a node part. Declaring an existing
        part again returns the existing part, flagged
        auxiliary if requested.

        :param part_name: Name of the part
        :type part_name: str
        :param is_auxiliary: Part is excluded from the primary solve, defaults to False
        :type is_auxiliary: bool, optional
        :param coordinates: Node coordinates (N,3), defaults to None
        :type coordinates: np.ndarray, optional
        :return: The part
        :rtype: Part
        """
        self._check_not_committed()
        assert_string = f"Part {part_name} is declared as volume block."
        assert part_name not in self.blocks, assert_string
        if part_name in self.parts:
            part = self.parts[part_name]
            part.is_auxiliary = part.is_auxiliary or is_auxiliary
            if coordinates is not None:
                part.set_coordinates(coordinates)
        else:
            part = Part(part_name, is_auxiliary, coordinates)
            self.parts[part_name] = part
        return part

    def register_field(self, part_name: str, field_name: str, components: int) -> None:
        """Registers a field on a part or block. The
        part does not need to exist yet, registrations
        are resolved on commit.
        """
        self._check_not_committed()
        registrations = self.field_registrations.setdefault(part_name, {})
        if field_name in registrations:
            assert_string = (
                f"Field {field_name} on part {part_name} is already "
                f"registered with {registrations[field_name]:d} components.")
            assert registrations[field_name] == components, assert_string
        registrations[field_name] = components

    def commit(self) -> None:
        """Finalizes the mesh. Fields registered
        on volume blocks are allocated, fields registered
        on existing node parts are attached."""
        self._check_not_committed()
        for part_name, registrations in self.field_registrations.items():
            if part_name in self.blocks:
                block = self.blocks[part_name]
                for field_name, components in registrations.items():
                    block.allocate_field(field_name, components)
            elif part_name in self.parts:
                self.parts[part_name].fields.update(registrations)
        self.is_committed = True

    def has_part(self, part_name: str) -> bool:
        return part_name in self.parts or part_name in self.blocks

    def get_part(self, part_name: str) -> Part:
        assert_string = f"Part {part_name} does not exist in the mesh database."
        assert part_name in self.parts, assert_string
        return self.parts[part_name]

    def get_block(self, block_name: str) -> VolumeBlock:
        assert_string = f"Volume block {block_name} does not exist in the mesh database."
        assert block_name in self.blocks, assert_string
        return self.blocks[block_name]

    def get_blocks(self, block_names: Iterable[str]) -> List[VolumeBlock]:
        return [self.get_block(name) for name in block_names]

    def set_field(self, block_name: str, field_name: str, buffer: Array) -> None:
        assert self.is_committed, "Fields can only be set on a committed mesh."
        block = self.get_block(block_name)
        registrations = self.field_registrations.get(block_name, {})
        assert_string = f"Field {field_name} is not registered on block {block_name}."
        assert field_name in registrations, assert_string
        block.set_field(field_name, buffer)

    def get_auxiliary_parts(self) -> InactiveSelector:
        return frozenset(name for name, part in self.parts.items() if part.is_auxiliary)
