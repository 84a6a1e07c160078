from typing import NamedTuple

import jax

Array = jax.Array


class TimeControlVariables(NamedTuple):
    """Contains time control variables, i.e.,
    the current physical simulation time, the
    current simulation step and the time step size
    of the host simulation.
    """
    physical_simulation_time: float = 0.0
    simulation_step: int = 0
    physical_timestep_size: float = 0.0


class PlaneFieldBuffers(NamedTuple):
    """Transferred field values on a plane, split over
    the subdomains. values has shape
    (no_subdomains, N, components), weights has shape
    (no_subdomains, N) and is nonzero only on the
    subdomain owning the node."""
    values: Array
    weights: Array
