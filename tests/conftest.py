import copy

import jax
jax.config.update("jax_enable_x64", True)
import matplotlib
matplotlib.use("Agg")
import numpy as np
import pytest

from jaxabl.config import precision

precision.enable_double_precision()

NX, NY, NZ = 8, 8, 10

DOMAIN_SETUP = {
    "blocks": [
        {
            "name": "fluid",
            "x": {"cells": NX, "range": [0.0, 80.0]},
            "y": {"cells": NY, "range": [0.0, 80.0]},
            "z": {"cells": NZ, "range": [0.0, 100.0]},
        }
    ],
    "split_factors": [2, 2, 1],
}

# NODES COINCIDE WITH THE CELL CENTERS IN X AND Y
INTERIOR_VERTICES = [[5.0, 5.0], [75.0, 5.0], [75.0, 75.0], [5.0, 75.0]]

ABL_SETUP = {
    "from_target_part": ["fluid"],
    "heights": [10.0, 50.0, 90.0],
    "generate_parts": True,
    "domain_vertices": INTERIOR_VERTICES,
    "domain_num_pts": [8, 8],
    "output_frequency": 2,
}


def make_setup(output_directory, abl_setup=None, split_factors=(2, 2, 1),
               parts=None):
    domain_setup = copy.deepcopy(DOMAIN_SETUP)
    domain_setup["split_factors"] = list(split_factors)
    if parts is not None:
        domain_setup["parts"] = parts
    setup = {
        "general": {"output_directory": str(output_directory)},
        "domain": domain_setup,
        "abl_postprocessing": copy.deepcopy(ABL_SETUP if abl_setup is None else abl_setup),
    }
    return setup

def cell_centers():
    x = np.linspace(5.0, 75.0, NX)
    y = np.linspace(5.0, 75.0, NY)
    z = np.linspace(5.0, 95.0, NZ)
    return np.meshgrid(x, y, z, indexing="ij")

def linear_profile_fields():
    """u = 0.5 + 0.05 z, v = 0.1 z, w = 0, T = 300 + 0.01 z, sfs = 0"""
    _, _, Z = cell_centers()
    velocity = np.stack([0.5 + 0.05 * Z, 0.1 * Z, np.zeros_like(Z)])
    temperature = 300.0 + 0.01 * Z
    sfs_stress = np.zeros((6,) + Z.shape)
    return {"fluid": {
        "velocity": velocity,
        "temperature": temperature,
        "sfs_stress": sfs_stress}}

def random_planar_fields(seed=0):
    """Random fields which vary in x and y only."""
    rng = np.random.default_rng(seed)
    planar = rng.normal(size=(10, NX, NY, 1))
    buffer = np.repeat(planar, NZ, axis=-1)
    return {"fluid": {
        "velocity": buffer[0:3],
        "temperature": buffer[3],
        "sfs_stress": buffer[4:10]}}


@pytest.fixture
def abl_setup():
    return copy.deepcopy(ABL_SETUP)

@pytest.fixture
def realm_factory(tmp_path):
    from jaxabl import Realm

    realms = []
    def _make_realm(abl_setup=None, split_factors=(2, 2, 1), parts=None,
                    spatial_averaging=None, initialize=True):
        setup = make_setup(tmp_path, abl_setup, split_factors, parts)
        realm = Realm(setup, spatial_averaging)
        if initialize:
            realm.initialize()
        realms.append(realm)
        return realm

    yield _make_realm

    for realm in realms:
        realm.logger._shutdown_logger()
