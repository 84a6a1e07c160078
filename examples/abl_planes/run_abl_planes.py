import os
os.environ["CUDA_VISIBLE_DEVICES"] = "0"

import numpy as np

from jaxabl import Realm
from jaxabl.data_types.statistics import SFS_STRESS_KEYS
from jaxabl.forcing.abl_forcing import ABLMeanProfileForcing
from jaxabl_postprocess import (
    load_abl_statistics, create_profile_figure, create_friction_velocity_figure)

# SETUP REALM
realm = Realm("abl_planes.yaml")
realm.initialize()

block = realm.mesh_database.get_block("fluid")
X, Y, Z = np.meshgrid(*block.cell_centers, indexing="ij")

forcing = ABLMeanProfileForcing(
    realm.abl_statistics,
    target_heights=[0.0, 400.0],
    target_velocity=[[8.0, 0.0, 0.0], [8.0, 0.0, 0.0]],
    target_temperature=[300.0, 300.0],
    relaxation_time=600.0)

# SYNTHETIC LOG-LAW FLOW WITH RANDOM FLUCTUATIONS
rng = np.random.default_rng(0)
kappa, utau, z0 = 0.41, 0.35, 0.1
dt = 0.5
for step in range(50):
    u_mean = utau / kappa * np.log(1.0 + Z / z0)
    fluctuations = 0.1 * utau * rng.normal(size=(3,) + Z.shape)
    velocity = np.stack([u_mean, np.zeros_like(Z), np.zeros_like(Z)]) + fluctuations
    temperature = 300.0 + 0.003 * Z + 0.05 * rng.normal(size=Z.shape)
    sfs_stress = np.zeros((6,) + Z.shape)
    sfs_stress[SFS_STRESS_KEYS.index("xz")] = -utau**2 * np.exp(-Z / 50.0)

    realm.advance(dt, {"fluid": {
        "velocity": velocity,
        "temperature": temperature,
        "sfs_stress": sfs_stress}})

source = forcing.compute_forcing(block.cell_centers[2])
print("velocity source at the first cells:", np.asarray(source["velocity"][:3]))
print("friction velocity:", realm.abl_statistics.friction_velocity)
print("mean velocity at hub height 90 m:", np.asarray(realm.abl_statistics.eval_vel_mean(90.0)))

realm.finalize()

# LOAD DATA AND PLOT
save_path = realm.output_directory
statistics_dict = {
    field: load_abl_statistics(field, "abl_stats_%s.dat", save_path)
    for field in ("Ux", "T", "var")}

create_profile_figure(
    statistics_dict,
    nrows_ncols=(1,3),
    component=0,
    save_fig="abl_profiles.png")

create_friction_velocity_figure(
    statistics_dict["Ux"],
    save_fig="friction_velocity.png")
