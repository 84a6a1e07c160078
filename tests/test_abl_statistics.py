import logging
import os

import numpy as np
import pytest

from jaxabl import SpatialAveragingAlgorithm
from jaxabl.data_types.statistics import SFS_STRESS_KEYS, VARIANCE_KEYS
from jaxabl_postprocess import load_abl_statistics

from conftest import NX, NY, NZ, linear_profile_fields, random_planar_fields

VELOCITY_PLANES = frozenset({"zplane_10.0", "zplane_50.0", "zplane_90.0"})


def planar_reference_statistics(fields):
    """Planar statistics of fields which only vary in x and y."""
    fluid = fields["fluid"]
    velocity = fluid["velocity"][:,:,:,0].reshape(3, -1)
    temperature = fluid["temperature"][:,:,0].reshape(-1)
    sfs_stress = fluid["sfs_stress"][:,:,:,0].reshape(6, -1)

    u, v, w = velocity - velocity.mean(axis=-1, keepdims=True)
    T = temperature - temperature.mean()
    variances = np.array([
        np.mean(u*u), np.mean(v*v), np.mean(w*w),
        np.mean(u*v), np.mean(u*w), np.mean(v*w),
        np.mean(w*w*w), np.mean(T*T), np.mean(w*T)])
    return velocity.mean(axis=-1), temperature.mean(), sfs_stress.mean(axis=-1), variances


def test_lifecycle(realm_factory):
    realm = realm_factory(initialize=False)
    controller = realm.abl_statistics
    assert controller.state == "LOADED"

    with pytest.raises(AssertionError):
        controller.load({})
    with pytest.raises(AssertionError):
        controller.initialize()
    with pytest.raises(AssertionError):
        controller.execute()
    with pytest.raises(AssertionError):
        controller.eval_vel_mean(10.0)

    realm.initialize()
    assert controller.state == "INITIALIZED"
    with pytest.raises(AssertionError):
        controller.setup()

    realm.advance(0.1, linear_profile_fields())
    assert controller.state == "RUNNING"
    realm.advance(0.1)
    assert controller.state == "RUNNING"

    controller.destroy()
    assert controller.state == "DESTROYED"
    assert controller.averaging_reference.algorithm.is_finalized
    with pytest.raises(AssertionError):
        controller.execute()
    with pytest.raises(AssertionError):
        controller.eval_temp_mean(10.0)

def test_storage_shapes(realm_factory, abl_setup):
    abl_setup["temperature_heights"] = [20.0, 60.0]
    controller = realm_factory(abl_setup).abl_statistics

    statistics = controller.get_statistics()
    assert statistics.velocity.mean.shape == (3, 3)
    assert statistics.velocity.sfs_stress_mean.shape == (3, len(SFS_STRESS_KEYS))
    assert statistics.velocity.variances.shape == (3, len(VARIANCE_KEYS))
    assert statistics.temperature.mean.shape == (2,)

    # zeros before the first step
    np.testing.assert_array_equal(controller.eval_vel_mean(30.0), np.zeros(3))
    assert float(controller.eval_temp_mean(30.0)) == 0.0
    assert controller.friction_velocity == 0.0

    controller.realm.advance(0.1, linear_profile_fields())
    statistics = controller.get_statistics()
    assert statistics.velocity.variances.shape == (3, len(VARIANCE_KEYS))
    assert statistics.temperature.mean.shape == (2,)

def test_linear_profiles(realm_factory):
    realm = realm_factory()
    controller = realm.abl_statistics
    realm.advance(0.1, linear_profile_fields())

    statistics = controller.get_statistics()
    np.testing.assert_allclose(statistics.velocity.mean, [
        [1.0, 1.0, 0.0], [3.0, 5.0, 0.0], [5.0, 9.0, 0.0]], rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(statistics.temperature.mean, [300.1, 300.5, 300.9], rtol=1e-12)
    np.testing.assert_allclose(statistics.velocity.variances, 0.0, atol=1e-12)
    np.testing.assert_allclose(statistics.velocity.sfs_stress_mean, 0.0, atol=1e-12)
    assert statistics.simulation_step == 1
    assert statistics.physical_simulation_time == pytest.approx(0.1)

    np.testing.assert_allclose(controller.eval_vel_mean(30.0), [2.0, 3.0, 0.0], rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(controller.eval_temp_mean(70.0), 300.7, rtol=1e-12)

    # exact at configured heights, clamped outside
    velocity_mean = np.asarray(statistics.velocity.mean)
    np.testing.assert_array_equal(controller.eval_vel_mean(50.0), velocity_mean[1])
    np.testing.assert_array_equal(controller.eval_vel_mean(-5.0), velocity_mean[0])
    np.testing.assert_array_equal(controller.eval_vel_mean(500.0), velocity_mean[2])

    temperature_mean = np.asarray(statistics.temperature.mean)
    assert float(controller.eval_temp_mean(50.0)) == temperature_mean[1]
    assert float(controller.eval_temp_mean(-5.0)) == temperature_mean[0]
    assert float(controller.eval_temp_mean(500.0)) == temperature_mean[2]

    result = controller.eval_vel_mean(np.array([10.0, 30.0, 90.0]))
    assert result.shape == (3, 3)

def test_unsorted_heights(realm_factory, abl_setup):
    abl_setup["heights"] = [50.0, 10.0, 90.0]
    realm = realm_factory(abl_setup)
    controller = realm.abl_statistics
    realm.advance(0.1, linear_profile_fields())

    velocity_mean = np.asarray(controller.get_statistics().velocity.mean)
    np.testing.assert_allclose(velocity_mean[:,0], [3.0, 1.0, 5.0], rtol=1e-12)
    np.testing.assert_allclose(controller.eval_vel_mean(30.0)[0], 2.0, rtol=1e-12)
    np.testing.assert_allclose(controller.eval_vel_mean(70.0)[0], 4.0, rtol=1e-12)

def test_planar_moments(realm_factory):
    realm = realm_factory()
    controller = realm.abl_statistics
    fields = random_planar_fields()
    realm.advance(0.1, fields)

    velocity_mean, temperature_mean, sfs_stress_mean, variances = \
        planar_reference_statistics(fields)
    statistics = controller.get_statistics()
    for i in range(3):
        np.testing.assert_allclose(statistics.velocity.mean[i], velocity_mean, rtol=1e-10, atol=1e-12)
        np.testing.assert_allclose(statistics.velocity.sfs_stress_mean[i], sfs_stress_mean, rtol=1e-10, atol=1e-12)
        np.testing.assert_allclose(statistics.velocity.variances[i], variances, rtol=1e-10, atol=1e-12)
        np.testing.assert_allclose(statistics.temperature.mean[i], temperature_mean, rtol=1e-10)

    tau_xz = variances[VARIANCE_KEYS.index("u_w")] + sfs_stress_mean[SFS_STRESS_KEYS.index("xz")]
    tau_yz = variances[VARIANCE_KEYS.index("v_w")] + sfs_stress_mean[SFS_STRESS_KEYS.index("yz")]
    assert controller.friction_velocity == pytest.approx((tau_xz**2 + tau_yz**2)**0.25, rel=1e-10)

def test_stress_friction_velocity_from_sfs_stress(realm_factory):
    realm = realm_factory()
    fields = linear_profile_fields()
    fields["fluid"]["sfs_stress"][SFS_STRESS_KEYS.index("xz")] = -0.35**2
    realm.advance(0.1, fields)
    assert realm.abl_statistics.friction_velocity == pytest.approx(0.35, rel=1e-10)

def test_friction_velocity_is_deterministic(realm_factory):
    realm = realm_factory()
    fields = random_planar_fields(seed=5)
    realm.advance(0.1, fields)
    friction_velocity = realm.abl_statistics.friction_velocity
    realm.advance(0.1, fields)
    assert realm.abl_statistics.friction_velocity == friction_velocity
    assert friction_velocity > 0.0

def test_log_law_friction_velocity(realm_factory, abl_setup):
    abl_setup["friction_velocity"] = {"method": "LOG_LAW", "roughness_height": 0.1}
    realm = realm_factory(abl_setup)
    fields = linear_profile_fields()
    fields["fluid"]["velocity"] = np.stack([
        np.full((NX, NY, NZ), 3.0), np.full((NX, NY, NZ), 4.0), np.zeros((NX, NY, NZ))])
    realm.advance(0.1, fields)
    expected = 0.41 * 5.0 / np.log(10.0 / 0.1)
    assert realm.abl_statistics.friction_velocity == pytest.approx(expected, rel=1e-12)

def wall_part(name, xy_range=(5.0, 75.0)):
    """Node part on the ground at the cell centers of the xy-range."""
    x = np.arange(xy_range[0], xy_range[1] + 1.0, 10.0)
    xy = np.stack(np.meshgrid(x, x, indexing="ij"), axis=-1).reshape(-1, 2)
    coordinates = np.concatenate([xy, np.zeros((xy.shape[0], 1))], axis=-1)
    return {"name": name, "coordinates": coordinates.tolist()}

def test_wall_friction_velocity(realm_factory, abl_setup):
    abl_setup["abl_wall_parts"] = ["ground"]
    realm = realm_factory(abl_setup, parts=[wall_part("ground")])
    assert realm.mesh_database.get_part("ground").fields == {"wall_friction_velocity": 1}
    assert realm.active_parts == frozenset({"ground"})

    wall_friction_velocity = np.random.default_rng(3).uniform(0.2, 0.5, (NX, NY))
    fields = linear_profile_fields()
    fields["fluid"]["wall_friction_velocity"] = np.repeat(
        wall_friction_velocity[:,:,None], NZ, axis=-1)
    realm.advance(0.1, fields)

    controller = realm.abl_statistics
    assert controller.friction_velocity == pytest.approx(wall_friction_velocity.mean(), rel=1e-10)
    averages = controller.averaging_reference.algorithm.plane_averages["ground"]
    assert averages.total_weight == NX * NY

def test_wall_friction_velocity_weighted_by_nodes(realm_factory, abl_setup):
    abl_setup["abl_wall_parts"] = ["ground", "patch"]
    realm = realm_factory(abl_setup, parts=[
        wall_part("ground"), wall_part("patch", xy_range=(5.0, 15.0))])

    # uniform in y, 0.1 on the first cell column and 0.3 elsewhere
    wall_friction_velocity = np.full((NX, NY, NZ), 0.3)
    wall_friction_velocity[0] = 0.1
    fields = linear_profile_fields()
    fields["fluid"]["wall_friction_velocity"] = wall_friction_velocity
    realm.advance(0.1, fields)

    ground_mean = (0.1 + 7 * 0.3) / 8
    patch_mean = 0.2
    expected = (NX * NY * ground_mean + 4 * patch_mean) / (NX * NY + 4)
    assert realm.abl_statistics.friction_velocity == pytest.approx(expected, rel=1e-10)

def test_missing_wall_part(realm_factory, abl_setup):
    abl_setup["abl_wall_parts"] = ["ground"]
    realm = realm_factory(abl_setup, initialize=False)
    with pytest.raises(AssertionError, match="ground"):
        realm.initialize()

@pytest.mark.parametrize("split_factors", [(1, 1, 1), (4, 2, 1)])
def test_partition_invariance(realm_factory, abl_setup, split_factors):
    abl_setup["domain_vertices"] = [[0.0, 0.0], [80.0, 0.0], [80.0, 80.0], [0.0, 80.0]]
    abl_setup["domain_num_pts"] = [9, 7]
    abl_setup["heights"] = [12.5, 47.0, 81.0]

    rng = np.random.default_rng(11)
    buffer = rng.normal(size=(10, NX, NY, NZ))
    fields = {"fluid": {
        "velocity": buffer[0:3], "temperature": buffer[3], "sfs_stress": buffer[4:10]}}

    reference_realm = realm_factory(abl_setup, split_factors=(2, 2, 1))
    reference_realm.advance(0.1, fields)
    reference = reference_realm.abl_statistics.get_statistics()

    realm = realm_factory(abl_setup, split_factors=split_factors)
    realm.advance(0.1, fields)
    statistics = realm.abl_statistics.get_statistics()

    np.testing.assert_allclose(statistics.velocity.mean, reference.velocity.mean, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(statistics.velocity.variances, reference.velocity.variances, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(statistics.velocity.sfs_stress_mean, reference.velocity.sfs_stress_mean, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(statistics.temperature.mean, reference.temperature.mean, rtol=1e-10, atol=1e-12)
    assert statistics.friction_velocity == pytest.approx(reference.friction_velocity, rel=1e-10)

def test_failed_step_keeps_statistics(realm_factory):
    realm = realm_factory()
    controller = realm.abl_statistics
    realm.advance(0.1, linear_profile_fields())
    statistics = controller.get_statistics()

    part = realm.mesh_database.get_part("zplane_90.0")
    part.set_coordinates(part.coordinates + np.array([0.0, 0.0, 1000.0]))
    with pytest.raises(RuntimeError):
        realm.advance(0.1, random_planar_fields())

    failed_statistics = controller.get_statistics()
    np.testing.assert_array_equal(failed_statistics.velocity.mean, statistics.velocity.mean)
    np.testing.assert_array_equal(failed_statistics.velocity.variances, statistics.velocity.variances)
    np.testing.assert_array_equal(failed_statistics.temperature.mean, statistics.temperature.mean)
    assert failed_statistics.friction_velocity == statistics.friction_velocity
    assert failed_statistics.simulation_step == 1

def test_inactive_selector(realm_factory):
    realm = realm_factory(parts=[{"name": "mast", "coordinates": [[1.0, 1.0, 1.0]]}])
    assert realm.abl_statistics.inactive_selector == VELOCITY_PLANES
    assert isinstance(realm.abl_statistics.inactive_selector, frozenset)
    assert realm.active_parts == frozenset({"mast"})
    assert realm.mesh_database.get_auxiliary_parts() == VELOCITY_PLANES

def test_named_parts(realm_factory):
    xy = np.stack(np.meshgrid(np.linspace(5.0, 75.0, 8), np.linspace(5.0, 75.0, 8)), axis=-1).reshape(-1, 2)
    parts = [
        {"name": name, "coordinates": np.concatenate(
            [xy, np.full((xy.shape[0], 1), height)], axis=-1).tolist()}
        for name, height in (("low", 10.0), ("high", 90.0))]
    abl_setup = {
        "from_target_part": ["fluid"],
        "heights": [10.0, 90.0],
        "target_parts": ["low", "high"],
        "search_method": "NEAREST_CELL",
    }
    realm = realm_factory(abl_setup, parts=parts)
    controller = realm.abl_statistics
    assert controller.inactive_selector == frozenset()
    assert realm.mesh_database.get_part("low").fields == \
        {"velocity": 3, "temperature": 1, "sfs_stress": 6}

    realm.advance(0.1, linear_profile_fields())
    np.testing.assert_allclose(controller.eval_vel_mean(50.0), [3.0, 5.0, 0.0], rtol=1e-12, atol=1e-12)

def test_missing_named_part(realm_factory):
    abl_setup = {
        "from_target_part": ["fluid"],
        "heights": [10.0, 90.0],
        "target_parts": ["low", "high"],
    }
    realm = realm_factory(abl_setup, parts=[{"name": "low", "coordinates": [[5.0, 5.0, 10.0]]}],
                          initialize=False)
    with pytest.raises(AssertionError, match="high"):
        realm.initialize()

def test_missing_source_block(realm_factory, abl_setup):
    abl_setup["from_target_part"] = ["solid"]
    realm = realm_factory(abl_setup, initialize=False)
    with pytest.raises(AssertionError, match="solid"):
        realm.abl_statistics.setup()

@pytest.mark.parametrize("output_format", ["abl_stats_%s.dat", "abl_stats_%s.h5"])
def test_output(realm_factory, abl_setup, tmp_path, output_format):
    abl_setup["output_format"] = output_format
    realm = realm_factory(abl_setup)
    for _ in range(5):
        realm.advance(0.5, linear_profile_fields())

    for field in ("Ux", "Uy", "Uz", "T", "sfs", "var"):
        assert os.path.isfile(os.path.join(tmp_path, output_format % field))

    statistics = load_abl_statistics("Uy", output_format, str(tmp_path))
    np.testing.assert_array_equal(statistics["steps"], [2, 4])
    np.testing.assert_allclose(statistics["times"], [1.0, 2.0])
    np.testing.assert_allclose(statistics["heights"], [10.0, 50.0, 90.0])
    assert statistics["values"].shape == (2, 3, 1)
    np.testing.assert_allclose(statistics["values"][-1,:,0], [1.0, 5.0, 9.0], rtol=1e-9)

    variances = load_abl_statistics("var", output_format, str(tmp_path))
    assert variances["values"].shape == (2, 3, len(VARIANCE_KEYS))
    sfs_stress = load_abl_statistics("sfs", output_format, str(tmp_path))
    assert sfs_stress["values"].shape == (2, 3, len(SFS_STRESS_KEYS))

def test_shared_spatial_averaging(realm_factory):
    algorithm = SpatialAveragingAlgorithm()
    realm = realm_factory(spatial_averaging=algorithm)
    controller = realm.abl_statistics
    assert not controller.averaging_reference.is_owned

    realm.advance(0.1, linear_profile_fields())
    plane_averages = algorithm.get_plane_average("zplane_50.0")
    assert plane_averages.total_weight == 64.0
    np.testing.assert_allclose(plane_averages.means[:3], [3.0, 5.0, 0.0], rtol=1e-12, atol=1e-12)

    controller.destroy()
    assert not algorithm.is_finalized
    realm.finalize()
    assert algorithm.is_finalized

def test_logging(realm_factory, abl_setup, caplog):
    abl_setup["logging_frequency"] = 1
    realm = realm_factory(abl_setup)
    with caplog.at_level(logging.INFO, logger="jaxabl"):
        realm.advance(0.1, linear_profile_fields())
    assert "FRICTION VELOCITY" in caplog.text
