TUPLE_SEARCH_METHODS = ("BISECTION", "NEAREST_CELL")

TRANSFER_FIELDS_VELOCITY_PLANES = {
    "velocity": 3,
    "temperature": 1,
    "sfs_stress": 6,
}

TRANSFER_FIELDS_TEMPERATURE_PLANES = {
    "temperature": 1,
}

TRANSFER_FIELDS_WALL_PARTS = {
    "wall_friction_velocity": 1,
}
