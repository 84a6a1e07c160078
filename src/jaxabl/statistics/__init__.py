TUPLE_FRICTION_VELOCITY_METHODS = ("STRESS", "LOG_LAW", "WALL")

LIFECYCLE_STATES = (
    "UNCONFIGURED", "LOADED", "SETUP",
    "INITIALIZED", "RUNNING", "DESTROYED"
)
