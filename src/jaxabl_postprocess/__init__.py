from jaxabl_postprocess.matplotlib_utils import (
    create_friction_velocity_figure,
    create_profile_figure,
)

from jaxabl_postprocess.statistics_utils import load_abl_statistics

from jaxabl_postprocess.h5py_utils import load_dict_from_h5

__version__ = "0.1.0"
__author__ = "JAX-ABL developers"

__all__ = (
    "create_friction_velocity_figure",
    "create_profile_figure",
    "load_abl_statistics",
    "load_dict_from_h5",
)
