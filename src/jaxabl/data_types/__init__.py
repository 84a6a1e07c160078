from jaxabl.data_types.buffers import PlaneFieldBuffers, TimeControlVariables
from jaxabl.data_types.statistics import (
    ABLStatisticsInformation, PlaneAverages, TemperatureStatistics,
    VelocityStatistics, SFS_STRESS_KEYS, VARIANCE_KEYS)
