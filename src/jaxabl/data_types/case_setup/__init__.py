from jaxabl.data_types.case_setup.abl_statistics import (
    ABLOutputSetup, ABLStatisticsSetup, FrictionVelocitySetup,
    GeneratedPlane, NamedPlane, PlaneGeometrySetup, PlaneSetup,
    TransferSetup)
from jaxabl.data_types.case_setup.domain import (
    AxisSetup, BlockSetup, DomainSetup, PartSetup)
