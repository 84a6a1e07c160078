from jaxabl.config.precision import PrecisionConfig

precision = PrecisionConfig()
