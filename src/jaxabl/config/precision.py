import jax


class PrecisionConfig:
    """Floating point precision of jaxabl. Switches
    jax between single and double precision and holds
    the epsilon which guards the interpolation weights
    of degenerate stencils."""

    def __init__(self):
        jax.config.update("jax_default_matmul_precision", "highest")
        self._set_precision(jax.config.read("jax_enable_x64"))

    def _set_precision(self, is_double_precision: bool) -> None:
        jax.config.update("jax_enable_x64", is_double_precision)
        self.__is_double_precision = is_double_precision
        self.__interpolation_eps = 1e-50 if is_double_precision else 1e-30

    def enable_single_precision(self) -> None:
        self._set_precision(False)

    def enable_double_precision(self) -> None:
        self._set_precision(True)

    def get_interpolation_eps(self) -> float:
        return self.__interpolation_eps

    def is_double_precision(self) -> bool:
        return self.__is_double_precision
