from typing import Callable, Sequence

import jax
import jax.numpy as jnp

AXIS_NAME = "i"


def partition_map(
        func: Callable,
        no_subdomains: int,
        is_parallel: bool = False,
        ) -> Callable:
    """Maps a function over the leading subdomain
    axis of its arguments. Collective operations
    inside func refer to the subdomain axis by
    AXIS_NAME. If is_parallel, the subdomains are
    distributed over XLA devices via pmap, otherwise
    they are vectorized on a single device.

    :param func: Function acting on a single subdomain
    :type func: Callable
    :param no_subdomains: Number of subdomains
    :type no_subdomains: int
    :param is_parallel: Distribute subdomains over devices, defaults to False
    :type is_parallel: bool, optional
    :return: Mapped function
    :rtype: Callable
    """
    if is_parallel:
        device_count = jax.local_device_count()
        assert_string = (
            f"Number of subdomains ({no_subdomains:d}) exceeds the "
            f"number of available devices ({device_count:d}).")
        assert no_subdomains <= device_count, assert_string
        return jax.pmap(func, axis_name=AXIS_NAME)
    return jax.jit(jax.vmap(func, axis_name=AXIS_NAME))

def parallel_sum(
        buffer: jax.Array,
        axis: int | Sequence[int] = None,
        keepdims: bool = False) -> jax.Array:
    """Sums the buffer over the given axis of
    the local subdomain and over all subdomains."""
    buffer = jnp.sum(buffer, axis=axis, keepdims=keepdims)
    buffer = jax.lax.psum(buffer, axis_name=AXIS_NAME)
    return buffer
