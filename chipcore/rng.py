"""Random byte sources for the CXNN instruction.

A random source is any callable ``source(key) -> (new_key, byte)`` where
``key`` is the PRNG key carried in the emulator state and ``byte`` is a uint8
scalar. Sources are stored as static fields of the state, so they must be
hashable (plain functions and closures are).
"""

from typing import Callable, Tuple

import jax
import jax.numpy as jnp

RandomSource = Callable[[jax.Array], Tuple[jax.Array, jax.Array]]


def prng_random_byte(key: jax.Array) -> Tuple[jax.Array, jax.Array]:
    """Draw a uniformly distributed byte with ``jax.random``."""
    key, subkey = jax.random.split(key)
    return key, jax.random.bits(subkey, shape=(), dtype=jnp.uint8)


def constant_random_source(value: int) -> RandomSource:
    """Source that always yields ``value``. Leaves the key untouched."""
    byte = value & 0xFF

    def constant_random_byte(key: jax.Array) -> Tuple[jax.Array, jax.Array]:
        return key, jnp.asarray(byte, dtype=jnp.uint8)

    return constant_random_byte
