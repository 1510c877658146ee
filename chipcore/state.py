"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipcore.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS,
    SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
)
from chipcore.quirks import Quirks
from chipcore.rng import RandomSource, prng_random_byte


def _zeros(shape, dtype):
    return field(default_factory=lambda: jnp.zeros(shape, dtype=dtype))


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = _zeros(STACK_SIZE, jnp.uint16)
    pointer: jnp.ndarray = _zeros((), jnp.uint8)


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    ``opcode`` latches the word fetched by the last cycle, ``random_byte`` holds
    the value the next CXNN will consume and ``status`` the ExecutionStatus of
    the last executed instruction.
    """
    rng: jax.Array
    memory: jnp.ndarray = _zeros(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = _zeros((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _zeros((), jnp.uint8)
    sound_timer: jnp.ndarray = _zeros((), jnp.uint8)
    keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    V: jnp.ndarray = _zeros(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _zeros((), jnp.uint16)
    opcode: jnp.ndarray = _zeros((), jnp.uint16)
    random_byte: jnp.ndarray = _zeros((), jnp.uint8)
    status: jnp.ndarray = _zeros((), jnp.uint8)
    quirks: Quirks = field(pytree_node=False, default=Quirks())
    random_source: RandomSource = field(pytree_node=False, default=prng_random_byte)


def load_font(state: EmulatorState) -> EmulatorState:
    """Copy the hex digit glyphs into the font region."""
    font = jnp.asarray(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))


def draw_random_byte(state: EmulatorState) -> EmulatorState:
    """Replace the pending random byte with a fresh one from the random source."""
    rng, byte = state.random_source(state.rng)
    return state.replace(rng=rng, random_byte=jnp.asarray(byte, dtype=jnp.uint8))


def create_state(
    rng: jax.Array = jax.random.PRNGKey(0),
    quirks: Quirks = Quirks(),
    random_source: RandomSource = prng_random_byte,
) -> EmulatorState:
    """Create initial emulator state with font data loaded and an empty program."""
    state = EmulatorState(rng, quirks=quirks, random_source=random_source)
    return draw_random_byte(load_font(state))
