"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.stack import pop


def no_op(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """No operation."""
    return state


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)


def is_known_system_instruction(instruction: DecodedInstruction) -> jnp.ndarray:
    """0NNN machine code calls are not supported, only 00E0 and 00EE."""
    return jnp.asarray((instruction.raw == 0x00E0) | (instruction.raw == 0x00EE))


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions."""
    branch = jnp.where(instruction.raw == 0x00E0, 0, jnp.where(instruction.raw == 0x00EE, 1, 2))
    return jax.lax.switch(
        branch,
        [execute_clear_screen, execute_return, no_op],
        state, instruction
    )
