"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import ADDRESS_MASK, INSTRUCTION_SIZE
from chipcore.stack import push


def _set_pc(state: EmulatorState, address) -> EmulatorState:
    return state.replace(pc=jnp.astype(address & ADDRESS_MASK, jnp.uint16))


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return _set_pc(state, jnp.asarray(instruction.nnn))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    state = state.replace(stack=push(state.stack, state.pc))
    return execute_jump(state, instruction)


def skip_next(state: EmulatorState) -> EmulatorState:
    return _set_pc(state, state.pc + INSTRUCTION_SIZE)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(
            condition,
            skip_next,
            lambda s: s,
            state
        )
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    return _set_pc(state, instruction.nnn + jnp.astype(state.V[0], jnp.uint16))


def execute_jump_with_vx_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BXNN - Jump to address XNN + VX (``jump_with_vx`` quirk)."""
    return _set_pc(state, instruction.nnn + jnp.astype(state.V[instruction.x], jnp.uint16))


def _key_pressed(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    return state.keypad[state.V[instruction.x] & 0xF]


execute_skip_if_key_pressed = make_skip_instruction(_key_pressed)

execute_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: ~_key_pressed(state, inst)
)


def is_known_key_instruction(instruction: DecodedInstruction) -> jnp.ndarray:
    return jnp.asarray((instruction.nn == 0x9E) | (instruction.nn == 0xA1))


def execute_skip_if_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """EX9E/EXA1 - Skip if key pressed/not pressed."""
    branch = jnp.where(instruction.nn == 0x9E, 0, jnp.where(instruction.nn == 0xA1, 1, 2))
    return jax.lax.switch(
        branch,
        [
            execute_skip_if_key_pressed,
            execute_skip_if_key_not_pressed,
            lambda state, instruction: state,
        ],
        state, instruction
    )
