"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import ADDRESS_MASK, FONT_START, FONT_CHAR_SIZE, INSTRUCTION_SIZE, NUM_REGISTERS
from chipcore.instructions.system import no_op


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, 16-bit wrap, VF untouched."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Stores the lowest pressed key. With no key down the program counter is
    rewound so the same instruction is fetched again next cycle.
    """
    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
        return state.replace(V=state.V.at[instruction.x].set(pressed_key))

    def wait_action(state):
        return state.replace(pc=(state.pc - INSTRUCTION_SIZE) & ADDRESS_MASK)

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_CHAR_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = (jnp.astype(state.I, jnp.int32) + jnp.arange(3)) & ADDRESS_MASK
    return state.replace(memory=state.memory.at[indices].set(digits))


def _register_window(state: EmulatorState, instruction: DecodedInstruction):
    """Memory addresses I..I+15 and the mask selecting V0..VX."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    indices = (jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)) & ADDRESS_MASK
    return register_mask, indices


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if not state.quirks.load_store_increments_index:
        return state
    return state.replace(I=state.I + jnp.astype(instruction.x + 1, jnp.uint16))


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask, indices = _register_window(state, instruction)
    new_values = jnp.where(register_mask, state.V, state.memory[indices])
    state = state.replace(memory=state.memory.at[indices].set(new_values))
    return _advance_index(state, instruction)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask, indices = _register_window(state, instruction)
    state = state.replace(V=jnp.where(register_mask, state.memory[indices], state.V))
    return _advance_index(state, instruction)


MISC_OPERATIONS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}
MISC_UNDEFINED = len(MISC_OPERATIONS)


def _build_dispatch_table() -> jnp.ndarray:
    table = np.full(256, MISC_UNDEFINED, dtype=np.int32)
    for branch, low_byte in enumerate(MISC_OPERATIONS):
        table[low_byte] = branch
    return jnp.asarray(table)


# Low byte -> branch of the misc switch
MISC_DISPATCH = _build_dispatch_table()


def is_known_misc_instruction(instruction: DecodedInstruction) -> jnp.ndarray:
    return MISC_DISPATCH[instruction.nn] != MISC_UNDEFINED


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions through the low byte lookup table."""
    return jax.lax.switch(
        MISC_DISPATCH[instruction.nn],
        [*MISC_OPERATIONS.values(), no_op],
        state, instruction
    )
