"""Main CHIP-8 emulator execution engine."""

import time
from functools import partial
from typing import Mapping, Optional, Sequence, Union

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chex import dataclass

from chipcore.state import EmulatorState, create_state, draw_random_byte, load_font
from chipcore.decode import DecodedInstruction, decode
from chipcore.constants import ADDRESS_MASK, INSTRUCTION_SIZE, MAX_ROM_SIZE, NUM_KEYS, PROGRAM_START
from chipcore.errors import ExecutionStatus, RomTooLarge, error_for_status
from chipcore.quirks import Quirks
from chipcore.rng import RandomSource
from chipcore.stack import is_empty, is_full
from chipcore.instructions.system import execute_system_instruction, is_known_system_instruction
from chipcore.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_jump_with_vx_offset, execute_skip_if_key, is_known_key_instruction,
)
from chipcore.instructions.alu import execute_alu_operation, is_known_alu_instruction
from chipcore.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipcore.instructions.display import execute_display
from chipcore.instructions.misc import execute_misc_instruction, is_known_misc_instruction

RomData = Union[bytes, bytearray, Sequence[int]]

# Statuses at or above this value roll the cycle back
FIRST_FAULT = int(ExecutionStatus.STACK_OVERFLOW)


def instruction_status(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    """Classify an instruction against the current state before it runs."""
    known = jnp.stack([
        is_known_system_instruction(instruction),
        *(jnp.asarray(True) for _ in range(0x1, 0x8)),
        is_known_alu_instruction(instruction),
        *(jnp.asarray(True) for _ in range(0x9, 0xE)),
        is_known_key_instruction(instruction),
        is_known_misc_instruction(instruction),
    ])[instruction.opcode]

    overflow = (instruction.opcode == 0x2) & is_full(state.stack)
    underflow = (instruction.raw == 0x00EE) & is_empty(state.stack)

    status = jnp.where(
        overflow, int(ExecutionStatus.STACK_OVERFLOW),
        jnp.where(
            underflow, int(ExecutionStatus.STACK_UNDERFLOW),
            jnp.where(known, int(ExecutionStatus.EXECUTED), int(ExecutionStatus.INVALID_OPCODE))
        )
    )
    return jnp.astype(status, jnp.uint8)


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    The outcome is recorded in ``status``. Unknown opcodes run as a no-op;
    stack faults leave every other field of the state untouched.
    """
    decoded_instruction = decode(instruction)
    status = instruction_status(state, decoded_instruction)

    new_state = jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_vx_offset if state.quirks.jump_with_vx else execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )

    new_state = jax.lax.cond(
        status >= FIRST_FAULT,
        lambda old, new: old,
        lambda old, new: new,
        state, new_state
    )
    return new_state.replace(status=status)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory and latch it in ``opcode``."""
    pc = state.pc & ADDRESS_MASK
    instruction = _pack_u16(state.memory[pc], state.memory[(pc + 1) & ADDRESS_MASK])
    return state.replace(pc=(pc + INSTRUCTION_SIZE) & ADDRESS_MASK, opcode=instruction), instruction


def cycle(state: EmulatorState) -> EmulatorState:
    """Run one fetch, decode, execute step and draw the next random byte.

    Timers are not touched, see ``tick_timers``. On a stack fault the whole
    cycle is rolled back, so ``pc`` keeps pointing at the faulting instruction.
    """
    fetched, instruction = fetch(state)
    executed = execute(fetched, instruction)

    return jax.lax.cond(
        executed.status >= FIRST_FAULT,
        lambda before, after: before.replace(opcode=after.opcode, status=after.status),
        lambda before, after: draw_random_byte(after),
        state, executed
    )


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement the delay and sound timers once. Meant to run at 60 Hz."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


@dataclass(frozen=True)
class CycleRecord:
    """Per-cycle outcome collected by the scanning runners."""
    status: jnp.ndarray
    opcode: jnp.ndarray
    pc: jnp.ndarray


def run_cycle(state, _):
    state = cycle(state)
    return state, CycleRecord(status=state.status, opcode=state.opcode, pc=state.pc)


@partial(jax.jit, static_argnums=1)
def run_cycles(state: EmulatorState, n: int) -> tuple[EmulatorState, CycleRecord]:
    """Run ``n`` cycles. Returns the final state and the stacked per-cycle records."""
    return jax.lax.scan(run_cycle, state, length=n)


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, cycles_per_frame: int) -> tuple[EmulatorState, CycleRecord]:
    """Run one frame worth of cycles followed by a single timer tick."""
    state, records = jax.lax.scan(run_cycle, state, length=cycles_per_frame)
    return tick_timers(state), records


def set_key(state: EmulatorState, key: int, pressed: bool) -> EmulatorState:
    """Set the level of one keypad key (0x0-0xF)."""
    if not 0 <= key < NUM_KEYS:
        raise ValueError(f"Key must be in range 0x0-0xF, got {key}")
    return state.replace(keypad=state.keypad.at[key].set(pressed))


def set_keypad(state: EmulatorState, keys: Union[Mapping[int, bool], Sequence[bool]]) -> EmulatorState:
    """Replace the keypad levels from a 16-entry sequence or a partial key -> level mapping."""
    if isinstance(keys, Mapping):
        for key, pressed in keys.items():
            state = set_key(state, key, pressed)
        return state
    keypad = jnp.asarray(keys, dtype=jnp.bool_)
    if keypad.shape != (NUM_KEYS,):
        raise ValueError(f"Keypad needs {NUM_KEYS} entries, got shape {keypad.shape}")
    return state.replace(keypad=keypad)


def instruction_address(status: int, pc: int) -> int:
    """Address of the instruction that produced ``status``, given the pc after the cycle.

    After a stack fault the program counter still points at the instruction,
    after an invalid opcode it has moved past it.
    """
    if int(status) == ExecutionStatus.INVALID_OPCODE:
        return (int(pc) - INSTRUCTION_SIZE) & ADDRESS_MASK
    return int(pc)


def raise_for_status(state: EmulatorState) -> None:
    """Raise the exception matching ``state.status``, if any."""
    status = int(state.status)
    error = error_for_status(status, int(state.opcode), instruction_address(status, state.pc))
    if error is not None:
        raise error


def _rom_array(rom: RomData) -> np.ndarray:
    return np.frombuffer(bytes(bytearray(rom)), dtype=np.uint8)


def load_rom(state: EmulatorState, rom: RomData, rng: Optional[jax.Array] = None) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200.

    Also restores the font, points the program counter at the program and,
    when ``rng`` is given, reseeds the random source.

    Raises:
        RomTooLarge: ROM does not fit between 0x200 and the end of memory
    """
    rom_array = _rom_array(rom)
    if len(rom_array) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom_array), MAX_ROM_SIZE)

    state = load_font(state)
    if len(rom_array):
        new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_array)].set(jnp.asarray(rom_array))
        state = state.replace(memory=new_memory)
    state = state.replace(pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16))

    if rng is not None:
        state = draw_random_byte(state.replace(rng=rng))
    return state


def load_rom_file(state: EmulatorState, filename: str, rng: Optional[jax.Array] = None) -> EmulatorState:
    """Load a raw ROM file into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_rom(state, rom_data, rng)


def create_machine(
    rom: RomData,
    seed: Optional[int] = None,
    quirks: Optional[Quirks] = None,
    random_source: Optional[RandomSource] = None,
) -> EmulatorState:
    """Create a ready-to-run machine with ``rom`` loaded.

    Without a seed the random source is seeded from the wall clock.
    """
    if seed is None:
        seed = time.time_ns() & 0xFFFFFFFF

    kwargs = {}
    if quirks is not None:
        kwargs["quirks"] = quirks
    if random_source is not None:
        kwargs["random_source"] = random_source

    rng = jax.random.PRNGKey(seed)
    return load_rom(create_state(rng, **kwargs), rom, rng)
